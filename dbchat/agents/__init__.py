"""
Pipeline Agents

SQL generation, read-only safety gating and query execution.
"""

from dbchat.agents.base import BaseAgent
from dbchat.agents.executor import QueryExecutorAgent
from dbchat.agents.generator import SQLGeneratorAgent
from dbchat.agents.safety import Authorized, Rejected, SafetyGate, authorize, check_sql

__all__ = [
    "Authorized",
    "BaseAgent",
    "QueryExecutorAgent",
    "Rejected",
    "SQLGeneratorAgent",
    "SafetyGate",
    "authorize",
    "check_sql",
]
