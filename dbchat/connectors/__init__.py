"""
Database Connections

Per-request PostgreSQL connections with enforced timeouts.

Usage:
    from dbchat.connectors import open_connection

    async with open_connection(connection_string) as conn:
        result = await conn.fetch("SELECT 1")
"""

from dbchat.connectors.base import (
    BaseConnection,
    ConnectionCheck,
    ConnectionError,
    ConnectorError,
    QueryError,
    QueryResult,
    QueryTimeoutError,
)
from dbchat.connectors.postgres import (
    PostgresConnection,
    check_connection,
    open_connection,
    redact_connection_string,
    validate_connection_string,
)

__all__ = [
    "BaseConnection",
    "ConnectionCheck",
    "ConnectionError",
    "ConnectorError",
    "PostgresConnection",
    "QueryError",
    "QueryResult",
    "QueryTimeoutError",
    "check_connection",
    "open_connection",
    "redact_connection_string",
    "validate_connection_string",
]
