"""
Query Pipeline

Orchestrates introspection, SQL generation, safety gating and execution
for one conversational turn.

Usage:
    from dbchat.pipeline import DatabaseQueryPipeline, ConversationStore

    store = ConversationStore()
    pipeline = DatabaseQueryPipeline()
    context = store.get_or_create()
    result = await pipeline.run("How many orders shipped today?", conn_str, context)
"""

from dbchat.pipeline.orchestrator import (
    DatabaseQueryPipeline,
    PipelineResult,
    PipelineState,
    format_answer,
    format_result_table,
)
from dbchat.pipeline.session_context import (
    ConversationContext,
    ConversationStore,
    connection_fingerprint,
)

__all__ = [
    "ConversationContext",
    "ConversationStore",
    "DatabaseQueryPipeline",
    "PipelineResult",
    "PipelineState",
    "connection_fingerprint",
    "format_answer",
    "format_result_table",
]
