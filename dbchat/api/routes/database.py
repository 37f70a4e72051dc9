"""
Database Routes

FastAPI endpoints for connection checks, schema introspection, SQL
generation, direct execution and conversational queries.

Connection strings arrive in request bodies as secrets and are never
echoed back. Errors raised here are mapped to HTTP responses by the
global exception handlers in ``dbchat.api.main``.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from dbchat.agents.executor import QueryExecutorAgent
from dbchat.agents.safety import SafetyGate
from dbchat.config import get_settings
from dbchat.connectors import ConnectionCheck, check_connection
from dbchat.introspection.describer import describe
from dbchat.introspection.introspector import SchemaIntrospector
from dbchat.models.agent import ExecutionResult, GeneratedQuery
from dbchat.models.api import (
    ConnectionRequest,
    DescribeResponse,
    ExecuteSQLRequest,
    GenerateSQLRequest,
    QueryRequest,
    QueryResponse,
)
from dbchat.models.schema import SchemaSnapshot
from dbchat.pipeline.orchestrator import DatabaseQueryPipeline
from dbchat.pipeline.session_context import ConversationStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/database")


# ============================================================================
# Dependencies
# ============================================================================


def _require(key: str, description: str):
    from dbchat.api.main import app_state

    component = app_state.get(key)
    if component is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{description} is not initialized",
        )
    return component


def get_introspector() -> SchemaIntrospector:
    return _require("introspector", "Schema introspector")


def get_gate() -> SafetyGate:
    return _require("gate", "Safety gate")


def get_executor() -> QueryExecutorAgent:
    return _require("executor", "Query executor")


def get_conversations() -> ConversationStore:
    return _require("conversations", "Conversation store")


def get_pipeline() -> DatabaseQueryPipeline:
    return _require("pipeline", "Query pipeline (check LLM provider configuration)")


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/test-connection", response_model=ConnectionCheck)
async def test_connection(request: ConnectionRequest) -> ConnectionCheck:
    """
    Check that the database answers ``SELECT 1``.

    Always returns 200; failures are reported in the body.
    """
    result = await check_connection(
        request.connection_string.get_secret_value(), get_settings().database
    )
    logger.info(f"Connection test {'succeeded' if result.success else 'failed'}")
    return result


@router.post("/introspect", response_model=SchemaSnapshot)
async def introspect_database(
    request: ConnectionRequest,
    introspector: SchemaIntrospector = Depends(get_introspector),
) -> SchemaSnapshot:
    """
    Introspect tables, columns, foreign keys, indexes and row counts.

    Raises:
        IntrospectionError: Mapped to 502 by the exception handlers
    """
    return await introspector.introspect(request.connection_string.get_secret_value())


@router.post("/describe", response_model=DescribeResponse)
async def describe_database(
    request: ConnectionRequest,
    introspector: SchemaIntrospector = Depends(get_introspector),
) -> DescribeResponse:
    """Introspect and render the schema as markdown."""
    snapshot = await introspector.introspect(request.connection_string.get_secret_value())
    return DescribeResponse(description=describe(snapshot), summary=snapshot.summary)


@router.post("/generate-sql", response_model=GeneratedQuery)
async def generate_sql(
    request: GenerateSQLRequest,
    introspector: SchemaIntrospector = Depends(get_introspector),
    pipeline: DatabaseQueryPipeline = Depends(get_pipeline),
) -> GeneratedQuery:
    """
    Generate SQL for a question without executing it.

    Raises:
        IntrospectionError: Mapped to 502
        GenerationError: Mapped to 502
    """
    snapshot = await introspector.introspect(request.connection_string.get_secret_value())
    return await pipeline.generator.generate_sql(request.natural_language_query, snapshot)


@router.post("/execute-sql", response_model=ExecutionResult)
async def execute_sql(
    request: ExecuteSQLRequest,
    gate: SafetyGate = Depends(get_gate),
    executor: QueryExecutorAgent = Depends(get_executor),
) -> ExecutionResult:
    """
    Execute caller-supplied SQL after the read-only safety check.

    Execution failures are returned in the body with ``success=False``.

    Raises:
        UnsafeQueryError: Mapped to 400 when the statement is not a single SELECT
    """
    authorized = gate.authorize(request.query)
    return await executor.execute_sql(
        request.connection_string.get_secret_value(), authorized.sql
    )


@router.post("/query", response_model=QueryResponse)
async def query(
    request: QueryRequest,
    pipeline: DatabaseQueryPipeline = Depends(get_pipeline),
    conversations: ConversationStore = Depends(get_conversations),
) -> QueryResponse:
    """
    Answer one conversational turn.

    The conversation's cached schema snapshot is reused unless
    ``refresh_schema`` is set. Pipeline failures are reported in the body
    with ``state="errored"``.
    """
    context = conversations.get_or_create(request.conversation_id)
    connection_string = (
        request.connection_string.get_secret_value() if request.connection_string else None
    )

    result = await pipeline.run(
        request.question,
        connection_string=connection_string,
        context=context,
        refresh_schema=request.refresh_schema,
    )

    return QueryResponse(
        answer=result.answer,
        state=result.state.value,
        conversation_id=result.conversation_id,
        generated_query=result.generated_query,
        execution=result.execution,
        error=result.error,
        transitions=[s.value for s in result.transitions],
        schema_cached=result.schema_cached,
    )
