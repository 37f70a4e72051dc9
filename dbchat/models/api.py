"""
API Request/Response Models

Pydantic models for FastAPI endpoints. Connection strings are accepted
as secrets and never echoed back.
"""

from typing import Literal

from pydantic import BaseModel, Field, SecretStr

from dbchat.models.agent import ExecutionResult, GeneratedQuery
from dbchat.models.schema import SchemaSummary


class ConnectionRequest(BaseModel):
    """Request carrying only a connection string."""

    connection_string: SecretStr = Field(..., description="PostgreSQL connection URI")


class GenerateSQLRequest(ConnectionRequest):
    """Request for SQL generation without execution."""

    natural_language_query: str = Field(
        ..., min_length=1, description="The natural language question to convert to SQL"
    )


class ExecuteSQLRequest(ConnectionRequest):
    """Request for direct SQL execution (still passes the safety gate)."""

    query: str = Field(..., min_length=1, description="SQL query to execute")


class QueryRequest(BaseModel):
    """One conversational turn against the database query pipeline."""

    question: str = Field(..., min_length=1, description="User's natural language question")
    connection_string: SecretStr | None = Field(
        None, description="PostgreSQL URI (defaults to the server's DATABASE_URL)"
    )
    conversation_id: str | None = Field(
        None, description="Conversation whose cached schema snapshot should be reused"
    )
    refresh_schema: bool = Field(
        default=False, description="Force re-introspection even if a snapshot is cached"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "question": "How many users signed up last week?",
                "connection_string": "postgresql://reader:secret@db:5432/app",
                "conversation_id": "conv_123",
                "refresh_schema": False,
            }
        }
    }


class PipelineErrorInfo(BaseModel):
    """Phase and user-facing message for a halted turn."""

    phase: str = Field(..., description="State in which the pipeline halted")
    message: str = Field(..., description="User-facing explanation")
    error_type: str = Field(..., description="Exception class name")


class QueryResponse(BaseModel):
    """Response for one conversational turn."""

    answer: str = Field(..., description="Markdown answer citing SQL, confidence and assumptions")
    state: Literal["responding", "errored"] = Field(..., description="Terminal pipeline state")
    conversation_id: str = Field(..., description="Conversation identifier")
    generated_query: GeneratedQuery | None = None
    execution: ExecutionResult | None = None
    error: PipelineErrorInfo | None = None
    transitions: list[str] = Field(default_factory=list, description="Visited states")
    schema_cached: bool = Field(
        default=False, description="Whether a cached schema snapshot was reused"
    )


class DescribeResponse(BaseModel):
    """Rendered schema document."""

    description: str
    summary: SchemaSummary


class ErrorResponse(BaseModel):
    """Error body produced by the global exception handlers."""

    error: str
    message: str
    agent: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    timestamp: str = Field(..., description="ISO timestamp")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: Literal["ready", "not_ready"] = Field(..., description="Readiness status")
    version: str = Field(..., description="Application version")
    timestamp: str = Field(..., description="ISO timestamp")
    checks: dict[str, bool] = Field(..., description="Individual component checks")
