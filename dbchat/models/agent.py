"""
Agent I/O Models

Pydantic models for agent inputs, outputs, and error handling.
All agents in the pipeline use these base models to ensure type safety
and consistent data structures throughout the system.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dbchat.models.schema import SchemaSnapshot


class AgentMetadata(BaseModel):
    """Metadata about agent execution."""

    agent_name: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
    duration_ms: float | None = None
    llm_calls: int = 0
    tokens_used: int | None = None
    error: str | None = None

    model_config = ConfigDict(frozen=False)

    def mark_complete(self) -> None:
        """Mark execution as complete and calculate duration."""
        self.completed_at = datetime.now(UTC)
        if self.started_at:
            delta = self.completed_at - self.started_at
            self.duration_ms = delta.total_seconds() * 1000


class AgentInput(BaseModel):
    """
    Base input model for all agents.

    Each agent extends this with its specific input fields.
    """

    query: str = Field(..., description="User's natural language question or SQL text")
    context: dict[str, Any] = Field(
        default_factory=dict, description="Additional context passed between agents"
    )


class AgentOutput(BaseModel):
    """
    Base output model for all agents.

    The metadata field tracks execution details for observability.
    """

    success: bool = Field(..., description="Whether the agent executed successfully")
    metadata: AgentMetadata = Field(..., description="Execution metadata")


class AgentError(Exception):
    """
    Custom exception for agent execution errors.

    Attributes:
        agent: Name of the agent that raised the error
        message: Error description (safe to show to users)
        recoverable: Whether re-issuing the request may succeed
        context: Additional context for debugging
    """

    def __init__(
        self,
        agent: str,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.agent = agent
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(f"[{agent}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/API responses."""
        return {
            "agent": self.agent,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class IntrospectionError(AgentError):
    """The connection or a structural catalog query failed during introspection."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)


class GenerationError(AgentError):
    """The LLM call failed or returned an unparsable/invalid structured response."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)


class UnsafeQueryError(AgentError):
    """A statement is not a single read-only SELECT (never recoverable as-is)."""

    def __init__(
        self,
        agent: str,
        message: str,
        sql: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.sql = sql
        super().__init__(agent, message, recoverable=False, context=context)


# ============================================================================
# SQL Generator Models
# ============================================================================


class GeneratedQuery(BaseModel):
    """Structured SQL generation response."""

    sql: str = Field(..., min_length=1, description="The generated SQL query")
    explanation: str = Field(..., description="Explanation of what the query does")
    confidence: float = Field(
        ..., ge=0.0, le=1.0, description="Self-reported confidence score between 0 and 1"
    )
    assumptions: list[str] = Field(
        default_factory=list, description="Assumptions made while generating the query"
    )
    tables_used: list[str] = Field(
        default_factory=list, description="Tables used in the query"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sql": "SELECT u.email FROM public.users u ORDER BY u.id LIMIT 10",
                "explanation": "Lists the first ten user emails.",
                "confidence": 0.92,
                "assumptions": ["'users' means the public.users table"],
                "tables_used": ["public.users"],
            }
        }
    )

    @field_validator("sql")
    @classmethod
    def validate_sql_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("sql must not be blank")
        return v

    @field_validator("tables_used")
    @classmethod
    def deduplicate_tables(cls, v: list[str]) -> list[str]:
        """Tables used form a set; keep first-seen order."""
        return list(dict.fromkeys(v))


class SQLGeneratorInput(AgentInput):
    """Input for SQLGeneratorAgent."""

    snapshot: SchemaSnapshot = Field(..., description="Schema to ground generation on")


class SQLGeneratorOutput(AgentOutput):
    """Output from SQLGeneratorAgent."""

    generated_query: GeneratedQuery


# ============================================================================
# Query Executor Models
# ============================================================================


class ExecutionResult(BaseModel):
    """
    Outcome of one execution attempt.

    Failures are data, not exceptions: ``success`` is False and ``error``
    carries a message that never includes the connection string.
    """

    success: bool
    rows: list[dict[str, Any]] | None = None
    row_count: int | None = None
    columns: list[str] | None = None
    executed_query: str
    error: str | None = None
    execution_time_ms: float | None = None
    truncated: bool = False


class QueryExecutorInput(AgentInput):
    """Input for QueryExecutorAgent. ``query`` holds the SQL text."""

    connection_string: str = Field(..., repr=False, description="PostgreSQL URI (secret)")


class QueryExecutorOutput(AgentOutput):
    """Output from QueryExecutorAgent."""

    result: ExecutionResult
