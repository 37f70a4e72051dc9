"""
Data Models

Schema snapshot records, agent I/O models and API payloads.
"""

from dbchat.models.agent import (
    AgentError,
    AgentInput,
    AgentMetadata,
    AgentOutput,
    ExecutionResult,
    GeneratedQuery,
    GenerationError,
    IntrospectionError,
    QueryExecutorInput,
    QueryExecutorOutput,
    SQLGeneratorInput,
    SQLGeneratorOutput,
    UnsafeQueryError,
)
from dbchat.models.api import (
    ConnectionRequest,
    DescribeResponse,
    ErrorResponse,
    ExecuteSQLRequest,
    GenerateSQLRequest,
    HealthResponse,
    PipelineErrorInfo,
    QueryRequest,
    QueryResponse,
    ReadinessResponse,
)
from dbchat.models.schema import (
    ColumnRecord,
    IndexRecord,
    RelationshipRecord,
    RowCountRecord,
    SchemaSnapshot,
    SchemaSummary,
    TableRecord,
)

__all__ = [
    # Agent models
    "AgentError",
    "AgentInput",
    "AgentMetadata",
    "AgentOutput",
    "ExecutionResult",
    "GeneratedQuery",
    "GenerationError",
    "IntrospectionError",
    "QueryExecutorInput",
    "QueryExecutorOutput",
    "SQLGeneratorInput",
    "SQLGeneratorOutput",
    "UnsafeQueryError",
    # API models
    "ConnectionRequest",
    "DescribeResponse",
    "ErrorResponse",
    "ExecuteSQLRequest",
    "GenerateSQLRequest",
    "HealthResponse",
    "PipelineErrorInfo",
    "QueryRequest",
    "QueryResponse",
    "ReadinessResponse",
    # Schema models
    "ColumnRecord",
    "IndexRecord",
    "RelationshipRecord",
    "RowCountRecord",
    "SchemaSnapshot",
    "SchemaSummary",
    "TableRecord",
]
