"""
Base Database Connection

Abstract base class for per-request database connections. Provides a
consistent async interface for opening, querying, and closing a single
connection owned by exactly one call.

All connections must implement:
- connect(): Open the connection within the connect timeout
- fetch(): Run a statement under the statement/query timeouts
- close(): Release the connection (idempotent)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ============================================================================
# Data Models
# ============================================================================


class QueryResult(BaseModel):
    """Result from statement execution."""

    rows: list[dict[str, Any]] = Field(..., description="Result rows")
    row_count: int = Field(..., description="Number of rows returned")
    columns: list[str] = Field(..., description="Column names")
    execution_time_ms: float = Field(..., description="Execution time in ms")


class ConnectionCheck(BaseModel):
    """Outcome of a connection test."""

    success: bool = Field(..., description="Whether the database answered SELECT 1")
    message: str | None = Field(None, description="Human-readable success message")
    error: str | None = Field(None, description="Redacted failure message")


class ConnectorError(Exception):
    """Base exception for connector errors."""

    pass


class ConnectionError(ConnectorError):
    """Malformed connection string or unreachable database."""

    pass


class QueryTimeoutError(ConnectorError):
    """Statement or query exceeded its configured timeout."""

    pass


class QueryError(ConnectorError):
    """Error executing a statement."""

    pass


# ============================================================================
# Base Connection
# ============================================================================


class BaseConnection(ABC):
    """
    Abstract base class for a single, unpooled database connection.

    A connection instance is opened by one call and closed by the same
    call. It is never shared between requests.

    Usage:
        async with MyConnection(connection_string) as conn:
            result = await conn.fetch("SELECT 1")
    """

    def __init__(
        self,
        connection_string: str,
        connect_timeout: float = 30.0,
        statement_timeout: float = 60.0,
        query_timeout: float = 60.0,
    ):
        """
        Initialize connection settings without connecting.

        Args:
            connection_string: Database URI (treated as a secret)
            connect_timeout: Seconds allowed to establish the connection
            statement_timeout: Server-side statement timeout in seconds
            query_timeout: Client-side timeout per statement in seconds
        """
        self._connection_string = connection_string
        self.connect_timeout = connect_timeout
        self.statement_timeout = statement_timeout
        self.query_timeout = query_timeout
        self._connected = False

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the connection.

        Raises:
            ConnectionError: If the string is malformed or the server is unreachable
        """
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def fetch(self, query: str, *params: Any) -> QueryResult:
        """
        Execute a statement and return its rows.

        Raises:
            QueryTimeoutError: If the statement exceeds a timeout
            QueryError: If the statement fails
            ConnectionError: If not connected
        """
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def close(self) -> None:
        """Close the connection. Safe to call multiple times."""
        pass  # pragma: no cover - abstract method

    @property
    def is_connected(self) -> bool:
        """Check if connection is open."""
        return self._connected

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
        return False

    def __repr__(self) -> str:
        """String representation without credentials."""
        status = "connected" if self._connected else "disconnected"
        return f"<{self.__class__.__name__} ({status})>"
