"""
QueryExecutorAgent: run an authorized SELECT and report the outcome.

Failures are returned as data, never raised: connection refusals,
timeouts, syntax and permission errors all become an ExecutionResult with
``success=False``, a message scrubbed of the connection string, and the
original query text. The safety gate is re-run immediately before
execution so that no path reaches the database with an unchecked string.
"""

import logging
import time
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from functools import partial
from typing import Any

from dbchat.agents.base import BaseAgent
from dbchat.agents.safety import Rejected, SafetyGate
from dbchat.config import Settings, get_settings
from dbchat.connectors import (
    BaseConnection,
    ConnectorError,
    open_connection,
    redact_connection_string,
)
from dbchat.models.agent import ExecutionResult, QueryExecutorInput, QueryExecutorOutput

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[str], AbstractAsyncContextManager[BaseConnection]]


class QueryExecutorAgent(BaseAgent):
    """Executes SQL against a per-call connection. Never raises."""

    def __init__(
        self,
        settings: Settings | None = None,
        gate: SafetyGate | None = None,
        connection_factory: ConnectionFactory | None = None,
    ):
        """
        Initialize QueryExecutorAgent.

        Args:
            settings: Application settings (defaults to get_settings())
            gate: Safety gate applied before every execution
            connection_factory: Callable returning an async context manager
                that yields an open connection
        """
        super().__init__(name="QueryExecutorAgent")

        self.config = settings or get_settings()
        self.gate = gate or SafetyGate()
        self.connection_factory = connection_factory or partial(
            open_connection, settings=self.config.database
        )
        self.max_result_rows = self.config.pipeline.max_result_rows

    async def execute(self, input: QueryExecutorInput) -> QueryExecutorOutput:
        """Execute ``input.query`` and wrap the result."""
        result = await self.execute_sql(input.connection_string, input.query)
        return QueryExecutorOutput(
            success=result.success,
            result=result,
            metadata=self._metadata,
        )

    async def execute_sql(self, connection_string: str, sql: str) -> ExecutionResult:
        """
        Execute a SELECT statement.

        Args:
            connection_string: PostgreSQL URI
            sql: Statement to run (re-checked by the safety gate)

        Returns:
            ExecutionResult. ``success=False`` carries a redacted error and
            the original query; rows beyond max_result_rows are dropped and
            ``truncated`` is set.
        """
        verdict = self.gate.check(sql)
        if isinstance(verdict, Rejected):
            return ExecutionResult(
                success=False,
                executed_query=sql,
                error=f"Query rejected by the read-only safety check: {verdict.reason}",
            )

        start_time = time.perf_counter()
        logger.info(f"Executing query: {sql[:100]}")

        try:
            async with self.connection_factory(connection_string) as conn:
                query_result = await conn.fetch(verdict.sql)
        except ConnectorError as e:
            return self._failure(sql, connection_string, e, start_time)
        except Exception as e:
            logger.error(
                f"Unexpected error during query execution: {type(e).__name__}", exc_info=True
            )
            return self._failure(sql, connection_string, e, start_time)

        rows = query_result.rows
        truncated = len(rows) > self.max_result_rows
        if truncated:
            logger.info(
                f"Truncating result from {len(rows)} to {self.max_result_rows} rows",
                extra={"row_count": len(rows), "max_result_rows": self.max_result_rows},
            )
            rows = rows[: self.max_result_rows]
        rows = [{column: _json_safe(value) for column, value in row.items()} for row in rows]

        logger.info(
            f"Query returned {query_result.row_count} rows in "
            f"{query_result.execution_time_ms:.2f}ms"
        )
        return ExecutionResult(
            success=True,
            rows=rows,
            row_count=query_result.row_count,
            columns=query_result.columns,
            executed_query=sql,
            execution_time_ms=query_result.execution_time_ms,
            truncated=truncated,
        )

    def _failure(
        self,
        sql: str,
        connection_string: str,
        error: Exception,
        start_time: float,
    ) -> ExecutionResult:
        message = redact_connection_string(str(error), connection_string) or type(error).__name__
        logger.warning(
            f"Query execution failed: {message}",
            extra={"error_type": type(error).__name__},
        )
        return ExecutionResult(
            success=False,
            executed_query=sql,
            error=message,
            execution_time_ms=(time.perf_counter() - start_time) * 1000,
        )


def _json_safe(value: Any) -> Any:
    """Render bytea values in PostgreSQL hex form so rows always serialize."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    return value
