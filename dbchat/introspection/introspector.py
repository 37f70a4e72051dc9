"""
Schema Introspector

Reads the structure of a PostgreSQL database into a SchemaSnapshot:
tables, columns with primary-key flags, foreign keys, indexes, and an exact
row count per table. Everything runs on one connection that is closed on
every exit path.

Usage:
    from dbchat.introspection import SchemaIntrospector

    introspector = SchemaIntrospector()
    snapshot = await introspector.introspect("postgresql://user:pw@host/db")
    print(snapshot.summary)
"""

import logging
import time
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from functools import partial
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from dbchat.config import DatabaseSettings
from dbchat.connectors import (
    BaseConnection,
    ConnectionError,
    ConnectorError,
    open_connection,
)
from dbchat.introspection.queries import POSTGRES_CATALOG, CatalogQueries, row_count_query
from dbchat.models.agent import IntrospectionError
from dbchat.models.schema import (
    ColumnRecord,
    IndexRecord,
    RelationshipRecord,
    RowCountRecord,
    SchemaSnapshot,
    TableRecord,
)

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[str], AbstractAsyncContextManager[BaseConnection]]


class SchemaIntrospector:
    """
    Builds a SchemaSnapshot from the system catalogs.

    The four structural queries must succeed or the whole call fails.
    Row counts are best effort: a failing count is recorded on that table
    only, with ``row_count=0`` and the error message.
    """

    name = "introspector"

    def __init__(
        self,
        settings: DatabaseSettings | None = None,
        connection_factory: ConnectionFactory | None = None,
        catalog: CatalogQueries = POSTGRES_CATALOG,
    ):
        """
        Initialize the introspector.

        Args:
            settings: Timeout settings (defaults to application settings)
            connection_factory: Callable returning an async context manager
                that yields an open connection
            catalog: Catalog queries to run
        """
        self.connection_factory = connection_factory or partial(
            open_connection, settings=settings
        )
        self.catalog = catalog

    async def introspect(self, connection_string: str) -> SchemaSnapshot:
        """
        Introspect the database behind ``connection_string``.

        Args:
            connection_string: PostgreSQL URI

        Returns:
            A fresh SchemaSnapshot

        Raises:
            IntrospectionError: If the connection fails or a structural
                catalog query fails
        """
        start_time = time.perf_counter()
        logger.info("Starting database introspection")

        try:
            async with self.connection_factory(connection_string) as conn:
                tables = await self._fetch_structure(conn, "tables", self.catalog.tables)
                columns = await self._fetch_structure(conn, "columns", self.catalog.columns)
                relationships = await self._fetch_structure(
                    conn, "relationships", self.catalog.relationships
                )
                indexes = await self._fetch_structure(conn, "indexes", self.catalog.indexes)
                table_records = [self._table_record(row) for row in tables]
                row_counts = [
                    await self._count_rows(conn, table.schema_name, table.table_name)
                    for table in table_records
                ]
        except ConnectionError as e:
            logger.error(f"Introspection could not connect: {e}")
            raise IntrospectionError(
                agent=self.name,
                message=f"Could not connect to the database: {e}",
                context={"error_type": type(e).__name__},
            ) from e

        try:
            snapshot = self._assemble(table_records, columns, relationships, indexes, row_counts)
        except PydanticValidationError as e:
            raise IntrospectionError(
                agent=self.name,
                message=f"Catalog returned unexpected data: {e.error_count()} invalid record(s)",
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        failed_counts = sum(1 for record in snapshot.row_counts if not record.is_known)
        logger.info(
            f"Database introspection completed in {duration_ms:.1f}ms",
            extra={
                **snapshot.summary.model_dump(),
                "failed_row_counts": failed_counts,
                "duration_ms": duration_ms,
            },
        )
        return snapshot

    async def _fetch_structure(
        self, conn: BaseConnection, section: str, query: str
    ) -> list[dict[str, Any]]:
        try:
            result = await conn.fetch(query)
        except ConnectorError as e:
            logger.error(f"Catalog query for {section} failed: {e}")
            raise IntrospectionError(
                agent=self.name,
                message=f"Failed to read {section} from the catalog: {e}",
                context={"section": section, "error_type": type(e).__name__},
            ) from e
        logger.debug(f"Fetched {result.row_count} {section}")
        return result.rows

    async def _count_rows(
        self, conn: BaseConnection, schema_name: str, table_name: str
    ) -> RowCountRecord:
        try:
            result = await conn.fetch(row_count_query(schema_name, table_name))
        except ConnectorError as e:
            logger.warning(
                f"Row count failed for {schema_name}.{table_name}: {e}",
                extra={"schema": schema_name, "table": table_name},
            )
            return RowCountRecord(
                schema_name=schema_name, table_name=table_name, row_count=0, error=str(e)
            )
        count = result.rows[0]["count"] if result.rows else 0
        return RowCountRecord(schema_name=schema_name, table_name=table_name, row_count=int(count))

    @staticmethod
    def _table_record(row: dict[str, Any]) -> TableRecord:
        return TableRecord(
            schema_name=row["schema_name"],
            table_name=row["table_name"],
            table_owner=row.get("table_owner"),
        )

    @staticmethod
    def _assemble(
        tables: list[TableRecord],
        columns: list[dict[str, Any]],
        relationships: list[dict[str, Any]],
        indexes: list[dict[str, Any]],
        row_counts: list[RowCountRecord],
    ) -> SchemaSnapshot:
        # information_schema.columns and pg_indexes also cover views and
        # materialized views; keep only entries for tables in pg_tables.
        known = {(t.schema_name, t.table_name) for t in tables}

        def belongs(row: dict[str, Any]) -> bool:
            return (row["schema_name"], row["table_name"]) in known

        column_records = [
            ColumnRecord(
                **{
                    **row,
                    "is_nullable": _is_yes(row.get("is_nullable")),
                    "is_primary_key": bool(row.get("is_primary_key")),
                }
            )
            for row in columns
            if belongs(row)
        ]
        relationship_records = [RelationshipRecord(**row) for row in relationships if belongs(row)]
        index_records = [IndexRecord(**row) for row in indexes if belongs(row)]

        skipped = (
            len(columns) - len(column_records)
            + len(relationships) - len(relationship_records)
            + len(indexes) - len(index_records)
        )
        if skipped:
            logger.debug(f"Skipped {skipped} catalog entries for non-table relations")

        return SchemaSnapshot(
            tables=tuple(tables),
            columns=tuple(column_records),
            relationships=tuple(relationship_records),
            indexes=tuple(index_records),
            row_counts=tuple(row_counts),
        )


def _is_yes(value: Any) -> bool:
    """information_schema reports booleans as 'YES'/'NO'."""
    if isinstance(value, str):
        return value.upper() == "YES"
    return bool(value)


async def introspect(
    connection_string: str,
    settings: DatabaseSettings | None = None,
) -> SchemaSnapshot:
    """Introspect a database with a default SchemaIntrospector."""
    return await SchemaIntrospector(settings=settings).introspect(connection_string)
