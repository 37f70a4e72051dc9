"""PostgreSQL catalog queries used by schema introspection."""

from __future__ import annotations

from typing import NamedTuple

_EXCLUDED_SCHEMAS = "('information_schema', 'pg_catalog')"


class CatalogQueries(NamedTuple):
    """Structural catalog queries, each returning rows in a stable order."""

    tables: str
    columns: str
    relationships: str
    indexes: str


POSTGRES_CATALOG = CatalogQueries(
    tables=(
        "SELECT schemaname AS schema_name, tablename AS table_name, "
        "tableowner AS table_owner "
        "FROM pg_tables "
        f"WHERE schemaname NOT IN {_EXCLUDED_SCHEMAS} "
        "ORDER BY schemaname, tablename"
    ),
    columns=(
        "SELECT c.table_schema AS schema_name, c.table_name, c.column_name, c.data_type, "
        "c.is_nullable, c.column_default, c.character_maximum_length, "
        "c.numeric_precision, c.numeric_scale, "
        "(pk.column_name IS NOT NULL) AS is_primary_key "
        "FROM information_schema.columns c "
        "LEFT JOIN ("
        "SELECT ku.table_schema, ku.table_name, ku.column_name "
        "FROM information_schema.table_constraints tc "
        "JOIN information_schema.key_column_usage ku "
        "ON tc.constraint_name = ku.constraint_name "
        "AND tc.table_schema = ku.table_schema "
        "WHERE tc.constraint_type = 'PRIMARY KEY'"
        ") pk "
        "ON c.table_schema = pk.table_schema "
        "AND c.table_name = pk.table_name "
        "AND c.column_name = pk.column_name "
        f"WHERE c.table_schema NOT IN {_EXCLUDED_SCHEMAS} "
        "ORDER BY c.table_schema, c.table_name, c.ordinal_position"
    ),
    relationships=(
        "SELECT tc.table_schema AS schema_name, tc.table_name, kcu.column_name, "
        "ccu.table_schema AS foreign_schema_name, "
        "ccu.table_name AS foreign_table_name, "
        "ccu.column_name AS foreign_column_name, "
        "tc.constraint_name "
        "FROM information_schema.table_constraints AS tc "
        "JOIN information_schema.key_column_usage AS kcu "
        "ON tc.constraint_name = kcu.constraint_name "
        "AND tc.table_schema = kcu.table_schema "
        "JOIN information_schema.constraint_column_usage AS ccu "
        "ON ccu.constraint_name = tc.constraint_name "
        "AND ccu.constraint_schema = tc.constraint_schema "
        "WHERE tc.constraint_type = 'FOREIGN KEY' "
        f"AND tc.table_schema NOT IN {_EXCLUDED_SCHEMAS} "
        "ORDER BY tc.table_schema, tc.table_name, kcu.column_name, tc.constraint_name"
    ),
    indexes=(
        "SELECT schemaname AS schema_name, tablename AS table_name, "
        "indexname AS index_name, indexdef AS index_definition "
        "FROM pg_indexes "
        f"WHERE schemaname NOT IN {_EXCLUDED_SCHEMAS} "
        "ORDER BY schemaname, tablename, indexname"
    ),
)


def quote_identifier(name: str) -> str:
    """Quote a PostgreSQL identifier, doubling embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def row_count_query(schema_name: str, table_name: str) -> str:
    """Exact row count for one table."""
    return (
        f"SELECT COUNT(*) AS count FROM "
        f"{quote_identifier(schema_name)}.{quote_identifier(table_name)}"
    )
