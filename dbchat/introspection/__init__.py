"""
Schema Introspection

Reads PostgreSQL catalogs into a SchemaSnapshot and renders it as markdown.

Usage:
    from dbchat.introspection import SchemaIntrospector, describe

    snapshot = await SchemaIntrospector().introspect(connection_string)
    print(describe(snapshot))
"""

from dbchat.introspection.describer import describe, format_column_type
from dbchat.introspection.introspector import SchemaIntrospector, introspect
from dbchat.introspection.queries import POSTGRES_CATALOG, CatalogQueries, row_count_query

__all__ = [
    "CatalogQueries",
    "POSTGRES_CATALOG",
    "SchemaIntrospector",
    "describe",
    "format_column_type",
    "introspect",
    "row_count_query",
]
