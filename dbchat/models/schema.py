"""
Schema Snapshot Models

Typed records for each catalog query and the immutable snapshot assembled
from them. A snapshot is produced fresh by every introspection call.
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class TableRecord(BaseModel):
    """A user table discovered in pg_tables."""

    schema_name: str
    table_name: str
    table_owner: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.table_name}"


class ColumnRecord(BaseModel):
    """A column from information_schema.columns with its primary-key flag."""

    schema_name: str
    table_name: str
    column_name: str
    data_type: str
    is_nullable: bool = True
    column_default: str | None = None
    character_maximum_length: int | None = None
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    is_primary_key: bool = False

    model_config = ConfigDict(frozen=True)


class RelationshipRecord(BaseModel):
    """One foreign-key column and the column it references."""

    schema_name: str
    table_name: str
    column_name: str
    foreign_schema_name: str
    foreign_table_name: str
    foreign_column_name: str
    constraint_name: str

    model_config = ConfigDict(frozen=True)


class IndexRecord(BaseModel):
    """An index from pg_indexes."""

    schema_name: str
    table_name: str
    index_name: str
    index_definition: str

    model_config = ConfigDict(frozen=True)


class RowCountRecord(BaseModel):
    """Exact row count for a table, or the error that prevented counting."""

    schema_name: str
    table_name: str
    row_count: int = Field(default=0, ge=0)
    error: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_known(self) -> bool:
        return self.error is None


class SchemaSummary(BaseModel):
    """Derived totals for a snapshot."""

    total_tables: int
    total_columns: int
    total_relationships: int
    total_indexes: int

    model_config = ConfigDict(frozen=True)


class SchemaSnapshot(BaseModel):
    """
    Immutable structured result of one introspection call.

    Every column, relationship, index and row-count entry must reference a
    (schema, table) pair present in ``tables``.
    """

    tables: tuple[TableRecord, ...] = ()
    columns: tuple[ColumnRecord, ...] = ()
    relationships: tuple[RelationshipRecord, ...] = ()
    indexes: tuple[IndexRecord, ...] = ()
    row_counts: tuple[RowCountRecord, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_table_references(self) -> "SchemaSnapshot":
        """Reject entries that point at tables outside the snapshot."""
        keys = [(t.schema_name, t.table_name) for t in self.tables]
        if len(set(keys)) != len(keys):
            raise ValueError("tables must be unique by (schema_name, table_name)")

        known = set(keys)
        for section in ("columns", "relationships", "indexes", "row_counts"):
            for entry in getattr(self, section):
                if (entry.schema_name, entry.table_name) not in known:
                    raise ValueError(
                        f"{section} entry references unknown table "
                        f"{entry.schema_name}.{entry.table_name}"
                    )
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def summary(self) -> SchemaSummary:
        return SchemaSummary(
            total_tables=len(self.tables),
            total_columns=len(self.columns),
            total_relationships=len(self.relationships),
            total_indexes=len(self.indexes),
        )

    def columns_for(self, schema_name: str, table_name: str) -> list[ColumnRecord]:
        return [
            c for c in self.columns if c.schema_name == schema_name and c.table_name == table_name
        ]

    def relationships_for(self, schema_name: str, table_name: str) -> list[RelationshipRecord]:
        return [
            r
            for r in self.relationships
            if r.schema_name == schema_name and r.table_name == table_name
        ]

    def indexes_for(self, schema_name: str, table_name: str) -> list[IndexRecord]:
        return [
            i for i in self.indexes if i.schema_name == schema_name and i.table_name == table_name
        ]

    def row_count_for(self, schema_name: str, table_name: str) -> RowCountRecord | None:
        for record in self.row_counts:
            if record.schema_name == schema_name and record.table_name == table_name:
                return record
        return None
