"""
Schema Describer

Renders a SchemaSnapshot as the markdown document that grounds SQL
generation. Pure and deterministic: the same snapshot always renders to
the same string.

Example output:
    # Database Schema

    ## Table: users
    Schema: public
    Row Count: 42

    ### Columns:
    - **id** (integer) [PRIMARY KEY] [DEFAULT: nextval('users_id_seq'::regclass)]
    - **email** (character varying(255)) [NOT NULL]

    ### Indexes:
    - users_pkey

    ---
"""

from dbchat.models.schema import ColumnRecord, SchemaSnapshot, TableRecord

_PRECISION_TYPES = {"numeric", "decimal"}


def describe(snapshot: SchemaSnapshot) -> str:
    """
    Render the snapshot as markdown, one section per table in snapshot order.

    Args:
        snapshot: Schema snapshot to render

    Returns:
        Markdown schema description
    """
    parts = ["# Database Schema\n\n"]
    for table in snapshot.tables:
        parts.append(_describe_table(snapshot, table))
    return "".join(parts)


def _describe_table(snapshot: SchemaSnapshot, table: TableRecord) -> str:
    lines = [f"## Table: {table.table_name}", f"Schema: {table.schema_name}"]

    row_count = snapshot.row_count_for(table.schema_name, table.table_name)
    if row_count is not None and row_count.is_known:
        lines.append(f"Row Count: {row_count.row_count}")

    lines.extend(["", "### Columns:"])
    lines.extend(
        _describe_column(column)
        for column in snapshot.columns_for(table.schema_name, table.table_name)
    )

    relationships = snapshot.relationships_for(table.schema_name, table.table_name)
    if relationships:
        lines.extend(["", "### Foreign Keys:"])
        lines.extend(
            f"- {rel.column_name} -> "
            f"{rel.foreign_schema_name}.{rel.foreign_table_name}.{rel.foreign_column_name}"
            for rel in relationships
        )

    indexes = snapshot.indexes_for(table.schema_name, table.table_name)
    if indexes:
        lines.extend(["", "### Indexes:"])
        lines.extend(f"- {index.index_name}" for index in indexes)

    lines.extend(["", "---", "", ""])
    return "\n".join(lines)


def _describe_column(column: ColumnRecord) -> str:
    text = f"- **{column.column_name}** ({format_column_type(column)})"
    if column.is_primary_key:
        text += " [PRIMARY KEY]"
    elif not column.is_nullable:
        # Primary keys are implicitly NOT NULL
        text += " [NOT NULL]"
    if column.column_default:
        text += f" [DEFAULT: {column.column_default}]"
    return text


def format_column_type(column: ColumnRecord) -> str:
    """Data type with its length, or precision and scale for numeric types."""
    if column.character_maximum_length:
        return f"{column.data_type}({column.character_maximum_length})"
    if column.data_type.lower() in _PRECISION_TYPES and column.numeric_precision:
        if column.numeric_scale is not None:
            return f"{column.data_type}({column.numeric_precision},{column.numeric_scale})"
        return f"{column.data_type}({column.numeric_precision})"
    return column.data_type
