"""DDL rendering for the reference schema.

Turns the declarative table definitions into DuckDB statements:
CREATE TABLE with primary key, unique, check and foreign key
constraints, secondary indexes, DROP statements in dependency order,
and the ``localized_name`` SQL macro.

Example usage:
    for statement in schema_statements("ref"):
        con.execute(statement)
"""

from typing import Iterable, List

from refdata.schemas import TABLES
from refdata.schemas.base import TableDefinition


def quote_ident(name: str) -> str:
    """Quote an identifier for DuckDB."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote a string literal for DuckDB."""
    return "'" + value.replace("'", "''") + "'"


def qualified(schema: str, table: str) -> str:
    return f"{quote_ident(schema)}.{quote_ident(table)}"


def _column_list(columns: Iterable[str]) -> str:
    return ", ".join(quote_ident(c) for c in columns)


def render_column(name: str, column: dict) -> str:
    parts = [quote_ident(name), column["type"]]
    if not column.get("nullable", True):
        parts.append("NOT NULL")
    if "default" in column:
        parts.append(f"DEFAULT {column['default']}")
    return " ".join(parts)


def render_checks(table: TableDefinition) -> List[str]:
    """CHECK constraints for fixed-width codes and closed value sets."""
    checks = []
    for name, column in table.columns.items():
        ident = quote_ident(name)
        if "length" in column:
            checks.append(f"CHECK ({ident} IS NULL OR length({ident}) = {column['length']})")
        if "allowed" in column:
            values = ", ".join(quote_literal(v) for v in column["allowed"])
            checks.append(f"CHECK ({ident} IS NULL OR {ident} IN ({values}))")
    return checks


def render_create_table(table: TableDefinition, schema: str) -> str:
    """Render CREATE TABLE IF NOT EXISTS for one definition."""
    lines = [render_column(name, col) for name, col in table.columns.items()]
    lines.append(f"PRIMARY KEY ({_column_list(table.primary_key)})")
    for unique in table.unique:
        lines.append(f"UNIQUE ({_column_list(unique)})")
    lines.extend(render_checks(table))
    for fk in table.foreign_keys:
        lines.append(
            f"FOREIGN KEY ({_column_list(fk.columns)}) "
            f"REFERENCES {qualified(schema, fk.references)} ({_column_list(fk.ref_columns)})"
        )
    body = ",\n    ".join(lines)
    return f"CREATE TABLE IF NOT EXISTS {qualified(schema, table.name)} (\n    {body}\n)"


def render_indexes(table: TableDefinition, schema: str) -> List[str]:
    statements = []
    for columns in table.indexes:
        index_name = f"idx_{table.name}_{'_'.join(columns)}"
        statements.append(
            f"CREATE INDEX IF NOT EXISTS {quote_ident(index_name)} "
            f"ON {qualified(schema, table.name)} ({_column_list(columns)})"
        )
    return statements


def render_comment(table: TableDefinition, schema: str) -> str:
    return f"COMMENT ON TABLE {qualified(schema, table.name)} IS {quote_literal(table.comment)}"


def render_localized_name_macro(schema: str) -> str:
    """SQL macro resolving a label with base-language fallback.

    1. Exact locale (e.g. 'ar-SA')
    2. Base language (e.g. 'ar')
    3. NULL (caller falls back to the source table's English name)
    """
    label = qualified(schema, "label")
    return f"""
        CREATE OR REPLACE MACRO {qualified(schema, "localized_name")}(p_entity, p_code, p_locale) AS
        coalesce(
            (SELECT name FROM {label}
             WHERE entity = p_entity AND code = p_code AND locale_code = p_locale),
            (SELECT name FROM {label}
             WHERE entity = p_entity AND code = p_code
               AND locale_code = split_part(p_locale, '-', 1))
        )
    """


def schema_statements(schema: str) -> List[str]:
    """Every statement needed to create the reference schema, in order."""
    statements = [f"CREATE SCHEMA IF NOT EXISTS {quote_ident(schema)}"]
    for table in TABLES:
        statements.append(render_create_table(table, schema))
        statements.extend(render_indexes(table, schema))
        if table.comment:
            statements.append(render_comment(table, schema))
    statements.append(render_localized_name_macro(schema))
    return statements


def drop_statements(schema: str) -> List[str]:
    """DROP statements, dependents first (DuckDB has no DROP ... CASCADE for FKs)."""
    statements = [f"DROP MACRO IF EXISTS {qualified(schema, 'localized_name')}"]
    for table in reversed(TABLES):
        statements.append(f"DROP TABLE IF EXISTS {qualified(schema, table.name)}")
    return statements
