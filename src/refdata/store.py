"""DuckDB-backed reference data store.

This module owns the connection to the reference database and every
write path into it: schema definition, insert-or-skip upserts and
administrative updates. Reads (lookups, localized names, locale
directions) run on a per-call cursor so they can be issued from
several threads against one store.

Example usage:
    with ReferenceDataStore() as store:
        store.define_schema()
        store.upsert("currency", [{"code": "USD", "name": "US Dollar", ...}])
        store.localized_name("country", "SA", "ar-SA")
"""

import json
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import duckdb

from refdata import config
from refdata.ddl import drop_statements, qualified, quote_ident, schema_statements
from refdata.exceptions import (
    CheckViolationError,
    ConfigurationError,
    ConstraintViolationError,
    ForeignKeyViolationError,
    RecordNotFoundError,
    RefDataError,
    SchemaError,
    UniqueViolationError,
)
from refdata.hierarchy import validate_batch
from refdata.localization import base_language
from refdata.logging_config import create_logger
from refdata.schemas import TABLES, entity_key, get_table
from refdata.schemas.base import AUDIT_COLUMNS, TableDefinition

logger = create_logger(__name__)


def python_default(column: Dict[str, Any]) -> Any:
    """Python value of a column's SQL default, for rows that omit it."""
    default = column.get("default")
    if default is None:
        return None
    if default.startswith("'") and default.endswith("'"):
        return default[1:-1].replace("''", "'")
    if default in ("true", "false"):
        return default == "true"
    return None


def translate_error(e: duckdb.Error, table: Optional[str] = None) -> Exception:
    """Map a DuckDB error onto the store's exception hierarchy."""
    message = str(e)
    lowered = message.lower()

    if isinstance(e, duckdb.ConstraintException):
        if "foreign key" in lowered:
            return ForeignKeyViolationError(message, table=table)
        if "duplicate key" in lowered or "unique" in lowered:
            return UniqueViolationError(message, table=table)
        return CheckViolationError(message, table=table)

    if isinstance(e, (duckdb.ConversionException, duckdb.InvalidInputException)):
        return CheckViolationError(message, table=table)

    if isinstance(e, (duckdb.CatalogException, duckdb.BinderException)):
        return SchemaError(message)

    return RefDataError(message)


class ReferenceDataStore:
    """Reference tables in one DuckDB database schema.

    Rows are created by seeding or :meth:`upsert`, changed only through
    :meth:`update` and :meth:`deprecate`, and never deleted.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        schema: Optional[str] = None,
        target: Optional[str] = None,
        read_only: bool = False,
    ) -> None:
        """Open (or create) the reference database.

        Args:
            db_path: DuckDB file, or ":memory:" (default: config.DB_PATH)
            schema: Schema holding the reference tables (default: config.REF_SCHEMA)
            target: Environment name; "prod" refuses destructive recreate
            read_only: Open the database read-only
        """
        self.db_path = db_path or config.DB_PATH
        self.schema = schema or config.REF_SCHEMA
        self.target = (target or config.TARGET).lower()
        self.con = duckdb.connect(self.db_path, read_only=read_only)
        self._in_transaction = False
        self._cursor_lock = threading.Lock()
        logger.debug(f"Connected to {self.db_path} (schema {self.schema}, target {self.target})")

    def __enter__(self) -> "ReferenceDataStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.con.close()

    @property
    def allow_recreate(self) -> bool:
        return self.target != "prod"

    def table_ref(self, table: str) -> str:
        """Schema-qualified, quoted name of a reference table."""
        return qualified(self.schema, get_table(table).name)

    @contextmanager
    def transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """Run a block in one transaction, rolled back on any error.

        Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield self.con
            return

        self.con.begin()
        self._in_transaction = True
        try:
            yield self.con
        except BaseException:
            self.con.rollback()
            raise
        else:
            self.con.commit()
        finally:
            self._in_transaction = False

    @contextmanager
    def cursor(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """A private cursor on the same database for side-effect free reads."""
        with self._cursor_lock:
            cur = self.con.cursor()
        try:
            yield cur
        finally:
            cur.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def schema_exists(self) -> bool:
        with self.cursor() as cur:
            row = cur.execute(
                "SELECT count(*) FROM information_schema.schemata WHERE schema_name = ?",
                [self.schema],
            ).fetchone()
        return row[0] > 0

    def existing_tables(self) -> List[str]:
        with self.cursor() as cur:
            rows = cur.execute(
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = ? ORDER BY table_name",
                [self.schema],
            ).fetchall()
        return [r[0] for r in rows]

    def missing_tables(self) -> List[str]:
        existing = set(self.existing_tables())
        return [t.name for t in TABLES if t.name not in existing]

    def define_schema(self, recreate: bool = False) -> None:
        """Create the reference schema, its tables, indexes and SQL macro.

        Args:
            recreate: Drop existing tables first (refused on the prod target)

        Raises:
            ConfigurationError: If recreate is requested on the prod target
            SchemaError: If the database rejects a statement
        """
        if recreate and not self.allow_recreate:
            raise ConfigurationError(
                f"Refusing to recreate schema '{self.schema}' on target '{self.target}'"
            )

        statements = []
        if recreate and self.schema_exists():
            logger.warning(f"⚠️  Dropping reference tables in schema {self.schema}")
            statements.extend(drop_statements(self.schema))
        statements.extend(schema_statements(self.schema))

        try:
            for statement in statements:
                self.con.execute(statement)
        except duckdb.Error as e:
            raise SchemaError(f"Schema definition failed: {e}") from e

        logger.info(f"✅ Schema {self.schema} ready ({len(TABLES)} tables)")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _prepare_rows(
        self, definition: TableDefinition, rows: Sequence[Mapping[str, Any]]
    ) -> Tuple[List[str], List[List[Any]]]:
        """Column list and value lists for a batch of row dicts."""
        allowed = set(definition.data_columns)
        present = set()
        for row in rows:
            if not isinstance(row, Mapping):
                raise SchemaError(f"Rows for {definition.name} must be mappings, got {type(row).__name__}")
            unknown = set(row) - allowed
            if unknown:
                raise SchemaError(
                    f"Unknown or read-only columns for {definition.name}: {', '.join(sorted(unknown))}"
                )
            present.update(row)

        columns = [c for c in definition.data_columns if c in present]
        values = []
        for row in rows:
            values.append([
                self._to_db(c, row[c]) if c in row else python_default(definition.columns[c])
                for c in columns
            ])
        return columns, values

    @staticmethod
    def _to_db(column: str, value: Any) -> Any:
        if column == "metadata" and isinstance(value, (dict, list)):
            return json.dumps(value)
        return value

    def _key_tuple(self, definition: TableDefinition, key: Any) -> Tuple[Any, ...]:
        if not isinstance(key, (tuple, list)):
            key = (key,)
        key = tuple(key)
        if len(key) != len(definition.primary_key):
            raise SchemaError(
                f"{definition.name} is keyed by ({', '.join(definition.primary_key)}), got {key!r}"
            )
        return key

    def _key_filter(self, definition: TableDefinition) -> str:
        return " AND ".join(f"{quote_ident(c)} = ?" for c in definition.primary_key)

    def _count(self, con, definition: TableDefinition) -> int:
        return con.execute(f"SELECT count(*) FROM {qualified(self.schema, definition.name)}").fetchone()[0]

    def upsert(self, table: str, rows: Iterable[Mapping[str, Any]], actor: Optional[str] = None) -> int:
        """Insert rows, skipping any whose primary key already exists.

        Existing rows are never overwritten. Every other constraint
        violation aborts the whole batch.

        Args:
            table: Reference table name
            rows: Row dicts keyed by column name; omitted columns take defaults
            actor: Recorded as created_by (default: config.SEED_ACTOR)

        Returns:
            Number of rows actually inserted

        Raises:
            SchemaError: For unknown tables or columns
            ConstraintViolationError: For any violation other than a duplicate key
        """
        definition = get_table(table)
        rows = list(rows)
        if not rows:
            return 0

        columns, values = self._prepare_rows(definition, rows)
        insert_columns = columns + ["created_by"]
        placeholders = ", ".join("?" for _ in insert_columns)
        column_list = ", ".join(quote_ident(c) for c in insert_columns)
        pk_list = ", ".join(quote_ident(c) for c in definition.primary_key)
        sql = (
            f"INSERT INTO {qualified(self.schema, definition.name)} ({column_list}) "
            f"VALUES ({placeholders}) ON CONFLICT ({pk_list}) DO NOTHING"
        )
        actor = actor or config.SEED_ACTOR

        try:
            with self.transaction() as con:
                if definition.self_reference is not None:
                    validate_batch(
                        con, self.schema, definition, [dict(zip(columns, v)) for v in values]
                    )
                before = self._count(con, definition)
                con.executemany(sql, [v + [actor] for v in values])
                inserted = self._count(con, definition) - before
        except duckdb.Error as e:
            raise translate_error(e, definition.name) from e

        logger.debug(f"Upserted {definition.name}: {inserted} inserted, {len(rows) - inserted} skipped")
        return inserted

    def update(self, table: str, key: Any, changes: Mapping[str, Any], actor: str) -> None:
        """Administrative update of non-key columns.

        Stamps updated_at and updated_by.

        Raises:
            SchemaError: For unknown, key or audit columns
            RecordNotFoundError: If no row has the given key
            ConstraintViolationError: If the new values violate a constraint
                or change a unique or indexed column of a row other tables reference
        """
        definition = get_table(table)
        key = self._key_tuple(definition, key)
        if not actor:
            raise SchemaError("An actor is required for administrative updates")
        if not changes:
            raise SchemaError(f"No changes given for {definition.name} {key!r}")

        for column in changes:
            if column not in definition.columns:
                raise SchemaError(f"Unknown column '{column}' for {definition.name}")
            if column in definition.primary_key or column in AUDIT_COLUMNS:
                raise SchemaError(f"Column '{column}' of {definition.name} cannot be updated")

        try:
            with self.transaction() as con:
                current = self._fetch_row(con, definition, key)
                if current is None:
                    raise RecordNotFoundError(f"{definition.name} {key!r} does not exist")

                applied = self._applicable_changes(con, definition, key, current, changes)

                ref = definition.self_reference
                if ref is not None and set(changes) & {ref.column, ref.level_column}:
                    validate_batch(
                        con, self.schema, definition, [{**current, **changes}], replace_existing=True
                    )

                assignments = "".join(f"{quote_ident(c)} = ?, " for c in applied)
                con.execute(
                    f"UPDATE {qualified(self.schema, definition.name)} "
                    f"SET {assignments}updated_at = current_timestamp, updated_by = ? "
                    f"WHERE {self._key_filter(definition)}",
                    list(applied.values()) + [actor] + list(key),
                )
        except duckdb.Error as e:
            raise translate_error(e, definition.name) from e

        logger.info(f"✏️  {actor} updated {definition.name} {key!r}: {', '.join(changes)}")

    def _referencing_tables(self, con, definition: TableDefinition, row: Mapping[str, Any]) -> List[str]:
        """Tables holding rows whose foreign keys point at ``row``."""
        tables = []
        for other in TABLES:
            for fk in other.foreign_keys:
                if fk.references != definition.name:
                    continue
                values = [row[c] for c in fk.ref_columns]
                if any(v is None for v in values):
                    continue
                condition = " AND ".join(f"{quote_ident(c)} = ?" for c in fk.columns)
                found = con.execute(
                    f"SELECT 1 FROM {qualified(self.schema, other.name)} WHERE {condition} LIMIT 1",
                    values,
                ).fetchone()
                if found is not None and other.name not in tables:
                    tables.append(other.name)
        return tables

    def _applicable_changes(
        self,
        con,
        definition: TableDefinition,
        key: Tuple[Any, ...],
        current: Mapping[str, Any],
        changes: Mapping[str, Any],
    ) -> Dict[str, Any]:
        """Database values to assign, refusing what DuckDB cannot apply.

        DuckDB applies an update of a unique or indexed column as a delete
        followed by an insert, and its foreign key check rejects the delete
        while any row still points at the old one. Such columns are left
        out of the update when their value does not change.
        """
        constrained = {c for columns in definition.unique + definition.indexes for c in columns}
        applied = {}
        blocked = []
        for column, value in changes.items():
            value = self._to_db(column, value)
            if column in constrained:
                if value == current.get(column):
                    continue
                blocked.append(column)
            applied[column] = value

        if blocked:
            referencing = self._referencing_tables(con, definition, current)
            if referencing:
                raise ConstraintViolationError(
                    f"Cannot change {', '.join(blocked)} of {definition.name} {key!r} while "
                    f"{', '.join(referencing)} rows reference it: DuckDB applies updates of "
                    f"unique or indexed columns as delete plus insert, which its foreign key "
                    f"check rejects",
                    table=definition.name,
                    rows=[key],
                )
        return applied

    def deprecate(self, table: str, key: Any, actor: str) -> None:
        """Mark a row deprecated; rows are never deleted."""
        definition = get_table(table)
        if not definition.has_status:
            raise SchemaError(f"{definition.name} has no status column")
        self.update(table, key, {"status": "deprecated"}, actor)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _fetch_row(self, con, definition: TableDefinition, key: Tuple[Any, ...]) -> Optional[Dict[str, Any]]:
        columns = definition.data_columns
        select = ", ".join(quote_ident(c) for c in columns)
        row = con.execute(
            f"SELECT {select} FROM {qualified(self.schema, definition.name)} "
            f"WHERE {self._key_filter(definition)}",
            list(key),
        ).fetchone()
        if row is None:
            return None
        record = dict(zip(columns, row))
        if isinstance(record.get("metadata"), str):
            record["metadata"] = json.loads(record["metadata"])
        return record

    def get(self, table: str, key: Any) -> Optional[Dict[str, Any]]:
        """Fetch one row by primary key, or None."""
        definition = get_table(table)
        key = self._key_tuple(definition, key)
        try:
            with self.cursor() as cur:
                return self._fetch_row(cur, definition, key)
        except duckdb.Error as e:
            raise translate_error(e, definition.name) from e

    def count(self, table: str) -> int:
        definition = get_table(table)
        try:
            with self.cursor() as cur:
                return self._count(cur, definition)
        except duckdb.Error as e:
            raise translate_error(e, definition.name) from e

    def table_counts(self) -> Dict[str, int]:
        return {t.name: self.count(t.name) for t in TABLES}

    def canonical_name(self, entity: str, code: str) -> Optional[str]:
        """English name stored on the entity's own row.

        Timezones without a display name fall back to their tzid.
        Composite-keyed entities take ``domain:code`` codes.
        """
        try:
            key = entity_key(entity, code)
        except ValueError:
            return None
        definition = get_table(entity)
        name_col = quote_ident(definition.name_column)
        fallback = quote_ident(definition.primary_key[-1])
        try:
            with self.cursor() as cur:
                row = cur.execute(
                    f"SELECT coalesce({name_col}, {fallback}) "
                    f"FROM {qualified(self.schema, definition.name)} "
                    f"WHERE {self._key_filter(definition)}",
                    list(key),
                ).fetchone()
        except duckdb.Error as e:
            raise translate_error(e, definition.name) from e
        return row[0] if row else None

    def localized_name(self, entity: str, code: str, locale: str) -> Optional[str]:
        """Translated name of an entity row.

        Resolution order:
        1. Label for the exact locale (e.g. 'ar-SA')
        2. Label for the base language (e.g. 'ar')
        3. None; the caller falls back to the canonical English name

        Never raises for a missing translation, unknown locale or unknown entity.
        """
        base = base_language(locale)
        try:
            with self.cursor() as cur:
                rows = cur.execute(
                    f"SELECT locale_code, name FROM {qualified(self.schema, 'label')} "
                    f"WHERE entity = ? AND code = ? AND locale_code IN (?, ?)",
                    [entity, code, locale, base],
                ).fetchall()
        except duckdb.Error as e:
            raise translate_error(e, "label") from e

        names = dict(rows)
        if locale in names:
            return names[locale]
        return names.get(base)

    def localized_name_sql(self, entity: str, code: str, locale: str) -> Optional[str]:
        """Same resolution as :meth:`localized_name`, through the SQL macro."""
        macro = qualified(self.schema, "localized_name")
        try:
            with self.cursor() as cur:
                return cur.execute(f"SELECT {macro}(?, ?, ?)", [entity, code, locale]).fetchone()[0]
        except duckdb.Error as e:
            raise translate_error(e, "label") from e

    def labels(self) -> List[Tuple[str, str, str, str]]:
        """Every label as (entity, code, locale_code, name)."""
        try:
            with self.cursor() as cur:
                return cur.execute(
                    f"SELECT entity, code, locale_code, name FROM {qualified(self.schema, 'label')}"
                ).fetchall()
        except duckdb.Error as e:
            raise translate_error(e, "label") from e

    def locale_direction(self, code: str) -> Optional[str]:
        """Text direction of a locale, inherited from its language when unset."""
        try:
            with self.cursor() as cur:
                row = cur.execute(
                    f"SELECT coalesce(l.direction, g.direction) "
                    f"FROM {qualified(self.schema, 'locale')} AS l "
                    f"JOIN {qualified(self.schema, 'language')} AS g ON g.code = l.language_code "
                    f"WHERE l.code = ?",
                    [code],
                ).fetchone()
        except duckdb.Error as e:
            raise translate_error(e, "locale") from e
        return row[0] if row else None
