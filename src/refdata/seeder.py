"""Idempotent seeding of the reference tables from CSV fixtures.

Each step loads one fixture into a temporary staging table with DuckDB's
``read_csv`` (every column read as text), casts the columns to the
target types, validates parent links, and inserts with
``ON CONFLICT (<pk>) DO NOTHING``. One step is one transaction, so a
failed run can simply be started again: rows that made it in are
skipped, nothing is overwritten.

Example usage:
    with ReferenceDataStore() as store:
        store.define_schema()
        report = Seeder(store).run()
        print(report.total_inserted)
"""

import os
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import duckdb

from refdata import config
from refdata.ddl import qualified, quote_ident, quote_literal
from refdata.exceptions import ConstraintViolationError, SeedError
from refdata.hierarchy import validate_batch
from refdata.logging_config import create_logger, log_exception
from refdata.schemas import get_table
from refdata.schemas.base import TableDefinition
from refdata.store import ReferenceDataStore, translate_error

logger = create_logger(__name__)

LABEL_LOCALES = ("ar", "ms", "ta", "hi", "fr", "de")

STAGING_SEQ = "_seq"


@dataclass(frozen=True)
class SeedStep:
    """One fixture file loaded into one table."""

    name: str
    table: str
    file: str


# Parents before children; labels last since they reference locales
SEED_STEPS = (
    SeedStep("country", "country", "country.csv"),
    SeedStep("state_region", "state_region", "state_region.csv"),
    SeedStep("currency", "currency", "currency.csv"),
    SeedStep("language", "language", "language.csv"),
    SeedStep("locale", "locale", "locale.csv"),
    SeedStep("timezone", "timezone", "timezone.csv"),
    SeedStep("uom", "uom", "uom.csv"),
    SeedStep("commodity_domain", "commodity_domain", "commodity_domain.csv"),
    SeedStep("commodity_code", "commodity_code", "commodity_code.csv"),
    SeedStep("industry_domain", "industry_domain", "industry_domain.csv"),
    SeedStep("industry_code", "industry_code", "industry_code.csv"),
) + tuple(
    SeedStep(f"labels_{locale}", "label", os.path.join("labels", f"{locale}.csv"))
    for locale in LABEL_LOCALES
)


@dataclass
class StepResult:
    name: str
    table: str
    rows_read: int
    rows_inserted: int
    duration: float

    @property
    def rows_skipped(self) -> int:
        return self.rows_read - self.rows_inserted


@dataclass
class SeedReport:
    """Outcome of a seed run, one result per step."""

    results: List[StepResult] = field(default_factory=list)

    @property
    def total_read(self) -> int:
        return sum(r.rows_read for r in self.results)

    @property
    def total_inserted(self) -> int:
        return sum(r.rows_inserted for r in self.results)

    @property
    def total_skipped(self) -> int:
        return sum(r.rows_skipped for r in self.results)

    @property
    def duration(self) -> float:
        return sum(r.duration for r in self.results)

    def result(self, name: str) -> Optional[StepResult]:
        for r in self.results:
            if r.name == name:
                return r
        return None


class Seeder:
    """Run seed steps against a store.

    Args:
        store: Store whose schema has been defined
        seed_dir: Directory holding the fixtures (default: config.SEED_DIR)
        actor: Recorded as created_by (default: config.SEED_ACTOR)
    """

    def __init__(
        self,
        store: ReferenceDataStore,
        seed_dir: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> None:
        self.store = store
        self.seed_dir = seed_dir or config.SEED_DIR
        self.actor = actor or config.SEED_ACTOR

    def select_steps(self, names: Optional[Sequence[str]] = None) -> List[SeedStep]:
        """Steps to run, in seed order; unknown names raise SeedError."""
        if not names:
            return list(SEED_STEPS)

        known = {s.name for s in SEED_STEPS}
        unknown = [n for n in names if n not in known]
        if unknown:
            raise SeedError(
                f"Unknown seed steps: {', '.join(unknown)}. "
                f"Available steps: {', '.join(s.name for s in SEED_STEPS)}"
            )
        return [s for s in SEED_STEPS if s.name in names]

    def run(self, steps: Optional[Sequence[str]] = None) -> SeedReport:
        """Run the selected steps (all by default) and report row counts.

        Raises:
            SeedError: If a step fails; earlier steps stay committed
        """
        selected = self.select_steps(steps)
        report = SeedReport()

        logger.info(f"🌱 Seeding {len(selected)} steps from {self.seed_dir}")
        for step in selected:
            result = self.run_step(step)
            report.results.append(result)

        logger.info("✅ Seed complete")
        logger.info(f"   📥 Rows read: {report.total_read}")
        logger.info(f"   ➕ Rows inserted: {report.total_inserted}")
        logger.info(f"   ⏭️  Rows skipped: {report.total_skipped}")
        logger.info(f"   ⏱️  Duration: {report.duration:.2f}s")
        return report

    def _select_expr(self, definition: TableDefinition, column: str) -> str:
        """Cast a text staging column to its target type, applying defaults."""
        col = definition.columns[column]
        expr = quote_ident(column)
        if col["type"] != "VARCHAR":
            expr = f"CAST({expr} AS {col['type']})"
        if "default" in col:
            expr = f"coalesce({expr}, {col['default']})"
        return expr

    def run_step(self, step: SeedStep) -> StepResult:
        """Load one fixture in a single transaction."""
        definition = get_table(step.table)
        path = os.path.join(self.seed_dir, step.file)
        if not os.path.isfile(path):
            raise SeedError(f"Seed step '{step.name}': fixture not found at {path}")

        start = time.time()
        staging = quote_ident(f"seed_{definition.name}")
        target = qualified(self.store.schema, definition.name)
        pk_list = ", ".join(quote_ident(c) for c in definition.primary_key)

        try:
            with self.store.transaction() as con:
                con.execute(
                    f"CREATE OR REPLACE TEMP TABLE {staging} AS "
                    f"SELECT *, row_number() OVER () AS {STAGING_SEQ} "
                    f"FROM read_csv({quote_literal(path)}, header = true, all_varchar = true, "
                    f"delim = ',', quote = '\"', escape = '\"')"
                )
                columns = [
                    r[0] for r in con.execute(f"DESCRIBE {staging}").fetchall()
                    if r[0] != STAGING_SEQ
                ]
                self._check_columns(step, definition, columns)

                rows_read = con.execute(f"SELECT count(*) FROM {staging}").fetchone()[0]

                # first occurrence of a key wins within a file
                source = (
                    f"(SELECT * FROM {staging} QUALIFY row_number() OVER "
                    f"(PARTITION BY {pk_list} ORDER BY {STAGING_SEQ}) = 1) AS s"
                )

                if definition.self_reference is not None:
                    ref = definition.self_reference
                    link_columns = list(definition.primary_key) + [
                        c for c in (ref.column, ref.level_column) if c and c in columns
                    ]
                    select = ", ".join(
                        f"{self._select_expr(definition, c)} AS {quote_ident(c)}" for c in link_columns
                    )
                    staged = con.execute(f"SELECT {select} FROM {source}").fetchall()
                    validate_batch(
                        con,
                        self.store.schema,
                        definition,
                        [dict(zip(link_columns, values)) for values in staged],
                    )

                column_list = ", ".join(quote_ident(c) for c in columns)
                select = ", ".join(self._select_expr(definition, c) for c in columns)
                before = con.execute(f"SELECT count(*) FROM {target}").fetchone()[0]
                con.execute(
                    f"INSERT INTO {target} ({column_list}, created_by) "
                    f"SELECT {select}, {quote_literal(self.actor)} FROM {source} WHERE true "
                    f"ON CONFLICT ({pk_list}) DO NOTHING"
                )
                inserted = con.execute(f"SELECT count(*) FROM {target}").fetchone()[0] - before
                con.execute(f"DROP TABLE {staging}")
        except duckdb.Error as e:
            error = translate_error(e, definition.name)
            error.__cause__ = e
            log_exception(logger, error, {"step": step.name, "fixture": path})
            raise SeedError(f"Seed step '{step.name}' failed: {error}") from error
        except ConstraintViolationError as e:
            log_exception(logger, e, {"step": step.name, "fixture": path})
            raise SeedError(f"Seed step '{step.name}' failed: {e}") from e

        result = StepResult(
            name=step.name,
            table=definition.name,
            rows_read=rows_read,
            rows_inserted=inserted,
            duration=time.time() - start,
        )
        logger.info(
            f"   📄 {step.name}: {result.rows_read} read, "
            f"{result.rows_inserted} inserted, {result.rows_skipped} skipped"
        )
        return result

    def _check_columns(self, step: SeedStep, definition: TableDefinition, columns: List[str]) -> None:
        unknown = [c for c in columns if c not in definition.data_columns]
        if unknown:
            raise SeedError(
                f"Seed step '{step.name}': unknown columns {', '.join(unknown)} for {definition.name}"
            )
        missing = [c for c in definition.primary_key if c not in columns]
        if missing:
            raise SeedError(
                f"Seed step '{step.name}': key columns {', '.join(missing)} missing"
            )
