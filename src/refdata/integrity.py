"""Integrity report over the reference tables.

DuckDB enforces the ordinary foreign keys itself; this module re-checks
everything the data model promises after the fact, including the parent
and alias links the store validates in Python, so a database seeded by
another tool (or edited by hand) can be audited.

Example usage:
    report = IntegrityChecker(store).run()
    for issue in report.errors:
        print(issue)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from refdata.ddl import qualified, quote_ident
from refdata.hierarchy import describe_key, find_cycles, load_links
from refdata.logging_config import create_logger
from refdata.schemas import ENTITY_TYPES, TABLES, get_table
from refdata.schemas.classification import CODE_SEPARATOR
from refdata.store import ReferenceDataStore

logger = create_logger(__name__)

# Offending keys quoted in an issue message
SAMPLE_SIZE = 5


class IntegritySeverity(Enum):
    """Severity levels for integrity issues."""

    ERROR = "error"
    WARNING = "warning"


@dataclass
class IntegrityIssue:
    """One failed check, with the rows that fail it."""

    severity: IntegritySeverity
    check: str
    message: str
    table: Optional[str] = None
    rows: List[Any] = field(default_factory=list)

    def __str__(self) -> str:
        table_str = f" [{self.table}]" if self.table else ""
        return f"{self.severity.value.upper()}{table_str} {self.check}: {self.message}"


@dataclass
class IntegrityReport:
    issues: List[IntegrityIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[IntegrityIssue]:
        return [i for i in self.issues if i.severity == IntegritySeverity.ERROR]

    @property
    def warnings(self) -> List[IntegrityIssue]:
        return [i for i in self.issues if i.severity == IntegritySeverity.WARNING]

    @property
    def is_clean(self) -> bool:
        """True when no errors were found; warnings are allowed."""
        return not self.errors

    def checks_failed(self) -> List[str]:
        return sorted({i.check for i in self.issues})


def _sample(rows: List[Any]) -> str:
    shown = ", ".join(str(r) for r in rows[:SAMPLE_SIZE])
    if len(rows) > SAMPLE_SIZE:
        shown += f" (+{len(rows) - SAMPLE_SIZE} more)"
    return shown


class IntegrityChecker:
    """Run every integrity check against a store."""

    def __init__(self, store: ReferenceDataStore) -> None:
        self.store = store
        self.schema = store.schema

    def _t(self, table: str) -> str:
        return qualified(self.schema, table)

    def run(self) -> IntegrityReport:
        report = IntegrityReport()
        with self.store.cursor() as cur:
            self._check_references(cur, report)
            self._check_links(cur, report)
            self._check_timezone_aliases(cur, report)
            self._check_unique_codes(cur, report)
            self._check_labels(cur, report)

        if report.is_clean:
            logger.info(f"✅ Integrity check passed ({len(report.warnings)} warnings)")
        else:
            logger.error(
                f"❌ Integrity check found {len(report.errors)} errors "
                f"and {len(report.warnings)} warnings"
            )
        for issue in report.issues:
            logger.debug(str(issue))
        return report

    def _query(self, cur, report, severity, check, table, sql, message, params=None) -> None:
        rows = [r[0] if len(r) == 1 else r for r in cur.execute(sql, params or []).fetchall()]
        if rows:
            report.issues.append(IntegrityIssue(
                severity=severity,
                check=check,
                message=f"{message}: {_sample(rows)}",
                table=table,
                rows=rows,
            ))

    def _check_references(self, cur, report: IntegrityReport) -> None:
        self._query(
            cur, report, IntegritySeverity.ERROR, "locale_language", "locale",
            f"SELECT l.code FROM {self._t('locale')} AS l "
            f"LEFT JOIN {self._t('language')} AS g ON g.code = l.language_code "
            f"WHERE g.code IS NULL ORDER BY l.code",
            "locales reference missing languages",
        )
        self._query(
            cur, report, IntegritySeverity.ERROR, "locale_country", "locale",
            f"SELECT l.code FROM {self._t('locale')} AS l "
            f"LEFT JOIN {self._t('country')} AS c ON c.code2 = l.country_code2 "
            f"WHERE l.country_code2 IS NOT NULL AND c.code2 IS NULL ORDER BY l.code",
            "locales reference missing countries",
        )
        self._query(
            cur, report, IntegritySeverity.ERROR, "state_region_country", "state_region",
            f"SELECT s.code FROM {self._t('state_region')} AS s "
            f"LEFT JOIN {self._t('country')} AS c ON c.code2 = s.country_code2 "
            f"WHERE c.code2 IS NULL ORDER BY s.code",
            "subdivisions reference missing countries",
        )

    def _check_links(self, cur, report: IntegrityReport) -> None:
        """Parent and alias links: existence, domain, self-loops, cycles, levels."""
        for table in TABLES:
            ref = table.self_reference
            if ref is None:
                continue

            nodes = load_links(cur, self.schema, table)
            missing, foreign, loops, levels = [], [], [], []
            for key, (parent, level) in sorted(nodes.items(), key=lambda kv: str(kv[0])):
                if parent is None:
                    if level is not None and level != 1:
                        levels.append(describe_key(key))
                    continue
                if parent == key:
                    loops.append(describe_key(key))
                    continue
                if parent not in nodes:
                    if ref.scope_column and any(
                        k[1] == parent[1] and k[0] != parent[0] for k in nodes
                    ):
                        foreign.append(describe_key(key))
                    else:
                        missing.append(describe_key(key))
                    continue
                parent_level = nodes[parent][1]
                if level is not None and parent_level is not None and level != parent_level + 1:
                    levels.append(describe_key(key))

            def add(check, rows, message):
                if rows:
                    report.issues.append(IntegrityIssue(
                        severity=IntegritySeverity.ERROR,
                        check=check,
                        message=f"{message}: {_sample(rows)}",
                        table=table.name,
                        rows=rows,
                    ))

            add("parent_missing", missing, "parents do not exist")
            add("parent_other_domain", foreign, "parents exist only in another domain")
            add("self_loop", loops, "rows are their own parent")
            add("level_mismatch", levels, "level numbers disagree with tree depth")

            edges = {k: p for k, (p, _) in nodes.items() if p != k}
            for cycle in find_cycles(edges):
                path = " -> ".join(describe_key(k) for k in cycle + [cycle[0]])
                add("cycle", [describe_key(k) for k in cycle], f"parent links form a cycle {path}")

    def _check_timezone_aliases(self, cur, report: IntegrityReport) -> None:
        self._query(
            cur, report, IntegritySeverity.WARNING, "alias_without_canonical", "timezone",
            f"SELECT tzid FROM {self._t('timezone')} "
            f"WHERE is_alias AND canonical_tzid IS NULL ORDER BY tzid",
            "aliases without a canonical zone",
        )
        self._query(
            cur, report, IntegritySeverity.WARNING, "canonical_not_alias", "timezone",
            f"SELECT tzid FROM {self._t('timezone')} "
            f"WHERE NOT is_alias AND canonical_tzid IS NOT NULL ORDER BY tzid",
            "zones with a canonical link not flagged as alias",
        )

    def _check_unique_codes(self, cur, report: IntegrityReport) -> None:
        self._query(
            cur, report, IntegritySeverity.ERROR, "currency_numeric_duplicate", "currency",
            f"SELECT numeric3 FROM {self._t('currency')} "
            f"WHERE status = 'active' AND numeric3 IS NOT NULL "
            f"GROUP BY numeric3 HAVING count(*) > 1 ORDER BY numeric3",
            "numeric codes shared by active currencies",
        )
        for column in ("code3", "numeric3"):
            ident = quote_ident(column)
            self._query(
                cur, report, IntegritySeverity.ERROR, f"country_{column}_duplicate", "country",
                f"SELECT {ident} FROM {self._t('country')} WHERE {ident} IS NOT NULL "
                f"GROUP BY {ident} HAVING count(*) > 1 ORDER BY {ident}",
                f"{column} values shared by several countries",
            )

    def _check_labels(self, cur, report: IntegrityReport) -> None:
        for entity in ENTITY_TYPES:
            table = get_table(entity)
            if len(table.primary_key) == 2:
                domain, code = (quote_ident(c) for c in table.primary_key)
                target_key = f"t.{domain} || '{CODE_SEPARATOR}' || t.{code}"
                probe = f"t.{code}"
            else:
                target_key = f"t.{quote_ident(table.primary_key[0])}"
                probe = target_key
            self._query(
                cur, report, IntegritySeverity.WARNING, "label_target_missing", "label",
                f"SELECT lb.code || '/' || lb.locale_code FROM {self._t('label')} AS lb "
                f"LEFT JOIN {self._t(entity)} AS t ON {target_key} = lb.code "
                f"WHERE lb.entity = ? AND {probe} IS NULL ORDER BY lb.code, lb.locale_code",
                f"{entity} labels without a {entity} row",
                params=[entity],
            )

        self._query(
            cur, report, IntegritySeverity.WARNING, "label_canonical_locale", "label",
            f"SELECT entity || '/' || code FROM {self._t('label')} "
            f"WHERE locale_code = 'en' ORDER BY entity, code",
            "labels on the canonical English locale",
        )
