"""Reference Data CLI - define, seed and query the reference tables.

Example usage:
    # Create the schema (drop and recreate outside prod)
    refdata init
    refdata init --recreate

    # Load the fixtures; re-running only skips existing rows
    refdata seed
    refdata seed --steps country currency

    # Integrity report
    refdata check

    # Localized names
    refdata name country SA ar-SA
    refdata name language fr xx --fallback

    # Inspect and export
    refdata show currency --limit 10
    refdata stats
    refdata export ./exports --tables country currency
"""

import argparse
import os
import sys
from typing import List, Optional

from refdata import config
from refdata.catalog import export_parquet, table_frame
from refdata.exceptions import RefDataError
from refdata.integrity import IntegrityChecker, IntegritySeverity
from refdata.localization import LocalizedNameResolver
from refdata.logging_config import create_logger, log_exception
from refdata.schemas import TABLES
from refdata.seeder import SEED_STEPS, Seeder
from refdata.store import ReferenceDataStore

logger = create_logger(__name__)


class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def print_header(text: str):
    """Print formatted header."""
    print(f"\n{Colors.BOLD}{Colors.HEADER}{text}{Colors.ENDC}")


def print_success(text: str):
    """Print success message."""
    print(f"{Colors.GREEN}✓ {text}{Colors.ENDC}")


def print_error(text: str):
    """Print error message."""
    print(f"{Colors.RED}✗ {text}{Colors.ENDC}", file=sys.stderr)


def print_warning(text: str):
    """Print warning message."""
    print(f"{Colors.YELLOW}⚠ {text}{Colors.ENDC}")


def print_info(text: str):
    """Print info message."""
    print(f"{Colors.CYAN}ℹ {text}{Colors.ENDC}")


def init_schema(store: ReferenceDataStore, args) -> int:
    """Create the reference schema."""
    store.define_schema(recreate=args.recreate)
    print_success(f"Schema {store.schema} ready in {store.db_path}")
    return 0


def seed(store: ReferenceDataStore, args) -> int:
    """Run the seed steps."""
    missing = store.missing_tables()
    if missing:
        print_error(f"Missing tables: {', '.join(missing)}. Run 'refdata init' first.")
        return 1

    report = Seeder(store, seed_dir=args.seed_dir).run(args.steps)

    print_header("Seed Report")
    for result in report.results:
        print(
            f"  {result.name:<18} read {result.rows_read:>5}  "
            f"inserted {result.rows_inserted:>5}  skipped {result.rows_skipped:>5}"
        )
    print_success(
        f"{report.total_inserted} rows inserted, {report.total_skipped} skipped "
        f"in {report.duration:.2f}s"
    )
    return 0


def check(store: ReferenceDataStore, args) -> int:
    """Print the integrity report; fails when errors are found."""
    report = IntegrityChecker(store).run()

    print_header("Integrity Report")
    for issue in report.issues:
        if issue.severity == IntegritySeverity.ERROR:
            print_error(str(issue))
        else:
            print_warning(str(issue))

    if report.is_clean:
        print_success(f"No errors ({len(report.warnings)} warnings)")
        return 0
    print_error(f"{len(report.errors)} errors, {len(report.warnings)} warnings")
    return 1


def name(store: ReferenceDataStore, args) -> int:
    """Resolve a localized name."""
    resolver = LocalizedNameResolver(store, cache_size=0)
    if args.fallback:
        value = resolver.display_name(args.entity, args.code, args.locale)
    else:
        value = resolver.resolve(args.entity, args.code, args.locale)

    if value is None:
        print_warning(f"No name for {args.entity} {args.code} in {args.locale}")
        return 0
    print(value)
    return 0


def show(store: ReferenceDataStore, args) -> int:
    """Print the rows of a table."""
    frame = table_frame(store, args.table, limit=args.limit)
    print_header(f"{store.schema}.{args.table} ({len(frame)} rows shown)")
    print(frame.to_string(index=False))
    return 0


def stats(store: ReferenceDataStore, args) -> int:
    """Print row counts per table."""
    print_header(f"Reference tables in {store.db_path}")
    for table, count in store.table_counts().items():
        print(f"  {table:<18} {count:>6}")
    return 0


def export(store: ReferenceDataStore, args) -> int:
    """Export tables to Parquet."""
    paths = export_parquet(store, args.out_dir, tables=args.tables)
    for path in paths:
        print_info(path)
    print_success(f"Exported {len(paths)} tables to {args.out_dir}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="refdata",
        description="Reference Data CLI - define, seed and query the reference tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--db", help=f"DuckDB database path (default: {config.DB_PATH})")
    parser.add_argument("--schema", help=f"Schema name (default: {config.REF_SCHEMA})")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    init_parser = subparsers.add_parser("init", help="Create the reference schema")
    init_parser.add_argument("--recreate", action="store_true",
                             help="Drop existing tables first (refused on prod)")
    init_parser.set_defaults(func=init_schema)

    seed_parser = subparsers.add_parser("seed", help="Load the seed fixtures")
    seed_parser.add_argument("--steps", nargs="+", choices=[s.name for s in SEED_STEPS],
                             help="Steps to run (default: all, in order)")
    seed_parser.add_argument("--seed-dir", help=f"Fixture directory (default: {config.SEED_DIR})")
    seed_parser.set_defaults(func=seed)

    check_parser = subparsers.add_parser("check", help="Run the integrity report")
    check_parser.set_defaults(func=check)

    name_parser = subparsers.add_parser("name", help="Resolve a localized name")
    name_parser.add_argument("entity", help="Entity tag (e.g. country)")
    name_parser.add_argument("code", help="Entity code (domain:code for classification codes)")
    name_parser.add_argument("locale", help="Locale tag (e.g. ar-SA)")
    name_parser.add_argument("--fallback", action="store_true",
                             help="Fall back to the canonical English name")
    name_parser.set_defaults(func=name)

    show_parser = subparsers.add_parser("show", help="Print the rows of a table")
    show_parser.add_argument("table", choices=[t.name for t in TABLES], help="Table name")
    show_parser.add_argument("--limit", type=int, default=20, help="Rows to print (default: 20)")
    show_parser.set_defaults(func=show)

    stats_parser = subparsers.add_parser("stats", help="Row counts per table")
    stats_parser.set_defaults(func=stats)

    export_parser = subparsers.add_parser("export", help="Export tables to Parquet")
    export_parser.add_argument("out_dir", help="Output directory")
    export_parser.add_argument("--tables", nargs="+", choices=[t.name for t in TABLES],
                               help="Tables to export (default: all)")
    export_parser.set_defaults(func=export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.db:
            if args.db != ":memory:":
                os.makedirs(os.path.dirname(os.path.abspath(args.db)), exist_ok=True)
        else:
            config.validate_config()

        with ReferenceDataStore(db_path=args.db, schema=args.schema) as store:
            return args.func(store, args)

    except RefDataError as e:
        log_exception(logger, e, {"command": args.command})
        print_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
