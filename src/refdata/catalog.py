"""Catalog module for exporting reference tables.

This module exposes the reference tables as Ibis table expressions over
the store's own DuckDB connection, and saves them as Parquet files or
pandas DataFrames for downstream consumers.
"""

import os
from typing import List, Optional, Sequence

import ibis
import pandas as pd

from refdata.exceptions import ExportError
from refdata.logging_config import create_logger, log_exception
from refdata.schemas import TABLES, get_table
from refdata.store import ReferenceDataStore

# Set up logging
logger = create_logger(__name__)


def backend(store: ReferenceDataStore):
    """Ibis DuckDB backend sharing the store's connection."""
    return ibis.duckdb.from_connection(store.con)


def table_expr(store: ReferenceDataStore, table: str, include_audit: bool = False) -> ibis.Table:
    """Ibis expression for one reference table.

    Args:
        store: Store holding the table
        table: Reference table name
        include_audit: Keep created_at/created_by/updated_at/updated_by
    """
    definition = get_table(table)
    expr = backend(store).table(definition.name, database=store.schema)
    if not include_audit:
        expr = expr.select(*definition.data_columns)
    return expr.order_by(list(definition.primary_key))


def table_frame(store: ReferenceDataStore, table: str, limit: Optional[int] = None) -> pd.DataFrame:
    """Rows of a reference table as a pandas DataFrame, in key order."""
    expr = table_expr(store, table)
    if limit is not None:
        expr = expr.limit(limit)
    return expr.to_pandas()


def save_parquet(table_exp: ibis.Table, local_path: str) -> None:
    """Save the Ibis table expression locally as a Parquet file.

    Args:
        table_exp: Ibis table expression to be saved.
        local_path: Local file path where the Parquet file will be saved.
    """
    try:
        table_exp.to_parquet(local_path)
        logger.info(f"💾 Table successfully saved to local Parquet file: {local_path}")

    except Exception as e:
        log_exception(logger, e, context="Parquet Save")
        raise ExportError(f"Failed to write {local_path}: {e}") from e


def export_parquet(
    store: ReferenceDataStore,
    out_dir: str,
    tables: Optional[Sequence[str]] = None,
    include_audit: bool = True,
) -> List[str]:
    """Write one ``<table>.parquet`` file per reference table.

    Args:
        store: Store to export from
        out_dir: Directory for the files (created if missing)
        tables: Table names to export (default: every table)
        include_audit: Keep the audit columns in the files

    Returns:
        Paths of the written files, in schema order
    """
    names = list(tables) if tables else [t.name for t in TABLES]
    definitions = [get_table(name) for name in names]

    try:
        os.makedirs(out_dir, exist_ok=True)
    except OSError as e:
        raise ExportError(f"Unable to create export directory {out_dir}: {e}") from e

    logger.info(f"📦 Exporting {len(definitions)} tables to {out_dir}")
    paths = []
    for definition in definitions:
        path = os.path.join(out_dir, f"{definition.name}.parquet")
        save_parquet(table_expr(store, definition.name, include_audit=include_audit), path)
        paths.append(path)

    return paths
