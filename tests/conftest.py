"""Pytest configuration and shared fixtures for reference data store tests.

This module provides fixtures for:
- In-memory DuckDB stores, with and without the reference schema
- A fully seeded store shared by read-only tests
- Small hand-written row sets for write-path tests
- Temporary file management
- Configuration reloads against a patched environment
"""

import importlib
import os
import tempfile
from pathlib import Path
from typing import Dict, Generator, List

import duckdb
import pytest

from refdata.seeder import Seeder
from refdata.store import ReferenceDataStore


# ============================================================================
# Environment and Configuration Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def test_env_vars() -> Dict[str, str]:
    """Provide test environment variables."""
    return {
        "TARGET": "dev",
        "REFDATA_SCHEMA": "ref",
        "REFDATA_SEED_ACTOR": "seed",
        "REFDATA_LOG_LEVEL": "WARNING",
    }


@pytest.fixture(scope="function")
def reload_config(test_env_vars: Dict[str, str], monkeypatch):
    """Reload refdata.config against a patched environment.

    Yields a function that applies extra environment variables and
    returns the reloaded module. The original configuration is restored
    afterwards.
    """
    import refdata.config as config_module

    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)

    def _reload(**env):
        for key, value in env.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)
        return importlib.reload(config_module)

    yield _reload

    monkeypatch.undo()
    importlib.reload(config_module)


# ============================================================================
# DuckDB Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def duckdb_connection() -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """Provide an in-memory DuckDB connection for testing."""
    con = duckdb.connect(":memory:")
    yield con
    con.close()


@pytest.fixture(scope="function")
def store() -> Generator[ReferenceDataStore, None, None]:
    """Store on an empty in-memory database."""
    s = ReferenceDataStore(db_path=":memory:", schema="ref", target="dev")
    yield s
    s.close()


@pytest.fixture(scope="function")
def schema_store(store: ReferenceDataStore) -> ReferenceDataStore:
    """Store with the reference schema defined but no rows."""
    store.define_schema()
    return store


@pytest.fixture(scope="session")
def seeded_store() -> Generator[ReferenceDataStore, None, None]:
    """Fully seeded store shared across the session. Do not write to it."""
    s = ReferenceDataStore(db_path=":memory:", schema="ref", target="dev")
    s.define_schema()
    Seeder(s).run()
    yield s
    s.close()


# ============================================================================
# Row Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def base_rows() -> Dict[str, List[dict]]:
    """Minimal parent rows for write-path tests."""
    return {
        "country": [
            {"code2": "SA", "code3": "SAU", "numeric3": "682", "name": "Saudi Arabia"},
            {"code2": "FR", "code3": "FRA", "numeric3": "250", "name": "France"},
            {"code2": "US", "code3": "USA", "numeric3": "840", "name": "United States of America"},
        ],
        "language": [
            {"code": "ar", "name": "Arabic", "native_name": "العربية", "direction": "rtl"},
            {"code": "fr", "name": "French", "native_name": "Français"},
            {"code": "en", "name": "English", "native_name": "English"},
        ],
        "locale": [
            {"code": "ar", "language_code": "ar", "name": "Arabic", "direction": "rtl"},
            {"code": "ar-SA", "language_code": "ar", "country_code2": "SA", "name": "Arabic (Saudi Arabia)"},
            {"code": "fr", "language_code": "fr", "name": "French"},
            {"code": "fr-FR", "language_code": "fr", "country_code2": "FR", "name": "French (France)"},
            {"code": "en", "language_code": "en", "name": "English"},
        ],
        "currency": [
            {"code": "USD", "name": "US Dollar", "symbol": "$", "minor_units": 2, "numeric3": "840"},
            {"code": "EUR", "name": "Euro", "symbol": "€", "minor_units": 2, "numeric3": "978"},
            {"code": "XAU", "name": "Gold (troy ounce)", "numeric3": "959"},
        ],
        "industry_domain": [
            {"code": "isic", "name": "International Standard Industrial Classification", "standard": "ISIC"},
            {"code": "naics", "name": "North American Industry Classification System", "standard": "NAICS"},
        ],
    }


@pytest.fixture(scope="function")
def populated_store(schema_store: ReferenceDataStore, base_rows) -> ReferenceDataStore:
    """Store holding the minimal parent rows."""
    for table in ("country", "language", "locale", "currency", "industry_domain"):
        schema_store.upsert(table, base_rows[table])
    return schema_store


# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def seed_dir(temp_dir: Path) -> Path:
    """Empty fixture directory with a labels/ subdirectory."""
    os.makedirs(temp_dir / "labels")
    return temp_dir
