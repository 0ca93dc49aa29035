"""Configuration module for reference data store settings.

This module manages configuration settings and environment-specific
parameters: where the DuckDB database lives, which schema holds the
reference tables and where the seed fixtures are read from.
"""

import os

from dotenv import load_dotenv

from refdata.exceptions import ConfigurationError
from refdata.logging_config import create_logger

load_dotenv()

logger = create_logger(__name__)

# get the local root directory
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

DATA_DIR = os.getenv("REFDATA_DATA_DIR", os.path.join(ROOT_DIR, "data"))

# Allow both Docker and local environment DuckDB path
DB_PATH = os.getenv("REFDATA_DB_PATH", os.path.join(DATA_DIR, "refdata.duckdb"))

# Schema holding every reference table
REF_SCHEMA = os.getenv("REFDATA_SCHEMA", "ref")

# Seed fixtures shipped with the package unless overridden
SEED_DIR = os.getenv(
    "REFDATA_SEED_DIR", os.path.join(os.path.dirname(__file__), "seeds")
)
SEED_ACTOR = os.getenv("REFDATA_SEED_ACTOR", "seed")

# Environment configurations
TARGET = os.getenv("TARGET", "dev").lower()

# Destructive recreate is only allowed outside production
ALLOW_RECREATE = TARGET != "prod"


def validate_config():
    """
    Validate critical configuration parameters.
    Raises ConfigurationError if any required config is missing or invalid.

    :raises ConfigurationError: If configuration is invalid
    """
    if not REF_SCHEMA:
        raise ConfigurationError("REFDATA_SCHEMA is empty")

    if not REF_SCHEMA.replace("_", "").isalnum():
        raise ConfigurationError(
            f"Invalid schema name {REF_SCHEMA!r}: use letters, digits and underscores"
        )

    if not DB_PATH:
        raise ConfigurationError("Database path (REFDATA_DB_PATH) is not configured")

    if DB_PATH != ":memory:":
        db_dir = os.path.dirname(os.path.abspath(DB_PATH))
        try:
            os.makedirs(db_dir, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Unable to create database directory at {db_dir}: {e}"
            ) from e

    if not os.path.isdir(SEED_DIR):
        raise ConfigurationError(f"Seed directory does not exist: {SEED_DIR}")

    if not SEED_ACTOR:
        raise ConfigurationError("REFDATA_SEED_ACTOR is empty")

    if not TARGET:
        raise ConfigurationError("TARGET environment is not set")

    logger.debug("Configuration validation successful")
