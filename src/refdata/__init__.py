"""Reference data store package.

This package defines, seeds and queries the shared reference tables
(countries, subdivisions, currencies, languages, locales, time zones,
units of measure, commodity and industry codes, i18n labels) kept in
a DuckDB database.
"""

import logging
import os
import sys


# Configure logging for the entire package
def setup_package_logging() -> logging.Logger:
    """Set up logging for the refdata package."""
    logger = logging.getLogger(__name__)
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


logger = setup_package_logging()


def init_refdata_package() -> None:
    """Log package details at debug level."""
    logger.debug("🚀 Initializing Reference Data Store Package")
    logger.debug("   📦 Modules:")
    logger.debug("      • Schema Definition")
    logger.debug("      • Idempotent Seeding")
    logger.debug("      • Localized Name Resolution")

    package_path = os.path.dirname(os.path.abspath(__file__))
    logger.debug(f"   📂 Package Path: {package_path}")


init_refdata_package()

__version__ = "0.1.0"
