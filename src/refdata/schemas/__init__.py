"""Table definitions for the reference data schema.

This package contains one definition per reference table, grouped by
the standard they follow:
- geography: ISO 3166-1 countries, ISO 3166-2 subdivisions
- currency: ISO 4217
- language: ISO 639 languages, BCP 47 locales
- timezone: IANA tzdb
- uom: UN/ECE Recommendation 20
- classification: UNSPSC/HS commodity and ISIC/NAICS industry codes
- label: translations of any of the above
"""

from typing import Dict, Tuple

from refdata.exceptions import SchemaError

from .base import TableDefinition
from .classification import (
    COMMODITY_CODE_TABLE,
    COMMODITY_DOMAIN_TABLE,
    INDUSTRY_CODE_TABLE,
    INDUSTRY_DOMAIN_TABLE,
    decode_code,
    encode_code,
)
from .currency import CURRENCY_TABLE
from .geography import COUNTRY_TABLE, STATE_REGION_TABLE
from .label import ENTITY_TYPES, LABEL_TABLE
from .language import LANGUAGE_TABLE, LOCALE_TABLE
from .timezone import TIMEZONE_TABLE
from .uom import QUANTITY_TYPES, UOM_TABLE

# Creation order: every table comes after the tables it references
TABLES = (
    COUNTRY_TABLE,
    STATE_REGION_TABLE,
    CURRENCY_TABLE,
    LANGUAGE_TABLE,
    LOCALE_TABLE,
    TIMEZONE_TABLE,
    UOM_TABLE,
    COMMODITY_DOMAIN_TABLE,
    COMMODITY_CODE_TABLE,
    INDUSTRY_DOMAIN_TABLE,
    INDUSTRY_CODE_TABLE,
    LABEL_TABLE,
)

TABLES_BY_NAME: Dict[str, TableDefinition] = {t.name: t for t in TABLES}


def get_table(name: str) -> TableDefinition:
    """Look up a table definition by name.

    Raises:
        SchemaError: If the table is not part of the reference schema
    """
    try:
        return TABLES_BY_NAME[name]
    except KeyError:
        raise SchemaError(
            f"Table '{name}' not found. "
            f"Available tables: {', '.join(TABLES_BY_NAME)}"
        ) from None


def entity_key(entity: str, code: str) -> Tuple[str, ...]:
    """Translate a label code into the primary key of the entity's table.

    Composite-keyed entities use the ``domain:code`` form.
    """
    if entity not in ENTITY_TYPES:
        raise SchemaError(
            f"Unknown entity '{entity}'. Expected one of: {', '.join(ENTITY_TYPES)}"
        )
    table = get_table(entity)
    if len(table.primary_key) == 2:
        return decode_code(code)
    return (code,)


__all__ = [
    "ENTITY_TYPES",
    "QUANTITY_TYPES",
    "TABLES",
    "TABLES_BY_NAME",
    "TableDefinition",
    "decode_code",
    "encode_code",
    "entity_key",
    "get_table",
]
