"""Currency table (ISO 4217).

Instruments that are not subdivided (gold, silver, SDR) carry neither
a symbol nor a minor-unit count.
"""

from .base import TableDefinition, with_common_columns

CURRENCY_SCHEMA = with_common_columns({
    "code": {
        "type": "VARCHAR",
        "nullable": False,
        "length": 3,
        "description": "ISO 4217 alphabetic code",
    },
    "name": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "English currency name",
    },
    "symbol": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Display symbol",
    },
    "minor_units": {
        "type": "INTEGER",
        "nullable": True,
        "description": "Number of decimal places",
    },
    "numeric3": {
        "type": "VARCHAR",
        "nullable": True,
        "length": 3,
        "description": "ISO 4217 numeric code",
    },
})

CURRENCY_TABLE = TableDefinition(
    name="currency",
    columns=CURRENCY_SCHEMA,
    primary_key=("code",),
    unique=[("numeric3",)],
    comment="ISO 4217 currency codes.",
)
