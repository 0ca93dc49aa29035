"""Time zone table (IANA tzdb).

Alias zones (e.g. US/Eastern) point at their canonical zone through
canonical_tzid.
"""

from .base import SelfReference, TableDefinition, with_common_columns

TIMEZONE_SCHEMA = with_common_columns({
    "tzid": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "IANA identifier, e.g. Asia/Riyadh",
    },
    "display_name": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "UI label",
    },
    "utc_offset": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Standard offset, e.g. +03:00",
    },
    "is_alias": {
        "type": "BOOLEAN",
        "nullable": False,
        "default": "false",
        "description": "True for backward-compatible link names",
    },
    "canonical_tzid": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Zone an alias resolves to",
    },
})

TIMEZONE_TABLE = TableDefinition(
    name="timezone",
    columns=TIMEZONE_SCHEMA,
    primary_key=("tzid",),
    self_reference=SelfReference(column="canonical_tzid", ref_column="tzid"),
    indexes=[("canonical_tzid",)],
    name_column="display_name",
    comment="IANA tzdb time zone identifiers.",
)
