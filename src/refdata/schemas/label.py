"""Label table: i18n translations for reference entity names.

The English canonical name stays on the source table; this table holds
non-canonical translations. Composite-keyed entities (commodity_code,
industry_code) are addressed as "domain_code:code" (e.g. "isic:10").
"""

from .base import AUDIT_COLUMNS, ForeignKey, TableDefinition

ENTITY_TYPES = (
    "country",
    "state_region",
    "currency",
    "language",
    "locale",
    "timezone",
    "uom",
    "commodity_domain",
    "commodity_code",
    "industry_domain",
    "industry_code",
)

LABEL_SCHEMA = {
    "entity": {
        "type": "VARCHAR",
        "nullable": False,
        "allowed": ENTITY_TYPES,
        "description": "Reference table the label translates",
    },
    "code": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "Key of the translated row",
    },
    "locale_code": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "Locale of the translation",
    },
    "name": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "Translated display name",
    },
    "description": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Translated description",
    },
    **AUDIT_COLUMNS,
}

LABEL_TABLE = TableDefinition(
    name="label",
    columns=LABEL_SCHEMA,
    primary_key=("entity", "code", "locale_code"),
    foreign_keys=[ForeignKey(("locale_code",), "locale", ("code",))],
    indexes=[("locale_code",), ("entity", "locale_code")],
    comment="i18n translations for ref entity names. English canonical stays on source table.",
)
