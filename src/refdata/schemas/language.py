"""Language (ISO 639) and locale (BCP 47) tables.

A locale's direction is optional; when absent the direction of its
language applies.
"""

from .base import DIRECTION_VALUES, ForeignKey, TableDefinition, with_common_columns

LANGUAGE_SCHEMA = with_common_columns({
    "code": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "ISO 639-1 code where one exists (e.g. en, ar)",
    },
    "name": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "English name",
    },
    "native_name": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Name in the language itself",
    },
    "iso639_2": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "ISO 639-2/T three-letter code",
    },
    "direction": {
        "type": "VARCHAR",
        "nullable": False,
        "default": "'ltr'",
        "allowed": DIRECTION_VALUES,
        "description": "Text direction",
    },
})

LANGUAGE_TABLE = TableDefinition(
    name="language",
    columns=LANGUAGE_SCHEMA,
    primary_key=("code",),
    comment="ISO 639 language codes (prefer ISO 639-1).",
)

LOCALE_SCHEMA = with_common_columns({
    "code": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "BCP 47 tag, e.g. en-US",
    },
    "language_code": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "Language of the locale",
    },
    "country_code2": {
        "type": "VARCHAR",
        "nullable": True,
        "length": 2,
        "description": "Country qualifier, if any",
    },
    "script": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "ISO 15924 script (Latn, Arab, ...)",
    },
    "name": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "Display label, e.g. English (United States)",
    },
    "direction": {
        "type": "VARCHAR",
        "nullable": True,
        "allowed": DIRECTION_VALUES,
        "description": "Overrides the language direction when set",
    },
})

LOCALE_TABLE = TableDefinition(
    name="locale",
    columns=LOCALE_SCHEMA,
    primary_key=("code",),
    foreign_keys=[
        ForeignKey(("language_code",), "language", ("code",)),
        ForeignKey(("country_code2",), "country", ("code2",)),
    ],
    indexes=[("language_code",), ("country_code2",)],
    comment="Locales (BCP 47 tags) linked to language and optional country.",
)
