"""Country and subdivision tables (ISO 3166-1 / ISO 3166-2).

Fields (country):
- code2: ISO 3166-1 alpha-2, primary key (e.g. "SA")
- code3: ISO 3166-1 alpha-3 (e.g. "SAU")
- numeric3: ISO 3166-1 numeric-3, kept as text to preserve leading zeros
- name / official_name: English canonical short and official names
- region / subregion: UN M49 grouping

Fields (state_region):
- code: ISO 3166-2 subdivision code (e.g. "SA-01")
- country_code2: owning country
- category: "region", "province", "state", "emirate", ...
- parent_code: optional enclosing subdivision
"""

from .base import ForeignKey, SelfReference, TableDefinition, with_common_columns

COUNTRY_SCHEMA = with_common_columns({
    "code2": {
        "type": "VARCHAR",
        "nullable": False,
        "length": 2,
        "description": "ISO 3166-1 alpha-2 code",
    },
    "code3": {
        "type": "VARCHAR",
        "nullable": True,
        "length": 3,
        "description": "ISO 3166-1 alpha-3 code",
    },
    "numeric3": {
        "type": "VARCHAR",
        "nullable": True,
        "length": 3,
        "description": "ISO 3166-1 numeric-3 code",
    },
    "name": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "Short name (English canonical)",
    },
    "official_name": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Official name",
    },
    "region": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "UN M49 region, e.g. Asia",
    },
    "subregion": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "UN M49 subregion, e.g. Western Asia",
    },
})

COUNTRY_TABLE = TableDefinition(
    name="country",
    columns=COUNTRY_SCHEMA,
    primary_key=("code2",),
    unique=[("code3",), ("numeric3",)],
    comment="ISO 3166-1 country codes (alpha-2 PK).",
)

STATE_REGION_SCHEMA = with_common_columns({
    "code": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "ISO 3166-2 subdivision code",
    },
    "country_code2": {
        "type": "VARCHAR",
        "nullable": False,
        "length": 2,
        "description": "Owning country (alpha-2)",
    },
    "name": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "Subdivision name",
    },
    "category": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Subdivision category (region, state, emirate, ...)",
    },
    "parent_code": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Enclosing subdivision, if any",
    },
})

STATE_REGION_TABLE = TableDefinition(
    name="state_region",
    columns=STATE_REGION_SCHEMA,
    primary_key=("code",),
    foreign_keys=[ForeignKey(("country_code2",), "country", ("code2",))],
    self_reference=SelfReference(column="parent_code", ref_column="code"),
    indexes=[("country_code2",), ("parent_code",), ("category",)],
    comment="ISO 3166-2 subdivision codes.",
)
