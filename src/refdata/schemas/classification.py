"""Commodity (UNSPSC, HS) and industry (ISIC, NAICS) classification tables.

Both families share one shape: a domain table naming the standard, and
a code table keyed by (domain_code, code) whose rows form a forest
inside their domain.
"""

from typing import Tuple

from .base import (
    ForeignKey,
    SelfReference,
    TableDefinition,
    with_common_columns,
)


def _domain_table(name: str, examples: str) -> TableDefinition:
    return TableDefinition(
        name=name,
        columns=with_common_columns({
            "code": {
                "type": "VARCHAR",
                "nullable": False,
                "description": f"Domain key ({examples}, custom)",
            },
            "name": {
                "type": "VARCHAR",
                "nullable": False,
                "description": "Standard name",
            },
            "standard": {
                "type": "VARCHAR",
                "nullable": True,
                "description": "Standard family, e.g. ISIC or CUSTOM",
            },
            "version": {
                "type": "VARCHAR",
                "nullable": True,
                "description": "Edition of the standard",
            },
        }),
        primary_key=("code",),
        comment=f"Classification domains ({examples}, custom).",
    )


def _code_table(name: str, domain_table: str) -> TableDefinition:
    return TableDefinition(
        name=name,
        columns=with_common_columns({
            "domain_code": {
                "type": "VARCHAR",
                "nullable": False,
                "description": "Owning domain",
            },
            "code": {
                "type": "VARCHAR",
                "nullable": False,
                "description": "Code within the domain",
            },
            "name": {
                "type": "VARCHAR",
                "nullable": False,
                "description": "English name",
            },
            "description": {
                "type": "VARCHAR",
                "nullable": True,
                "description": "Longer description for search and display",
            },
            "parent_code": {
                "type": "VARCHAR",
                "nullable": True,
                "description": "Parent code in the same domain",
            },
            "level_no": {
                "type": "INTEGER",
                "nullable": True,
                "description": "Depth in the tree, roots are level 1",
            },
        }),
        primary_key=("domain_code", "code"),
        foreign_keys=[ForeignKey(("domain_code",), domain_table, ("code",))],
        self_reference=SelfReference(
            column="parent_code",
            ref_column="code",
            scope_column="domain_code",
            level_column="level_no",
        ),
        indexes=[("domain_code", "parent_code"), ("domain_code", "level_no")],
        comment=f"Classification codes per {domain_table}.",
    )


COMMODITY_DOMAIN_TABLE = _domain_table("commodity_domain", "UNSPSC, HS")
COMMODITY_CODE_TABLE = _code_table("commodity_code", "commodity_domain")
INDUSTRY_DOMAIN_TABLE = _domain_table("industry_domain", "ISIC, NAICS")
INDUSTRY_CODE_TABLE = _code_table("industry_code", "industry_domain")

CODE_SEPARATOR = ":"


def encode_code(domain_code: str, code: str) -> str:
    """Label key for a composite-keyed code, e.g. ``isic:10``."""
    return f"{domain_code}{CODE_SEPARATOR}{code}"


def decode_code(value: str) -> Tuple[str, str]:
    """Split a ``domain:code`` label key back into its parts."""
    domain_code, sep, code = value.partition(CODE_SEPARATOR)
    if not sep or not domain_code or not code:
        raise ValueError(f"Expected 'domain:code', got {value!r}")
    return domain_code, code
