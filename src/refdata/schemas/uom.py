"""Unit of measure table (UN/ECE Recommendation 20)."""

from .base import TableDefinition, with_common_columns

QUANTITY_TYPES = (
    "mass", "length", "volume", "area", "time", "temperature",
    "count", "force", "pressure", "energy", "data", "speed",
    "density", "frequency", "electric", "angle", "currency",
)

UOM_SCHEMA = with_common_columns({
    "code": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "UN/ECE Rec 20 code (e.g. KGM, MTR, LTR)",
    },
    "name": {
        "type": "VARCHAR",
        "nullable": False,
        "description": "English unit name",
    },
    "symbol": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Unit symbol (kg, m, L)",
    },
    "quantity_type": {
        "type": "VARCHAR",
        "nullable": True,
        "allowed": QUANTITY_TYPES,
        "description": "Physical quantity measured",
    },
})

UOM_TABLE = TableDefinition(
    name="uom",
    columns=UOM_SCHEMA,
    primary_key=("code",),
    comment="UN/ECE Recommendation 20 units of measure.",
)
