"""Unit tests for the table definitions.

Tests cover:
- Table ordering and references
- Entity registry and composite label keys
- Column helpers
"""

import pytest

from refdata.exceptions import SchemaError
from refdata.schemas import (
    ENTITY_TYPES,
    TABLES,
    TABLES_BY_NAME,
    decode_code,
    encode_code,
    entity_key,
    get_table,
)
from refdata.schemas.base import AUDIT_COLUMNS, with_common_columns


@pytest.mark.unit
class TestTableRegistry:
    """Test the table registry."""

    def test_twelve_tables(self):
        """Test the registry holds twelve tables."""
        assert len(TABLES) == 12
        assert len(TABLES_BY_NAME) == 12

    def test_references_point_backwards(self):
        """Every foreign key targets a table created earlier."""
        created = set()
        for table in TABLES:
            for fk in table.foreign_keys:
                assert fk.references in created, f"{table.name} -> {fk.references}"
            created.add(table.name)

    def test_every_entity_has_a_table(self):
        """Test every label entity tag names a table."""
        for entity in ENTITY_TYPES:
            assert entity in TABLES_BY_NAME

    def test_label_is_not_an_entity(self):
        """Test labels cannot be labelled."""
        assert "label" not in ENTITY_TYPES

    def test_get_table_unknown(self):
        """Test unknown table names raise SchemaError."""
        with pytest.raises(SchemaError, match="not found"):
            get_table("planet")

    def test_label_has_no_status(self):
        """Test label has no status column."""
        assert not get_table("label").has_status
        assert all(t.has_status for t in TABLES if t.name != "label")

    def test_audit_columns_everywhere(self):
        """Test every table carries the audit columns."""
        for table in TABLES:
            for column in AUDIT_COLUMNS:
                assert column in table.columns

    def test_self_references(self):
        """Test which tables carry parent links."""
        refs = {t.name: t.self_reference for t in TABLES if t.self_reference}
        assert set(refs) == {"state_region", "timezone", "commodity_code", "industry_code"}
        assert refs["industry_code"].scope_column == "domain_code"
        assert refs["industry_code"].level_column == "level_no"
        assert refs["timezone"].column == "canonical_tzid"


@pytest.mark.unit
class TestTableDefinition:
    """Test TableDefinition helpers."""

    def test_required_columns(self):
        """Test required columns exclude nullable and defaulted ones."""
        required = get_table("country").required_columns()
        assert "code2" in required
        assert "name" in required
        assert "status" not in required
        assert "official_name" not in required

    def test_data_columns_exclude_audit(self):
        """Test data columns leave out audit columns."""
        columns = get_table("currency").data_columns
        assert "created_at" not in columns
        assert columns[:3] == ["code", "name", "symbol"]

    def test_key_of(self):
        """Test key_of extracts the primary key in order."""
        table = get_table("industry_code")
        assert table.key_of({"domain_code": "isic", "code": "01", "name": "x"}) == ("isic", "01")

    def test_with_common_columns_without_status(self):
        """Test status columns can be left out."""
        columns = with_common_columns({"code": {"type": "VARCHAR"}}, status=False)
        assert "status" not in columns
        assert "created_by" in columns


@pytest.mark.unit
class TestEntityKeys:
    """Test label code handling for entities."""

    def test_simple_entity(self):
        """Test single-column entity codes."""
        assert entity_key("country", "SA") == ("SA",)

    def test_composite_entity(self):
        """Test 'domain:code' entity codes are split."""
        assert entity_key("industry_code", "isic:01") == ("isic", "01")

    def test_unknown_entity(self):
        """Test unknown entities raise SchemaError."""
        with pytest.raises(SchemaError, match="Unknown entity"):
            entity_key("label", "x")

    def test_encode_decode(self):
        """Test composite codes encode and decode."""
        assert encode_code("hs", "0101") == "hs:0101"
        assert decode_code("hs:0101") == ("hs", "0101")

    @pytest.mark.parametrize("value", ["isic", ":01", "isic:"])
    def test_decode_malformed(self, value):
        """Test malformed composite codes are rejected."""
        with pytest.raises(ValueError):
            decode_code(value)
