"""Unit tests for parent-link validation and traversal.

Tests cover:
- Cycle detection over plain mappings
- Batch validation: missing parents, other domains, self-loops, cycles, levels
- Recursive ancestor/descendant queries
- Timezone alias resolution
"""

import pytest

from refdata.exceptions import ForeignKeyViolationError, HierarchyError, SchemaError
from refdata.hierarchy import (
    ancestors,
    descendants,
    find_cycles,
    resolve_canonical_timezone,
    validate_batch,
)
from refdata.schemas import get_table


def code(domain, value, name=None, parent=None, level=None):
    return {
        "domain_code": domain,
        "code": value,
        "name": name or f"{domain} {value}",
        "parent_code": parent,
        "level_no": level,
    }


# ============================================================================
# Cycle Detection
# ============================================================================

@pytest.mark.unit
class TestFindCycles:
    """Test cycle detection over parent links."""

    def test_forest_has_no_cycles(self):
        """Test a forest reports no cycles."""
        assert find_cycles({"a": None, "b": "a", "c": "b", "d": "a"}) == []

    def test_simple_cycle(self):
        """Test a three-node cycle is found."""
        cycles = find_cycles({"a": "b", "b": "c", "c": "a"})
        assert len(cycles) == 1
        assert sorted(cycles[0]) == ["a", "b", "c"]

    def test_self_loop(self):
        """Test a node pointing at itself is a cycle."""
        assert find_cycles({"a": "a"}) == [["a"]]

    def test_tail_into_cycle_reported_once(self):
        """Test a tail leading into a cycle reports only the cycle."""
        cycles = find_cycles({"x": "a", "a": "b", "b": "a"})
        assert len(cycles) == 1
        assert sorted(cycles[0]) == ["a", "b"]

    def test_dangling_parent_ends_walk(self):
        """Test an unknown parent ends the walk."""
        assert find_cycles({"a": "missing"}) == []


# ============================================================================
# Batch Validation
# ============================================================================

@pytest.mark.unit
class TestValidateBatch:
    """Validation runs before rows are written."""

    TABLE = get_table("industry_code")

    def validate(self, store, rows, **kwargs):
        validate_batch(store.con, store.schema, self.TABLE, rows, **kwargs)

    def test_parent_in_same_batch(self, populated_store):
        """Test a parent supplied in the same batch is accepted."""
        self.validate(populated_store, [
            code("isic", "01", parent="A", level=2),
            code("isic", "A", level=1),
        ])

    def test_parent_already_stored(self, populated_store):
        """Test a stored parent is accepted."""
        populated_store.upsert("industry_code", [code("isic", "A", level=1)])
        self.validate(populated_store, [code("isic", "01", parent="A", level=2)])

    def test_missing_parent(self, populated_store):
        """Test a missing parent raises ForeignKeyViolationError."""
        with pytest.raises(ForeignKeyViolationError, match="missing parent isic:Z"):
            self.validate(populated_store, [code("isic", "01", parent="Z", level=2)])

    def test_parent_in_other_domain(self, populated_store):
        """Test a parent from another domain is rejected."""
        populated_store.upsert("industry_code", [code("naics", "11", level=1)])

        with pytest.raises(ForeignKeyViolationError, match="exists only in naics"):
            self.validate(populated_store, [code("isic", "111", parent="11", level=2)])

    def test_self_loop(self, populated_store):
        """Test a code cannot be its own parent."""
        with pytest.raises(HierarchyError, match="its own parent"):
            self.validate(populated_store, [code("isic", "A", parent="A")])

    def test_cycle(self, populated_store):
        """Test parent links forming a cycle are rejected."""
        with pytest.raises(HierarchyError, match="cycle"):
            self.validate(populated_store, [
                code("isic", "A", parent="B"),
                code("isic", "B", parent="A"),
            ])

    def test_root_must_be_level_one(self, populated_store):
        """Test root codes must be level 1."""
        with pytest.raises(HierarchyError, match="root codes are level 1"):
            self.validate(populated_store, [code("isic", "A", level=2)])

    def test_child_level_follows_parent(self, populated_store):
        """Test a child's level is its parent's level plus one."""
        with pytest.raises(HierarchyError, match="is level 3"):
            self.validate(populated_store, [
                code("isic", "A", level=1),
                code("isic", "01", parent="A", level=3),
            ])

    def test_unknown_levels_are_not_checked(self, populated_store):
        """Test levels are only compared when both are known."""
        self.validate(populated_store, [
            code("isic", "A"),
            code("isic", "01", parent="A"),
        ])

    def test_stored_rows_win_on_insert(self, populated_store):
        """A batch row whose key exists is skipped, so its bad link is ignored."""
        populated_store.upsert("industry_code", [code("isic", "A", level=1)])
        self.validate(populated_store, [code("isic", "A", parent="A")])

    def test_replace_existing_checks_stored_rows(self, populated_store):
        """Test replacing a stored row re-validates its links."""
        populated_store.upsert("industry_code", [
            code("isic", "A", level=1),
            code("isic", "01", parent="A", level=2),
        ])

        with pytest.raises(HierarchyError, match="cycle"):
            self.validate(
                populated_store,
                [code("isic", "A", parent="01", level=None)],
                replace_existing=True,
            )

    def test_tables_without_links_pass(self, populated_store):
        """Test tables without parent links are not validated."""
        validate_batch(
            populated_store.con, "ref", get_table("currency"), [{"code": "USD", "name": "x"}]
        )

    def test_unscoped_timezone_links(self, schema_store):
        """Test timezone aliases need an existing canonical zone."""
        with pytest.raises(ForeignKeyViolationError, match="Etc/UTC"):
            validate_batch(schema_store.con, "ref", get_table("timezone"), [
                {"tzid": "UTC", "is_alias": True, "canonical_tzid": "Etc/UTC"},
            ])


# ============================================================================
# Traversal
# ============================================================================

@pytest.mark.unit
class TestTraversal:
    """Test ancestor and descendant queries."""

    @pytest.fixture
    def tree_store(self, populated_store):
        populated_store.upsert("industry_code", [
            code("isic", "C", name="Manufacturing", level=1),
            code("isic", "10", name="Food", parent="C", level=2),
            code("isic", "101", name="Meat", parent="10", level=3),
            code("isic", "11", name="Beverages", parent="C", level=2),
            code("naics", "C", name="Not the same C", level=1),
        ])
        return populated_store

    def test_ancestors_nearest_first(self, tree_store):
        """Test ancestors are returned nearest first."""
        chain = ancestors(tree_store.con, "ref", "industry_code", "101", domain="isic")
        assert [(a["code"], a["depth"]) for a in chain] == [("10", 1), ("C", 2)]
        assert chain[1]["name"] == "Manufacturing"

    def test_root_has_no_ancestors(self, tree_store):
        """Test a root code has no ancestors."""
        assert ancestors(tree_store.con, "ref", "industry_code", "C", domain="isic") == []

    def test_descendants_stay_in_domain(self, tree_store):
        """Test descendants never cross into another domain."""
        children = descendants(tree_store.con, "ref", "industry_code", "C", domain="isic")
        assert [d["code"] for d in children] == ["10", "11", "101"]

        assert descendants(tree_store.con, "ref", "industry_code", "C", domain="naics") == []

    def test_domain_required(self, tree_store):
        """Test domain-scoped tables require a domain."""
        with pytest.raises(SchemaError, match="requires a domain"):
            ancestors(tree_store.con, "ref", "industry_code", "101")

    def test_table_without_links(self, tree_store):
        """Test tables without parent links are rejected."""
        with pytest.raises(SchemaError, match="no parent links"):
            ancestors(tree_store.con, "ref", "currency", "USD")


@pytest.mark.unit
class TestTimezoneAliases:
    """Test alias resolution for timezones."""

    @pytest.fixture
    def tz_store(self, schema_store):
        schema_store.upsert("timezone", [
            {"tzid": "Etc/UTC", "display_name": "UTC", "utc_offset": "+00:00"},
            {"tzid": "Etc/Zulu", "is_alias": True, "canonical_tzid": "Etc/UTC"},
            {"tzid": "Zulu", "is_alias": True, "canonical_tzid": "Etc/Zulu"},
        ])
        return schema_store

    def test_alias_chain(self, tz_store):
        """Test an alias chain resolves to the terminal zone."""
        assert resolve_canonical_timezone(tz_store.con, "ref", "Zulu") == "Etc/UTC"

    def test_canonical_resolves_to_itself(self, tz_store):
        """Test a canonical zone resolves to itself."""
        assert resolve_canonical_timezone(tz_store.con, "ref", "Etc/UTC") == "Etc/UTC"

    def test_unknown_zone(self, tz_store):
        """Test an unknown zone resolves to None."""
        assert resolve_canonical_timezone(tz_store.con, "ref", "Mars/Olympus") is None
