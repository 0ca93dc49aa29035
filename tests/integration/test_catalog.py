"""Integration tests for catalog exports.

Tests cover:
- Parquet export of every table or a selection
- pandas frames in key order
- Export failures
"""

import pandas as pd
import pyarrow.parquet as pq
import pytest

from refdata.catalog import export_parquet, table_expr, table_frame
from refdata.exceptions import ExportError, SchemaError


@pytest.mark.integration
class TestExportParquet:
    """Test Parquet exports."""

    def test_export_all_tables(self, seeded_store, temp_dir):
        """Test every table is exported by default."""
        paths = export_parquet(seeded_store, str(temp_dir / "out"))

        assert len(paths) == 12
        currency = pq.read_table(temp_dir / "out" / "currency.parquet")
        assert currency.num_rows == 158
        assert "created_by" in currency.column_names

    def test_export_selected_tables(self, seeded_store, temp_dir):
        """Test only the selected tables are exported."""
        paths = export_parquet(seeded_store, str(temp_dir), tables=["country", "label"])

        assert [p.rsplit("/", 1)[-1] for p in paths] == ["country.parquet", "label.parquet"]
        labels = pq.read_table(temp_dir / "label.parquet").to_pandas()
        assert len(labels) == 1262
        assert set(labels["locale_code"]) == {"ar", "ms", "ta", "hi", "fr", "de"}

    def test_export_without_audit(self, seeded_store, temp_dir):
        """Test audit columns can be left out."""
        export_parquet(seeded_store, str(temp_dir), tables=["uom"], include_audit=False)

        uom = pq.read_table(temp_dir / "uom.parquet")
        assert "created_at" not in uom.column_names
        assert uom.column_names[0] == "code"

    def test_unknown_table(self, seeded_store, temp_dir):
        """Test unknown tables raise SchemaError."""
        with pytest.raises(SchemaError):
            export_parquet(seeded_store, str(temp_dir), tables=["planet"])

    def test_unwritable_directory(self, seeded_store, temp_dir):
        """Test an unwritable directory raises ExportError."""
        blocker = temp_dir / "file"
        blocker.write_text("not a directory")

        with pytest.raises(ExportError):
            export_parquet(seeded_store, str(blocker / "out"), tables=["uom"])


@pytest.mark.integration
class TestTableFrame:
    """Test pandas frames and ibis expressions."""

    def test_frame_in_key_order(self, seeded_store):
        """Test frames are sorted by primary key."""
        frame = table_frame(seeded_store, "currency")

        assert isinstance(frame, pd.DataFrame)
        assert len(frame) == 158
        assert list(frame["code"]) == sorted(frame["code"])
        assert "created_at" not in frame.columns

    def test_frame_limit(self, seeded_store):
        """Test limit caps the number of rows."""
        frame = table_frame(seeded_store, "industry_code", limit=5)

        assert len(frame) == 5
        assert list(frame.columns[:2]) == ["domain_code", "code"]

    def test_expression_schema(self, seeded_store):
        """Test expressions can include audit columns."""
        expr = table_expr(seeded_store, "language", include_audit=True)
        assert "updated_by" in expr.columns
