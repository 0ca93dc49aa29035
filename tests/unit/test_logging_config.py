"""Unit tests for logging configuration."""

import pytest

from refdata.exceptions import ForeignKeyViolationError, HierarchyError, SeedError
from refdata.logging_config import create_logger, log_exception, troubleshooting_hints


@pytest.mark.unit
class TestCreateLogger:
    """Test logger creation."""

    def test_console_output(self, capsys):
        """Test messages reach stdout with level and logger name."""
        logger = create_logger("refdata.test_console", log_level="INFO")
        logger.info("seeded")
        logger.debug("hidden")

        out = capsys.readouterr().out
        assert "[INFO]" in out
        assert "[refdata.test_console]" in out
        assert "seeded" in out
        assert "hidden" not in out

    def test_handlers_not_stacked(self):
        """Test creating a logger twice keeps a single console handler."""
        create_logger("refdata.test_stacked")
        logger = create_logger("refdata.test_stacked")
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_level_from_environment(self, monkeypatch):
        """Test REFDATA_LOG_LEVEL sets the default level."""
        monkeypatch.setenv("REFDATA_LOG_LEVEL", "warning")
        logger = create_logger("refdata.test_env_level")
        assert logger.level == 30

    def test_file_logging(self, temp_dir):
        """Test a plain-text copy is written to the log directory."""
        logger = create_logger("refdata.test_file", log_dir=str(temp_dir / "logs"))
        logger.warning("written to file")
        for handler in logger.handlers:
            handler.flush()

        content = (temp_dir / "logs" / "refdata.test_file.log").read_text(encoding="utf-8")
        assert "WARNING - written to file" in content


@pytest.mark.unit
class TestLogException:
    """Test structured failure reports."""

    def test_report_includes_context_and_cause(self, capsys):
        """Test context entries and the chained cause are logged."""
        logger = create_logger("refdata.test_report")
        cause = ForeignKeyViolationError("locale 'xx' does not exist", table="label")
        try:
            raise SeedError("Seed step 'labels_fr' failed") from cause
        except SeedError as e:
            log_exception(logger, e, {"step": "labels_fr", "fixture": "labels/fr.csv"})

        out = capsys.readouterr().out
        assert "Error Type: SeedError" in out
        assert "step: labels_fr" in out
        assert "fixture: labels/fr.csv" in out
        assert "Caused by: ForeignKeyViolationError" in out
        assert "refdata seed" in out
        assert "refdata check" in out

    def test_label_context(self, capsys):
        """Test a plain string context is logged as a label."""
        logger = create_logger("refdata.test_label")
        log_exception(logger, RuntimeError("disk full"), context="Parquet Save")

        out = capsys.readouterr().out
        assert "Context: Parquet Save" in out
        assert "💡" not in out

    def test_most_specific_hint(self):
        """Test hierarchy errors get the tree hint rather than the generic one."""
        hints = troubleshooting_hints(HierarchyError("cycle"))
        assert len(hints) == 1
        assert "cycles" in hints[0]
