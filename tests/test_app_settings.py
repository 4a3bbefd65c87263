"""Tests for the application settings and logging setup."""

import logging
from pathlib import Path
from typing import Iterator

import pytest

from settings_tree import AppSettings, setup_logging
from settings_tree.settings import ConfigVersion, QSettingsStore
from settings_tree.utils.logging_config import CONSOLE_FORMAT, ColoredFormatter, CSVFormatter


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Restore the root logger handlers after a test."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


class TestSettingsInitialization:
    """Test settings initialization and basic operations."""

    def test_app_settings_init(self, store: QSettingsStore) -> None:
        """Test AppSettings can be initialized."""
        settings_obj = AppSettings(store)
        assert settings_obj.root.child_node("app") is not None
        assert settings_obj.root.child_node("logging") is not None
        assert settings_obj.version == ConfigVersion.CURRENT.value

    def test_first_run(self, store: QSettingsStore) -> None:
        """Test the first run flag is kept until marked complete."""
        assert AppSettings(store).is_first_run is True
        settings_obj = AppSettings(store)
        assert settings_obj.is_first_run is True
        settings_obj.set_first_run_complete()
        assert AppSettings(store).is_first_run is False

    def test_default_store(self, isolated_default_store: QSettingsStore) -> None:
        """Test AppSettings uses the default store when given none."""
        settings_obj = AppSettings()
        assert settings_obj.store is isolated_default_store
        assert settings_obj.get_settings_file_path() == isolated_default_store.file_name()

    def test_app_settings_validation(self, store: QSettingsStore) -> None:
        """Test settings validation returns result."""
        settings_obj = AppSettings(store)
        validation = settings_obj.validate()
        assert validation.is_valid
        assert validation.warnings == []

    def test_validation_reports_invalid_log_path(self, store: QSettingsStore) -> None:
        """Test an empty log file path is reported and can be removed."""
        settings_obj = AppSettings(store)
        store.set("logging/file_path", "")

        validation = settings_obj.validate(remove_invalid=True)
        assert not validation.is_valid
        assert settings_obj.logging.log_file_path == "logs/settings_tree.csv"


class TestLoggingSettings:
    """Test logging settings."""

    def test_defaults(self, store: QSettingsStore) -> None:
        """Test the logging defaults."""
        logging_settings = AppSettings(store).logging
        assert logging_settings.console_logging is False
        assert logging_settings.console_log_level == "INFO"
        assert logging_settings.console_use_colors is True
        assert logging_settings.file_logging is False

    def test_level_is_validated(self, store: QSettingsStore) -> None:
        """Test unknown levels are ignored and known ones normalized."""
        logging_settings = AppSettings(store).logging
        logging_settings.console_log_level = "debug"
        assert logging_settings.console_log_level == "DEBUG"
        logging_settings.console_log_level = "LOUD"
        assert logging_settings.console_log_level == "DEBUG"


class TestUtilsLogging:
    """Test logging configuration."""

    @pytest.mark.usefixtures("restore_logging")
    def test_logging_setup_with_settings(self, store: QSettingsStore) -> None:
        """Test logging setup works with settings."""
        settings_obj = AppSettings(store)
        settings_obj.logging.console_logging = True
        assert setup_logging(settings_obj.logging) is None

        logger = logging.getLogger("settings_tree")
        assert logger.level == logging.DEBUG
        assert len(logging.getLogger().handlers) == 1

    @pytest.mark.usefixtures("restore_logging")
    def test_file_logging(self, tmp_path: Path, store: QSettingsStore) -> None:
        """Test file logging writes CSV lines to the configured path."""
        settings_obj = AppSettings(store)
        settings_obj.logging.file_logging = True
        settings_obj.logging.log_file_path = str(tmp_path / "logs" / "app.csv")

        log_path = setup_logging(settings_obj.logging)
        assert log_path == tmp_path / "logs" / "app.csv"

        logging.getLogger("settings_tree.test").warning('Value "x" rejected')
        for handler in logging.getLogger().handlers:
            handler.flush()
        lines = log_path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == CSVFormatter.header()
        assert any(line.endswith('"Value ""x"" rejected"') for line in lines)


class TestFormatters:
    """Test the console and CSV formatters."""

    def _record(self, name: str, level: int, message: str) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 12, message, None, None)

    def test_colored_level_only(self) -> None:
        """Test only the level field is colored."""
        formatter = ColoredFormatter(fmt=CONSOLE_FORMAT)
        record = self._record("settings_tree.INFO", logging.INFO, "INFO inside message")
        formatted = formatter.format(record)

        assert formatted.count(ColoredFormatter.COLORS["INFO"]) == 1
        assert f"{ColoredFormatter.COLORS['INFO']}INFO    {ColoredFormatter.RESET}" in formatted
        assert formatted.endswith(": settings_tree.INFO : INFO inside message")
        assert record.levelname == "INFO"

    def test_csv_row(self) -> None:
        """Test each record gives one quoted row, with line breaks escaped."""
        formatter = CSVFormatter(datefmt="%Y-%m-%d")
        row = formatter.format(self._record("settings_tree.store", logging.WARNING, 'a "b"\nc'))

        assert "\n" not in row
        fields = row.split(";")
        assert len(fields) == len(CSVFormatter.FIELDS)
        assert fields[1] == '"WARNING"'
        assert fields[3] == '"settings_tree.store"'
        assert fields[4] == '"12"'
        assert fields[5] == '"a ""b""\\nc"'

    def test_header(self) -> None:
        """Test the header names every column."""
        assert CSVFormatter.header() == '"timestamp";"level";"duration";"logger";"line";"message"'
