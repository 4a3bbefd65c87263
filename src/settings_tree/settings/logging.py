"""
Logging-related settings.
"""

import logging
from pathlib import Path

from .entries import SettingsEntryBool, SettingsEntryString
from .tree_node import SettingsTreeNode

logger = logging.getLogger(__name__)

LOG_FILE_PATH = "logs/settings_tree.csv"
VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings:
    """Manages logging-related settings, declared under a 'logging' node."""

    def __init__(self, parent: SettingsTreeNode):
        self.node = parent.create_child_node("logging")
        self._console_enabled = self.node.create_setting(
            SettingsEntryBool, "console_enabled", False, "Log to the console"
        )
        self._console_level = self.node.create_setting(
            SettingsEntryString, "console_level", "INFO", "Console logging level"
        )
        self._console_use_colors = self.node.create_setting(
            SettingsEntryBool, "console_use_colors", True, "Colorize console log levels"
        )
        self._file_enabled = self.node.create_setting(
            SettingsEntryBool, "file_enabled", False, "Log to a CSV file"
        )
        self._file_path = self.node.create_setting(
            SettingsEntryString,
            "file_path",
            LOG_FILE_PATH,
            "Path of the CSV log file",
            minimum_length=1,
        )

    # === CONSOLE LOGGING SETTINGS ===

    @property
    def console_logging(self) -> bool:
        """Check if console logging is enabled."""
        return self._console_enabled.value()

    @console_logging.setter
    def console_logging(self, value: bool) -> None:
        self._console_enabled.set_value(value)

    @property
    def console_log_level(self) -> str:
        """Get console logging level."""
        return self._console_level.value()

    @console_log_level.setter
    def console_log_level(self, value: str) -> None:
        """Set console logging level, ignoring unknown level names."""
        if value.upper() in VALID_LEVELS:
            self._console_level.set_value(value.upper())
        else:
            logger.warning(
                f"Invalid console log level: {value}, keeping current: {self.console_log_level}"
            )

    @property
    def console_use_colors(self) -> bool:
        """Check if console should use colors."""
        return self._console_use_colors.value()

    @console_use_colors.setter
    def console_use_colors(self, value: bool) -> None:
        self._console_use_colors.set_value(value)

    # === FILE LOGGING SETTINGS ===

    @property
    def file_logging(self) -> bool:
        """Check if file logging is enabled."""
        return self._file_enabled.value()

    @file_logging.setter
    def file_logging(self, value: bool) -> None:
        self._file_enabled.set_value(value)

    @property
    def log_file_path(self) -> str:
        return self._file_path.value()

    @log_file_path.setter
    def log_file_path(self, value: str) -> None:
        self._file_path.set_value(value)

    @property
    def log_file_absolute_path(self) -> Path:
        """Get absolute path to log file."""
        return Path(self.log_file_path).resolve()
