"""
Application settings facade.
"""

import logging
from typing import Optional

from .entries import SettingsEntryBool, SettingsEntryString
from .logging import LoggingSettings
from .migration import SettingsMigrator
from .store import QSettingsStore, SettingsStore, default_store
from .tree_node import SettingsTreeNode
from .types import ConfigVersion, ValidationResult
from .validation import SettingsValidator

logger = logging.getLogger(__name__)


class AppSettings:
    """
    Settings tree of an application.

    Creates the root node on a store, declares the application's own
    bookkeeping settings and wires migration, validation and logging
    settings to it. Subsystems declare their settings under root.
    """

    def __init__(self, store: Optional[SettingsStore] = None):
        """Initialize the settings tree.

        Args:
            store: Store to use (default: the default store)
        """
        self.store = store if store is not None else default_store()
        self._root = SettingsTreeNode.create_root_node(self.store)

        app = self._root.create_child_node("app")
        self._version = app.create_setting(
            SettingsEntryString, "version", "", "Configuration version"
        )
        self._first_run = app.create_setting(
            SettingsEntryBool, "first_run", True, "Whether the application runs for the first time"
        )
        self._migrated_from = app.create_setting(
            SettingsEntryString, "migrated_from", "", "Version of the last migrated configuration"
        )

        # Initialize subsystems
        self._migrator = SettingsMigrator(self._version, self._first_run, self._migrated_from)
        self._validator = SettingsValidator(self._root, self.store)
        self._logging = LoggingSettings(self._root)

        # Ensure version and migrate if needed
        self._migrator.ensure_version()

        logger.debug(f"Settings initialized, stored at: {self.get_settings_file_path()}")

    # === SUBSYSTEM ACCESS ===

    @property
    def root(self) -> SettingsTreeNode:
        """Root node of the settings tree."""
        return self._root

    @property
    def migrator(self) -> SettingsMigrator:
        return self._migrator

    @property
    def logging(self) -> LoggingSettings:
        """Access logging settings subsystem."""
        return self._logging

    # === VERSION AND FIRST RUN ===

    @property
    def is_first_run(self) -> bool:
        """Check if this is the first run of the application."""
        return self._first_run.value()

    def set_first_run_complete(self) -> None:
        """Mark first run as complete."""
        self._first_run.set_value(False)

    @property
    def version(self) -> str:
        """Get configuration version."""
        return self._version.value_with_default_override(ConfigVersion.CURRENT.value)

    # === VALIDATION ===

    def validate(self, remove_invalid: bool = False) -> ValidationResult:
        """Validate current configuration."""
        return self._validator.validate(remove_invalid)

    # === UTILITY METHODS ===

    def get_settings_file_path(self) -> str:
        """Get the file path where settings are stored, if the store has one."""
        if isinstance(self.store, QSettingsStore):
            return self.store.file_name()
        return ""

    def sync(self) -> None:
        """Force synchronization of settings to storage."""
        if isinstance(self.store, QSettingsStore):
            self.store.sync()
