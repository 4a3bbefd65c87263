"""
Settings migration.

Keeps track of the configuration version and moves values stored under
obsolete keys to the entries that replace them.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .entries import SettingsEntryBool, SettingsEntryString
from .entry import SettingsEntryBase
from .keys import DynamicKeyPart
from .tree import iter_settings
from .tree_node import SettingsTreeNode
from .types import ConfigVersion

logger = logging.getLogger(__name__)


@dataclass
class MigrationStep:
    """A migration from one configuration version to the next."""

    from_version: str
    to_version: str
    callback: Callable[[], None]


class SettingsMigrator:
    """Handles configuration migration between versions."""

    def __init__(
        self,
        version_setting: SettingsEntryString,
        first_run_setting: Optional[SettingsEntryBool] = None,
        migrated_from_setting: Optional[SettingsEntryString] = None,
    ):
        self.version_setting = version_setting
        self.first_run_setting = first_run_setting
        self.migrated_from_setting = migrated_from_setting
        self._steps: Dict[str, MigrationStep] = {}

    def add_step(
        self, from_version: str, to_version: str, callback: Callable[[], None]
    ) -> None:
        """Register the migration from from_version to to_version."""
        self._steps[from_version] = MigrationStep(from_version, to_version, callback)

    def ensure_version(self, current_version: str = ConfigVersion.CURRENT.value) -> None:
        """Ensure configuration version is set and handle migrations."""
        if not self.version_setting.exists():
            # First run - set current version
            self.version_setting.set_value(current_version)
            if self.first_run_setting is not None:
                self.first_run_setting.set_value(True)
            logger.info("First run detected, initializing configuration")
            return

        stored_version = self.version_setting.value()
        if stored_version != current_version:
            self._migrate_config(stored_version, current_version)

    def _migrate_config(self, from_version: str, to_version: str) -> None:
        """Run the chain of steps leading from from_version to to_version."""
        logger.info(f"Migrating configuration from {from_version} to {to_version}")

        version = from_version
        visited = set()
        while version != to_version and version not in visited:
            visited.add(version)
            step = self._steps.get(version)
            if step is None:
                logger.warning(f"No migration step registered from version {version}")
                break
            logger.debug(f"Performing migration from {step.from_version} to {step.to_version}")
            step.callback()
            version = step.to_version

        # Update version after migration
        self.version_setting.set_value(to_version)
        if self.migrated_from_setting is not None:
            self.migrated_from_setting.set_value(from_version)
        logger.info(f"Migration from {from_version} to {to_version} completed")

    def migrate_key(
        self,
        setting: SettingsEntryBase,
        old_key: str,
        dynamic_key_part: DynamicKeyPart = None,
    ) -> bool:
        """Move the value stored at old_key to setting.

        Returns:
            True if a value was found at old_key and moved.
        """
        moved = setting.copy_value_from_key(
            old_key, dynamic_key_part, remove_setting_at_key=True
        )
        if moved:
            logger.info(f"Migrated setting '{old_key}' -> '{setting.key(dynamic_key_part)}'")
        return moved


def entries_for_key(root: SettingsTreeNode, key: str) -> List[SettingsEntryBase]:
    """Return the settings below root whose definition key matches a concrete key."""
    return [setting for setting in iter_settings(root) if setting.key_is_valid(key)]
