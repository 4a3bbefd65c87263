"""
Key/value persistence used by the settings tree.

The tree only needs a flat string-keyed store. ``QSettingsStore`` provides
one on top of Qt's QSettings, with an optional read-only global layer that
is consulted when the local (user) layer does not hold a key.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Union

from PySide6.QtCore import QSettings

from .types import SettingsOrigin

logger = logging.getLogger(__name__)

ORGANIZATION_NAME = "settings_tree"
APPLICATION_NAME = "settings_tree"

LOCAL_FILE_ENV = "SETTINGS_TREE_LOCAL_FILE"
GLOBAL_FILE_ENV = "SETTINGS_TREE_GLOBAL_FILE"


class SettingsStore(ABC):
    """Flat key/value store contract required by the settings tree."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the value stored at key, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: Any) -> bool:
        """Store value at key. Returns False if the write failed."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Check whether key holds a value."""

    @abstractmethod
    def keys_with_prefix(self, prefix: str) -> List[str]:
        """Return all stored keys starting with prefix."""

    def origin_of(self, key: str) -> SettingsOrigin:
        """Return the layer currently serving key."""
        return SettingsOrigin.ANY


class QSettingsStore(SettingsStore):
    """
    Settings store backed by QSettings.

    Writes always go to the local layer. Reads fall back to the global
    layer, which is never written to.
    """

    def __init__(
        self,
        settings: Optional[QSettings] = None,
        global_settings: Optional[QSettings] = None,
    ):
        """Initialize the store.

        Args:
            settings: Writable local QSettings (default: native user scope)
            global_settings: Optional read-only QSettings used as fallback
        """
        if settings is None:
            settings = QSettings(
                QSettings.Format.NativeFormat,
                QSettings.Scope.UserScope,
                ORGANIZATION_NAME,
                APPLICATION_NAME,
            )
        self.settings = settings
        self.global_settings = global_settings

        logger.debug(
            f"Settings store initialized, local: {self.settings.fileName()}, "
            f"global: {self.global_settings.fileName() if self.global_settings else None}"
        )

    @classmethod
    def from_files(
        cls,
        local_path: Union[str, Path],
        global_path: Optional[Union[str, Path]] = None,
    ) -> "QSettingsStore":
        """Create a store on INI files.

        Args:
            local_path: Path of the writable INI file
            global_path: Optional path of the read-only global INI file
        """
        local = QSettings(str(local_path), QSettings.Format.IniFormat)
        global_settings = None
        if global_path is not None:
            global_settings = QSettings(str(global_path), QSettings.Format.IniFormat)
        return cls(local, global_settings)

    @classmethod
    def from_environment(cls) -> "QSettingsStore":
        """Create a store from the SETTINGS_TREE_* environment variables.

        Falls back to the native user-scope location when the local file
        variable is not set.
        """
        local_path = os.environ.get(LOCAL_FILE_ENV)
        global_path = os.environ.get(GLOBAL_FILE_ENV)
        if local_path:
            return cls.from_files(local_path, global_path or None)
        global_settings = None
        if global_path:
            global_settings = QSettings(global_path, QSettings.Format.IniFormat)
        return cls(None, global_settings)

    def get(self, key: str) -> Any:
        if self.settings.contains(key):
            return self.settings.value(key)
        if self.global_settings is not None and self.global_settings.contains(key):
            return self.global_settings.value(key)
        return None

    def set(self, key: str, value: Any) -> bool:
        try:
            self.settings.setValue(key, value)
        except OverflowError as e:
            logger.warning(f"Could not write setting '{key}': {e}")
            return False
        self.settings.sync()
        status = self.settings.status()
        if status != QSettings.Status.NoError:
            logger.warning(f"Could not write setting '{key}': {status}")
            return False
        return True

    def remove(self, key: str) -> None:
        self.settings.remove(key)
        self.settings.sync()

    def contains(self, key: str) -> bool:
        if self.settings.contains(key):
            return True
        return self.global_settings is not None and self.global_settings.contains(key)

    def keys_with_prefix(self, prefix: str) -> List[str]:
        keys = set(self.settings.allKeys())
        if self.global_settings is not None:
            keys.update(self.global_settings.allKeys())
        return sorted(key for key in keys if key.startswith(prefix))

    def origin_of(self, key: str) -> SettingsOrigin:
        if self.settings.contains(key):
            return SettingsOrigin.LOCAL
        if self.global_settings is not None and self.global_settings.contains(key):
            return SettingsOrigin.GLOBAL
        return SettingsOrigin.ANY

    def file_name(self) -> str:
        """Get the file path where local settings are stored."""
        return self.settings.fileName()

    def sync(self) -> None:
        """Force synchronization of settings to storage."""
        self.settings.sync()


_default_store: Optional[SettingsStore] = None


def default_store() -> SettingsStore:
    """Return the store used by nodes and entries created without one."""
    global _default_store
    if _default_store is None:
        _default_store = QSettingsStore.from_environment()
    return _default_store


def set_default_store(store: Optional[SettingsStore]) -> None:
    """Replace the default store. None resets it to the environment store."""
    global _default_store
    _default_store = store
