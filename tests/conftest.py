"""Shared fixtures for settings-tree tests."""

from pathlib import Path
from typing import Iterator

import pytest
from PySide6.QtCore import QSettings

from settings_tree.settings import (
    QSettingsStore,
    SettingsTree,
    SettingsTreeNode,
    set_default_store,
)


@pytest.fixture(autouse=True)
def isolated_default_store(tmp_path: Path) -> Iterator[QSettingsStore]:
    """Point the default store to a temporary INI file."""
    default = QSettingsStore.from_files(tmp_path / "default.ini")
    set_default_store(default)
    SettingsTree.reset()
    yield default
    SettingsTree.reset()
    set_default_store(None)


@pytest.fixture
def store(tmp_path: Path) -> QSettingsStore:
    """Local-only store on a temporary INI file."""
    return QSettingsStore.from_files(tmp_path / "local.ini")


@pytest.fixture
def global_path(tmp_path: Path) -> Path:
    """Global INI file with a few values already present."""
    path = tmp_path / "global.ini"
    global_settings = QSettings(str(path), QSettings.Format.IniFormat)
    global_settings.setValue("network/proxy", "proxy.example.org")
    global_settings.setValue("connections/items/shared/url", "https://shared.example.org")
    global_settings.sync()
    return path


@pytest.fixture
def layered_store(tmp_path: Path, global_path: Path) -> QSettingsStore:
    """Store with a writable local layer and a read-only global layer."""
    return QSettingsStore.from_files(tmp_path / "local.ini", global_path)


@pytest.fixture
def root(store: QSettingsStore) -> SettingsTreeNode:
    """Root node bound to the local-only store."""
    return SettingsTreeNode.create_root_node(store)
