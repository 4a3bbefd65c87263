"""
settings-tree: hierarchical, typed settings registry

Declare settings once in a tree of nodes, resolve their keys
deterministically (including per-item keys of named lists) and read or
write typed values in a QSettings-backed store.
"""

__version__ = "0.1.0"
__author__ = "settings-tree Contributors"

from .settings import (
    AppSettings,
    QSettingsStore,
    SettingsTree,
    SettingsTreeNamedListNode,
    SettingsTreeNode,
)
from .utils.logging_config import setup_logging

__all__ = [
    "AppSettings",
    "QSettingsStore",
    "SettingsTree",
    "SettingsTreeNamedListNode",
    "SettingsTreeNode",
    "setup_logging",
]
