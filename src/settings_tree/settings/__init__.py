"""
Settings package for settings-tree.

This package provides a hierarchical, typed settings registry: tree nodes
organize settings entries, and entries read and write typed values in a
key/value store (QSettings by default).

Usage:
    from settings_tree.settings import SettingsTreeNode, SettingsEntryInteger

    root = SettingsTreeNode.create_root_node()
    network = root.create_child_node("network")
    timeout = network.create_setting(SettingsEntryInteger, "timeout_ms", 30000)
    timeout.set_value(500)
"""

from .core import AppSettings
from .entries import (
    SettingsEntryBool,
    SettingsEntryColor,
    SettingsEntryDouble,
    SettingsEntryEnum,
    SettingsEntryFlag,
    SettingsEntryInteger,
    SettingsEntryString,
    SettingsEntryStringList,
    SettingsEntryVariant,
    SettingsEntryVariantMap,
)
from .entry import SettingsEntryBase, SettingsEntryByReference, SettingsEntryByValue
from .logging import LoggingSettings
from .migration import SettingsMigrator, entries_for_key
from .store import QSettingsStore, SettingsStore, default_store, set_default_store
from .tree import SettingsTree, describe_node, dump_tree, iter_settings
from .tree_node import SettingsTreeNamedListNode, SettingsTreeNode
from .types import (
    ArityError,
    ConfigVersion,
    KeyCollisionError,
    NodeOption,
    NodeType,
    SettingsError,
    SettingsOption,
    SettingsOrigin,
    SettingsType,
    UnsupportedOperationError,
    ValidationResult,
)
from .validation import SettingsValidator

__all__ = [
    "AppSettings",
    "ArityError",
    "ConfigVersion",
    "KeyCollisionError",
    "LoggingSettings",
    "NodeOption",
    "NodeType",
    "QSettingsStore",
    "SettingsEntryBase",
    "SettingsEntryBool",
    "SettingsEntryByReference",
    "SettingsEntryByValue",
    "SettingsEntryColor",
    "SettingsEntryDouble",
    "SettingsEntryEnum",
    "SettingsEntryFlag",
    "SettingsEntryInteger",
    "SettingsEntryString",
    "SettingsEntryStringList",
    "SettingsEntryVariant",
    "SettingsEntryVariantMap",
    "SettingsError",
    "SettingsMigrator",
    "SettingsOption",
    "SettingsOrigin",
    "SettingsStore",
    "SettingsTree",
    "SettingsTreeNamedListNode",
    "SettingsTreeNode",
    "SettingsType",
    "SettingsValidator",
    "UnsupportedOperationError",
    "ValidationResult",
    "default_store",
    "describe_node",
    "dump_tree",
    "entries_for_key",
    "iter_settings",
    "set_default_store",
]
