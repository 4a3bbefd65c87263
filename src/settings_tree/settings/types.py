"""
Shared types for the settings tree: enums, options, errors and results.
"""

from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from typing import List


class ConfigVersion(Enum):
    """Configuration layout versions."""

    V1_0 = "1.0"
    CURRENT = "1.0"


class SettingsOrigin(Enum):
    """Layer of the store that currently supplies a key."""

    ANY = "any"
    LOCAL = "local"
    GLOBAL = "global"


class SettingsOption(Flag):
    """Options of a settings entry."""

    NONE = 0
    SAVE_FORMER_VALUE = auto()


class SettingsType(Enum):
    """Type of a settings entry, used for introspection."""

    CUSTOM = "custom"
    VARIANT = "variant"
    STRING = "string"
    STRING_LIST = "string_list"
    VARIANT_MAP = "variant_map"
    BOOL = "bool"
    INTEGER = "integer"
    DOUBLE = "double"
    COLOR = "color"
    ENUM_FLAG = "enum_flag"


class NodeType(Enum):
    """Type of a tree node."""

    ROOT = "root"
    STANDARD = "standard"
    NAMED_LIST = "named_list"


class NodeOption(Flag):
    """Options of a tree node."""

    NONE = 0
    NAMED_LIST_SELECTED_ITEM_SETTING = auto()


class SettingsError(Exception):
    """Base exception for settings tree errors."""

    pass


class ArityError(SettingsError):
    """Raised when the number of dynamic key parts does not match a key template."""

    pass


class KeyCollisionError(SettingsError):
    """Raised when a node or entry is registered at a key already used by a sibling."""

    pass


class UnsupportedOperationError(SettingsError):
    """Raised when an operation is not supported by the node it is called on."""

    pass


@dataclass
class ValidationResult:
    """Result of validating stored settings."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
