"""
Settings entries.

An entry declares one setting: its key template, default value,
description and options. ``SettingsEntryBase`` performs all store access
with untyped values; ``SettingsEntryByValue`` and ``SettingsEntryByReference``
add typed accessors, conversion and validation on top of it.
"""

import copy
import logging
import weakref
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, Optional, TypeVar, Union

from . import keys
from .keys import DynamicKeyPart
from .store import SettingsStore, default_store
from .types import ArityError, SettingsOption, SettingsOrigin, SettingsType

if TYPE_CHECKING:
    from .tree_node import SettingsTreeNode

logger = logging.getLogger(__name__)

FORMER_VALUE_SUFFIX = "_formervalue"

T = TypeVar("T")


class SettingsEntryBase(ABC):
    """
    Untyped settings entry.

    The entry is either declared under a tree node, in which case its key
    template is derived from the node's complete key, or under a plain
    section string.

    Example:
        >>> entry = SettingsEntryString("feed/%1/content", "news", "")
        >>> entry.key("release")
        'news/feed/release/content'
    """

    def __init__(
        self,
        key: str,
        parent: Union["SettingsTreeNode", str, None],
        default_value: Any = None,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        store: Optional[SettingsStore] = None,
    ):
        """Initialize the entry.

        Args:
            key: Key of the entry, relative to its parent node or section
            parent: Parent tree node, or a section string
            default_value: Value returned when nothing is stored
            description: Human-readable description
            options: Entry options
            store: Store to use (default: the parent node's store, then the default store)

        Raises:
            ArityError: If the key adds placeholders to a node-declared entry.
            ValueError: If the key is empty, or contains the separator under a node.
        """
        if not key:
            raise ValueError("Settings entry key cannot be empty")

        self._parent_ref: Optional["weakref.ref[SettingsTreeNode]"] = None
        if parent is None or isinstance(parent, str):
            self._key = keys.compose(parent or "", key)
        else:
            if keys.SEPARATOR in key:
                raise ValueError(
                    f"Settings entry key '{key}' cannot contain '{keys.SEPARATOR}' "
                    f"when declared under a tree node"
                )
            self._key = keys.compose(parent.complete_key, key)
            if keys.placeholder_count(self._key) != parent.named_nodes_count:
                raise ArityError(
                    f"Settings entry key '{self._key}' must have exactly "
                    f"{parent.named_nodes_count} placeholder(s), one per parent named list"
                )
            self._parent_ref = weakref.ref(parent)
            if store is None:
                store = parent.store

        self._name = key
        self._default_value = default_value
        self._description = description
        self._options = options
        self._store = store

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self._key}>"

    # === DEFINITION ===

    @property
    def name(self) -> str:
        """Key of the entry relative to its parent node or section."""
        return self._name

    @property
    def description(self) -> str:
        """Human-readable description of the entry."""
        return self._description

    @property
    def options(self) -> SettingsOption:
        return self._options

    @property
    def parent(self) -> Optional["SettingsTreeNode"]:
        """Tree node the entry was declared under, or None."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def store(self) -> SettingsStore:
        """Store the entry reads from and writes to."""
        if self._store is not None:
            return self._store
        return default_store()

    def settings_type(self) -> SettingsType:
        return SettingsType.CUSTOM

    def definition_key(self) -> str:
        """Key template with its placeholders left in place."""
        return self._key

    def has_dynamic_key(self) -> bool:
        """Check whether part of the key is built from dynamic parts."""
        return keys.has_placeholders(self._key)

    def key(self, dynamic_key_part: DynamicKeyPart = None) -> str:
        """Return the concrete key.

        Args:
            dynamic_key_part: A single part, a sequence of parts, or None

        Raises:
            ArityError: If the parts do not match the key's placeholders.
        """
        return keys.substitute(self._key, keys.to_dynamic_parts(dynamic_key_part))

    def key_is_valid(self, key: str) -> bool:
        """Check whether a concrete key belongs to this entry.

        For example "news/feed/release/content" is valid for an entry
        defined as "news/feed/%1/content".
        """
        return keys.matches_template(key, self._key)

    def _former_value_key(self, dynamic_key_part: DynamicKeyPart = None) -> str:
        return f"{self.key(dynamic_key_part)}{FORMER_VALUE_SUFFIX}"

    # === STORE ACCESS ===

    def exists(self, dynamic_key_part: DynamicKeyPart = None) -> bool:
        """Check whether a value is stored for the entry."""
        return self.store.contains(self.key(dynamic_key_part))

    def origin(self, dynamic_key_part: DynamicKeyPart = None) -> SettingsOrigin:
        """Return the store layer serving the entry, ANY if not stored."""
        return self.store.origin_of(self.key(dynamic_key_part))

    def remove(self, dynamic_key_part: DynamicKeyPart = None) -> None:
        """Remove the stored value of the entry."""
        self.store.remove(self.key(dynamic_key_part))

    def value_as_variant(
        self,
        dynamic_key_part: DynamicKeyPart = None,
        default_value_override: Any = None,
    ) -> Any:
        """Return the stored value, or the default.

        Args:
            dynamic_key_part: Dynamic parts of the key
            default_value_override: If not None, used instead of the entry's default
        """
        key = self.key(dynamic_key_part)
        store = self.store
        if store.contains(key):
            return store.get(key)
        if default_value_override is not None:
            return default_value_override
        return self._default_value

    def default_value_as_variant(self) -> Any:
        return self._default_value

    def former_value_as_variant(self, dynamic_key_part: DynamicKeyPart = None) -> Any:
        """Return the former value if saved, the current value otherwise."""
        if SettingsOption.SAVE_FORMER_VALUE in self._options:
            former_key = self._former_value_key(dynamic_key_part)
            if self.store.contains(former_key):
                return self.store.get(former_key)
        return self.value_as_variant(dynamic_key_part)

    def copy_value_from_key(
        self,
        key: str,
        dynamic_key_part: DynamicKeyPart = None,
        remove_setting_at_key: bool = False,
    ) -> bool:
        """Copy the value stored at another key into this entry.

        If the source key contains placeholders, they are filled with the
        same dynamic parts as the entry's key. No type conversion is done.

        Returns:
            True if the source key existed and was copied.
        """
        parts = keys.to_dynamic_parts(dynamic_key_part)
        old_key = keys.substitute(key, parts) if keys.has_placeholders(key) else key
        store = self.store
        if not store.contains(old_key):
            return False

        value = store.get(old_key)
        if not self._set_variant_value(value, parts):
            return False
        if remove_setting_at_key:
            store.remove(old_key)
        logger.debug(f"Copied setting value from '{old_key}' to '{self.key(parts)}'")
        return True

    def copy_value_to_key(self, key: str, dynamic_key_part: DynamicKeyPart = None) -> None:
        """Copy the value of this entry to another key."""
        parts = keys.to_dynamic_parts(dynamic_key_part)
        new_key = keys.substitute(key, parts) if keys.has_placeholders(key) else key
        self.store.set(new_key, self.value_as_variant(parts))

    def check_variant_value(self, value: Any) -> bool:
        """Check whether a raw stored value is acceptable for the entry."""
        return True

    def _set_variant_value(self, value: Any, dynamic_key_part: DynamicKeyPart = None) -> bool:
        """Write a raw value. All typed setters go through here.

        Returns:
            False if the store write failed.
        """
        key = self.key(dynamic_key_part)
        store = self.store
        if SettingsOption.SAVE_FORMER_VALUE in self._options and store.contains(key):
            current = store.get(key)
            if not self._variant_equals(current, value):
                store.set(self._former_value_key(dynamic_key_part), current)
        return store.set(key, value)

    def _variant_equals(self, first: Any, second: Any) -> bool:
        return first == second

    # === TREE ===

    def unregister(
        self,
        delete_values: bool = False,
        parents_named_items: DynamicKeyPart = None,
    ) -> None:
        """Unregister the entry from its parent node, if any."""
        parent = self.parent
        if parent is not None:
            parent.unregister_child_setting(self, delete_values, parents_named_items)


class _SettingsEntryTyped(SettingsEntryBase, Generic[T]):
    """Typed accessors shared by by-value and by-reference entries."""

    def __init__(
        self,
        key: str,
        parent: Union["SettingsTreeNode", str, None],
        default_value: Optional[T] = None,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        store: Optional[SettingsStore] = None,
    ):
        super().__init__(
            key,
            parent,
            self.convert_to_variant(default_value) if default_value is not None else None,
            description,
            options,
            store,
        )

    def value(self, dynamic_key_part: DynamicKeyPart = None) -> T:
        """Return the stored value, or the default."""
        return self.convert_from_variant(self.value_as_variant(dynamic_key_part))

    def value_with_default_override(
        self, default_value_override: T, dynamic_key_part: DynamicKeyPart = None
    ) -> T:
        """Return the stored value, or default_value_override if nothing is stored."""
        if self.exists(dynamic_key_part):
            return self.value(dynamic_key_part)
        return default_value_override

    def set_value(self, value: T, dynamic_key_part: DynamicKeyPart = None) -> bool:
        """Validate and store a value.

        Returns:
            False if the value was rejected by check_value or the write failed.
        """
        if not self.check_value(value):
            logger.debug(f"Value {value!r} rejected for setting '{self._key}'")
            return False
        return self._set_variant_value(self.convert_to_variant(value), dynamic_key_part)

    def default_value(self) -> T:
        return self.convert_from_variant(self.default_value_as_variant())

    def former_value(self, dynamic_key_part: DynamicKeyPart = None) -> T:
        """Return the former value, or the current value (or default) if none was saved."""
        return self.convert_from_variant(self.former_value_as_variant(dynamic_key_part))

    def check_variant_value(self, value: Any) -> bool:
        return self.check_value(self.convert_from_variant(value))

    def _variant_equals(self, first: Any, second: Any) -> bool:
        # Stored values may come back as text, compare them once converted
        return self.convert_from_variant(first) == self.convert_from_variant(second)

    @abstractmethod
    def convert_from_variant(self, value: Any) -> T:
        """Convert a raw stored value to the entry's type."""

    def convert_to_variant(self, value: T) -> Any:
        """Convert a typed value to the raw value written to the store."""
        return value

    def check_value(self, value: T) -> bool:
        """Check whether a typed value is valid for the entry."""
        return True


class SettingsEntryByValue(_SettingsEntryTyped[T]):
    """Base class for entries holding small immutable values (numbers, bools, enums)."""

    pass


class SettingsEntryByReference(_SettingsEntryTyped[T]):
    """
    Base class for entries holding larger or mutable values (strings, lists, maps).

    The default value is handed out as a copy so that callers cannot change it.
    """

    def default_value(self) -> T:
        return copy.deepcopy(super().default_value())
