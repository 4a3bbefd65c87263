"""
Tree nodes organizing settings entries.

A tree has one root node. Standard nodes group entries under a fixed key;
named list nodes group entries under a dynamic item name, so that the same
set of settings can be stored for several named items (for instance one
group of settings per named connection).
"""

import logging
import weakref
from typing import Any, Dict, List, Optional, Type, TypeVar

from . import keys
from .entry import SettingsEntryBase
from .entries import SettingsEntryString
from .keys import DynamicKeyPart
from .store import SettingsStore, default_store
from .types import (
    ArityError,
    KeyCollisionError,
    NodeOption,
    NodeType,
    SettingsOrigin,
    UnsupportedOperationError,
)

logger = logging.getLogger(__name__)

ITEMS_KEY = "items"
SELECTED_ITEM_KEY = "selected"

EntryT = TypeVar("EntryT", bound=SettingsEntryBase)


class SettingsTreeNode:
    """
    Node of the settings tree.

    A node owns its child nodes and the entries created with create_setting().
    Entries registered explicitly with register_child_setting() are referenced
    weakly: they belong to the code that declared them and are dropped from
    the node when they are garbage collected.

    Example:
        >>> root = SettingsTreeNode.create_root_node(store)
        >>> network = root.create_child_node("network")
        >>> timeout = network.create_setting(SettingsEntryInteger, "timeout_ms", 30000)
        >>> timeout.key()
        'network/timeout_ms'
    """

    def __init__(self, store: Optional[SettingsStore] = None):
        """Initialize a root node.

        Use create_root_node() for a new tree and create_child_node() or
        create_named_list_node() on an existing node for everything else.

        Args:
            store: Store used by the entries of the tree (default: the default store)
        """
        self._type = NodeType.ROOT
        self._key = ""
        self._complete_key = ""
        self._named_nodes_count = 0
        self._parent_ref: Optional["weakref.ref[SettingsTreeNode]"] = None
        self._store = store
        self._children_nodes: Dict[str, SettingsTreeNode] = {}
        self._children_settings: Dict[str, "weakref.ref[SettingsEntryBase]"] = {}
        self._owned_settings: Dict[str, SettingsEntryBase] = {}

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} ({self._type.name}): {self._key}>"

    @classmethod
    def create_root_node(cls, store: Optional[SettingsStore] = None) -> "SettingsTreeNode":
        """Create the root node of a new tree."""
        return SettingsTreeNode(store)

    def _init(self, parent: "SettingsTreeNode", key: str) -> None:
        """Attach the node under parent and compute its complete key."""
        self._type = NodeType.STANDARD
        self._key = key
        self._parent_ref = weakref.ref(parent)
        self._store = parent._store
        self._named_nodes_count = parent.named_nodes_count
        self._complete_key = keys.compose(parent.complete_key, key)

    # === PROPERTIES ===

    @property
    def type(self) -> NodeType:
        return self._type

    @property
    def key(self) -> str:
        """Key of the node, without its parents."""
        return self._key

    @property
    def complete_key(self) -> str:
        """Key template of the node, including its parents."""
        return self._complete_key

    @property
    def named_nodes_count(self) -> int:
        """Number of named list nodes from the root down to this node, inclusive."""
        return self._named_nodes_count

    @property
    def parent(self) -> Optional["SettingsTreeNode"]:
        """Parent node, or None for the root."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def store(self) -> Optional[SettingsStore]:
        """Store given to the root of the tree, if any."""
        return self._store

    # === CHILDREN ===

    def children_nodes(self) -> List["SettingsTreeNode"]:
        return list(self._children_nodes.values())

    def child_node(self, key: str) -> Optional["SettingsTreeNode"]:
        """Return the child node at key, or None."""
        return self._children_nodes.get(key)

    def children_settings(self) -> List[SettingsEntryBase]:
        settings = []
        for ref in self._children_settings.values():
            setting = ref()
            if setting is not None:
                settings.append(setting)
        return settings

    def child_setting(self, key: str) -> Optional[SettingsEntryBase]:
        """Return the child setting at key, or None."""
        ref = self._children_settings.get(key)
        if ref is None:
            return None
        return ref()

    def _check_local_key(self, key: str) -> None:
        if not key:
            raise ValueError("Settings tree key cannot be empty")
        if keys.SEPARATOR in key:
            raise ValueError(f"Settings tree key '{key}' cannot contain '{keys.SEPARATOR}'")

    def create_child_node(self, key: str) -> "SettingsTreeNode":
        """Create a standard child node, or return the existing one at key.

        Raises:
            KeyCollisionError: If a setting or a node of another type exists at key.
        """
        self._check_local_key(key)
        existing = self._children_nodes.get(key)
        if existing is not None:
            if existing.type != NodeType.STANDARD:
                raise KeyCollisionError(
                    f"Key '{key}' in tree node '{self._complete_key}' already holds "
                    f"a {existing.type.name} node"
                )
            return existing
        if self.child_setting(key) is not None:
            raise KeyCollisionError(
                f"Key '{key}' in tree node '{self._complete_key}' already holds a setting"
            )

        node = SettingsTreeNode()
        node._init(self, key)
        self._register_child_node(node)
        return node

    def create_named_list_node(
        self, key: str, options: NodeOption = NodeOption.NONE
    ) -> "SettingsTreeNamedListNode":
        """Create a named list child node, or return the existing one at key.

        Re-declaring an existing named list merges the options: a missing
        selected-item setting is created, an existing one is kept.

        Raises:
            KeyCollisionError: If a setting or a node of another type exists at key.
        """
        self._check_local_key(key)
        existing = self._children_nodes.get(key)
        if existing is not None:
            if not isinstance(existing, SettingsTreeNamedListNode):
                raise KeyCollisionError(
                    f"Key '{key}' in tree node '{self._complete_key}' already holds "
                    f"a {existing.type.name} node"
                )
            existing._init_named_list(options)
            return existing
        if self.child_setting(key) is not None:
            raise KeyCollisionError(
                f"Key '{key}' in tree node '{self._complete_key}' already holds a setting"
            )

        node = SettingsTreeNamedListNode()
        node._init(self, key)
        node._init_named_list(options)
        self._register_child_node(node)
        return node

    def create_setting(self, entry_class: Type[EntryT], key: str, *args: Any, **kwargs: Any) -> EntryT:
        """Create an entry under this node and register it.

        Args:
            entry_class: Entry class to instantiate
            key: Key of the entry
            *args: Further positional arguments of the entry class (after key and parent)
            **kwargs: Keyword arguments of the entry class

        Returns:
            The new entry, owned by the node until unregistered.
        """
        entry = entry_class(key, self, *args, **kwargs)
        self.register_child_setting(entry, key, owned=True)
        return entry

    def _register_child_node(self, node: "SettingsTreeNode") -> None:
        self._children_nodes[node.key] = node
        logger.debug(f"Registered {node.type.name} tree node '{node.complete_key}'")

    def register_child_setting(
        self, setting: SettingsEntryBase, key: str, owned: bool = False
    ) -> None:
        """Register a child setting.

        Args:
            setting: The setting, declared with this node as parent
            key: Key of the setting (without the keys of its parents)
            owned: If True, the node keeps the setting alive, otherwise it is
                dropped once the caller releases it

        Raises:
            KeyCollisionError: If a node, or a setting of another class, exists at key.
            ValueError: If the setting was not declared under this node at key.
        """
        self._check_local_key(key)
        if setting.parent is not self or setting.definition_key() != keys.compose(
            self._complete_key, key
        ):
            raise ValueError(
                f"Setting '{setting.definition_key()}' was not declared under "
                f"tree node '{self._complete_key}' with key '{key}'"
            )
        if key in self._children_nodes:
            raise KeyCollisionError(
                f"Key '{key}' in tree node '{self._complete_key}' already holds a node"
            )
        existing = self.child_setting(key)
        if existing is not None and existing is not setting:
            if type(existing) is not type(setting):
                raise KeyCollisionError(
                    f"Key '{key}' in tree node '{self._complete_key}' already holds "
                    f"a setting of type {existing.__class__.__name__}"
                )
            logger.debug(f"Replacing registration of setting '{setting.definition_key()}'")

        if existing is not setting:
            self._owned_settings.pop(key, None)
        if owned:
            self._owned_settings[key] = setting
        self._children_settings[key] = weakref.ref(setting, self._make_setting_finalizer(key))

    def _make_setting_finalizer(self, key: str) -> Any:
        node_ref = weakref.ref(self)

        def _finalize(ref: "weakref.ref[SettingsEntryBase]") -> None:
            node = node_ref()
            if node is not None and node._children_settings.get(key) is ref:
                del node._children_settings[key]

        return _finalize

    def unregister_child_setting(
        self,
        setting: SettingsEntryBase,
        delete_values: bool = False,
        parents_named_items: DynamicKeyPart = None,
    ) -> None:
        """Unregister a child setting.

        Args:
            setting: The setting to unregister
            delete_values: If True, also remove the setting's stored value
            parents_named_items: Named items of the parent named lists, needed
                to resolve the key of a dynamic setting when deleting values

        Raises:
            ArityError: If values are deleted and the named items do not resolve the key.
        """
        for key, ref in list(self._children_settings.items()):
            if ref() is setting:
                if delete_values:
                    setting.remove(parents_named_items)
                del self._children_settings[key]
                self._owned_settings.pop(key, None)
                logger.debug(f"Unregistered setting '{setting.definition_key()}'")
                return
        logger.debug(
            f"Setting '{setting.definition_key()}' is not registered "
            f"in tree node '{self._complete_key}'"
        )

    def unregister_child_node(self, node: "SettingsTreeNode") -> None:
        """Unregister a child node. Stored values are left untouched."""
        if self._children_nodes.get(node.key) is node:
            del self._children_nodes[node.key]
            logger.debug(f"Unregistered tree node '{node.complete_key}'")


class SettingsTreeNamedListNode(SettingsTreeNode):
    """
    Named list node.

    Settings below a named list are stored once per item, under
    ``<list>/items/<item>/...``. Items are not kept in memory: they are
    discovered from the keys present in the store.
    """

    def __init__(self, store: Optional[SettingsStore] = None):
        super().__init__(store)
        self._options = NodeOption.NONE
        self._selected_item_setting: Optional[SettingsEntryString] = None
        self._items_complete_key = ""

    def _init_named_list(self, options: NodeOption) -> None:
        """Set up the item slot and the optional selected-item setting."""
        parent = self.parent
        if self._type != NodeType.NAMED_LIST and parent is not None:
            self._type = NodeType.NAMED_LIST
            list_key = keys.compose(parent.complete_key, self._key)
            self._items_complete_key = keys.compose(list_key, ITEMS_KEY)
            self._named_nodes_count = parent.named_nodes_count + 1
            self._complete_key = keys.compose(
                self._items_complete_key, f"%{self._named_nodes_count}"
            )

        if (
            NodeOption.NAMED_LIST_SELECTED_ITEM_SETTING in options
            and self._selected_item_setting is None
            and parent is not None
        ):
            self._selected_item_setting = SettingsEntryString(
                keys.compose(self._key, SELECTED_ITEM_KEY),
                parent.complete_key,
                "",
                f"Selected item in the {self._key} list",
                store=self._store,
            )
        self._options |= options

    @property
    def options(self) -> NodeOption:
        return self._options

    def selected_item_setting(self) -> Optional[SettingsEntryString]:
        """Setting storing the selected item, if the list was created with one."""
        return self._selected_item_setting

    def _parent_items(self, parents_named_items: DynamicKeyPart) -> List[str]:
        parts = keys.to_dynamic_parts(parents_named_items)
        expected = self._named_nodes_count - 1
        if len(parts) != expected:
            raise ArityError(
                f"Named list '{self._complete_key}' expects {expected} parent named "
                f"item(s), got {len(parts)}: {parts}"
            )
        return parts

    def _item_prefix(self, item: str, parents: List[str]) -> str:
        return keys.substitute(self._complete_key, parents + [item]) + keys.SEPARATOR

    def _store_or_default(self) -> SettingsStore:
        return self._store if self._store is not None else default_store()

    def items(
        self,
        origin: SettingsOrigin = SettingsOrigin.ANY,
        parents_named_items: DynamicKeyPart = None,
    ) -> List[str]:
        """Return the names of the items stored in the list.

        Args:
            origin: Restrict to items with at least one key from this store layer
            parents_named_items: Named items of the parent named lists (if any)

        Raises:
            ArityError: If the number of parent named items does not match.
        """
        parents = self._parent_items(parents_named_items)
        prefix = keys.substitute(self._items_complete_key, parents) + keys.SEPARATOR
        store = self._store_or_default()

        items: List[str] = []
        for key in store.keys_with_prefix(prefix):
            item, separator, _ = key[len(prefix):].partition(keys.SEPARATOR)
            if not item or not separator or item in items:
                continue
            if origin != SettingsOrigin.ANY and store.origin_of(key) != origin:
                continue
            items.append(item)
        return sorted(items)

    def set_selected_item(self, item: str, parents_named_items: DynamicKeyPart = None) -> bool:
        """Set the selected item.

        Returns:
            False if the store write failed.

        Raises:
            UnsupportedOperationError: If the list has no selected-item setting.
            ArityError: If the number of parent named items does not match.
        """
        setting = self._require_selected_item_setting()
        return setting.set_value(item, self._parent_items(parents_named_items))

    def selected_item(self, parents_named_items: DynamicKeyPart = None) -> str:
        """Return the selected item, or an empty string.

        Raises:
            UnsupportedOperationError: If the list has no selected-item setting.
            ArityError: If the number of parent named items does not match.
        """
        setting = self._require_selected_item_setting()
        return setting.value(self._parent_items(parents_named_items))

    def _require_selected_item_setting(self) -> SettingsEntryString:
        if self._selected_item_setting is None:
            raise UnsupportedOperationError(
                f"Named list '{self._complete_key}' was not created with "
                f"the selected item setting option"
            )
        return self._selected_item_setting

    def delete_item(self, item: str, parents_named_items: DynamicKeyPart = None) -> None:
        """Delete every stored setting of an item, including nested lists.

        Clears the selection if the deleted item was selected.

        Raises:
            ArityError: If the number of parent named items does not match.
        """
        parents = self._parent_items(parents_named_items)
        if not item:
            raise ValueError("Named list item cannot be empty")
        store = self._store_or_default()
        prefix = self._item_prefix(item, parents)

        removed = 0
        for key in store.keys_with_prefix(prefix):
            store.remove(key)
            removed += 1

        setting = self._selected_item_setting
        if setting is not None and setting.value(parents) == item:
            setting.remove(parents)

        logger.debug(f"Deleted item '{item}' from named list '{self._key}' ({removed} keys)")

    def delete_all_items(self, parents_named_items: DynamicKeyPart = None) -> None:
        """Delete every item of the list."""
        parents = self._parent_items(parents_named_items)
        for item in self.items(parents_named_items=parents):
            self.delete_item(item, parents)
        setting = self._selected_item_setting
        if setting is not None:
            setting.remove(parents)
