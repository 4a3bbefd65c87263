"""
Process-wide settings tree and introspection helpers.
"""

import logging
from typing import Any, Dict, Iterator, Optional

import orjson

from .entry import SettingsEntryBase
from .tree_node import SettingsTreeNamedListNode, SettingsTreeNode

logger = logging.getLogger(__name__)

PLUGINS_KEY = "plugins"


class SettingsTree:
    """Holds the root node shared by the application and its plugins."""

    _root: Optional[SettingsTreeNode] = None

    @classmethod
    def tree_root(cls) -> SettingsTreeNode:
        """Return the root node, created on the default store on first use."""
        if cls._root is None:
            cls._root = SettingsTreeNode.create_root_node()
            logger.debug("Settings tree root created")
        return cls._root

    @classmethod
    def reset(cls, root: Optional[SettingsTreeNode] = None) -> None:
        """Replace the root node (None drops it and creates a new one on next use)."""
        cls._root = root

    @classmethod
    def create_plugin_tree_node(cls, plugin_name: str) -> SettingsTreeNode:
        """Create (or return) the node holding the settings of a plugin."""
        plugins = cls.tree_root().create_child_node(PLUGINS_KEY)
        return plugins.create_child_node(plugin_name)

    @classmethod
    def unregister_plugin_tree_node(cls, plugin_name: str) -> None:
        """Unregister the node of a plugin. Its stored values are kept."""
        plugins = cls.tree_root().child_node(PLUGINS_KEY)
        if plugins is None:
            return
        node = plugins.child_node(plugin_name)
        if node is not None:
            plugins.unregister_child_node(node)


def iter_settings(node: SettingsTreeNode) -> Iterator[SettingsEntryBase]:
    """Yield the settings of a node and of all its descendants.

    Selected-item settings of named lists are included.
    """
    if isinstance(node, SettingsTreeNamedListNode):
        selected = node.selected_item_setting()
        if selected is not None:
            yield selected
    yield from node.children_settings()
    for child in node.children_nodes():
        yield from iter_settings(child)


def describe_node(node: SettingsTreeNode) -> Dict[str, Any]:
    """Describe a node, its entries and its sub-nodes as plain data.

    Args:
        node: Node to describe

    Returns:
        Nested dictionary suitable for documentation or UI generation
    """
    description: Dict[str, Any] = {
        "key": node.key,
        "complete_key": node.complete_key,
        "type": node.type.value,
        "settings": [
            {
                "key": setting.name,
                "definition_key": setting.definition_key(),
                "type": setting.settings_type().value,
                "default": setting.default_value_as_variant(),
                "description": setting.description,
            }
            for setting in node.children_settings()
        ],
        "nodes": [describe_node(child) for child in node.children_nodes()],
    }
    if isinstance(node, SettingsTreeNamedListNode):
        selected = node.selected_item_setting()
        description["selected_item_key"] = selected.definition_key() if selected else None
    return description


def dump_tree(node: SettingsTreeNode) -> bytes:
    """Serialize describe_node() of a node to indented JSON."""
    return orjson.dumps(
        describe_node(node),
        option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS,
        default=str,
    )
