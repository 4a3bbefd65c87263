"""Tests for the settings entry base and its typed wrappers."""

from typing import Any

import pytest

from settings_tree.settings import (
    ArityError,
    QSettingsStore,
    SettingsEntryInteger,
    SettingsEntryString,
    SettingsEntryStringList,
    SettingsOption,
    SettingsOrigin,
    SettingsTreeNode,
    SettingsType,
)


class FailingStore(QSettingsStore):
    """Store whose writes always fail."""

    def set(self, key: str, value: Any) -> bool:
        return False


class TestEndToEnd:
    """Test the basic declare/read/write/remove cycle."""

    def test_timeout_example(self, root: SettingsTreeNode) -> None:
        """Test default fallback, write, read and remove."""
        network = root.create_child_node("network")
        timeout_ms = network.create_setting(SettingsEntryInteger, "timeoutMs", 30000)

        assert timeout_ms.key() == "network/timeoutMs"
        assert timeout_ms.value() == 30000
        assert timeout_ms.set_value(500) is True
        assert timeout_ms.value() == 500
        timeout_ms.remove()
        assert timeout_ms.value() == 30000
        assert timeout_ms.default_value() == 30000


class TestKeys:
    """Tests for key resolution of entries."""

    def test_static_key(self, root: SettingsTreeNode) -> None:
        """Test a node-declared entry without dynamic parts."""
        entry = root.create_child_node("ui").create_setting(SettingsEntryString, "theme", "dark")
        assert entry.definition_key() == "ui/theme"
        assert entry.has_dynamic_key() is False
        assert entry.key() == "ui/theme"
        with pytest.raises(ArityError):
            entry.key("extra")

    def test_dynamic_key_arity(self, root: SettingsTreeNode) -> None:
        """Test key() succeeds only with one part per placeholder."""
        connections = root.create_named_list_node("connections")
        url = connections.create_setting(SettingsEntryString, "url", "")

        assert url.definition_key() == "connections/items/%1/url"
        assert url.has_dynamic_key() is True
        assert url.key("local") == "connections/items/local/url"
        assert url.key(["local"]) == "connections/items/local/url"
        with pytest.raises(ArityError):
            url.key()
        with pytest.raises(ArityError):
            url.key(["a", "b"])
        with pytest.raises(ArityError):
            url.value()

    def test_section_entry(self, store: QSettingsStore) -> None:
        """Test an entry declared under a section string."""
        entry = SettingsEntryString("feed/%1/%2/content", "news", "", store=store)
        assert entry.parent is None
        assert entry.key(["release", "27"]) == "news/feed/release/27/content"
        assert entry.key_is_valid("news/feed/release/27/content")
        assert not entry.key_is_valid("news/feed/release/content")

    def test_placeholder_in_node_entry_key_raises(self, root: SettingsTreeNode) -> None:
        """Test a node-declared entry cannot add placeholders of its own."""
        network = root.create_child_node("network")
        with pytest.raises(ArityError):
            SettingsEntryInteger("timeout_%1", network, 0)

    def test_separator_in_node_entry_key_raises(self, root: SettingsTreeNode) -> None:
        """Test a node-declared entry key is a single segment."""
        with pytest.raises(ValueError):
            SettingsEntryInteger("a/b", root, 0)

    def test_empty_key_raises(self, store: QSettingsStore) -> None:
        """Test an entry needs a key."""
        with pytest.raises(ValueError):
            SettingsEntryString("", "section", store=store)


class TestStoreAccess:
    """Tests for exists, remove, origin and variant accessors."""

    def test_exists_and_remove(self, root: SettingsTreeNode) -> None:
        """Test remove() is idempotent."""
        entry = root.create_setting(SettingsEntryString, "name", "anonymous")
        assert entry.exists() is False
        entry.set_value("alice")
        assert entry.exists() is True
        entry.remove()
        assert entry.exists() is False
        entry.remove()
        assert entry.value() == "anonymous"

    def test_value_as_variant_default_override(self, root: SettingsTreeNode) -> None:
        """Test the override replaces the default only when nothing is stored."""
        entry = root.create_setting(SettingsEntryInteger, "count", 3)
        assert entry.value_as_variant() == 3
        assert entry.value_as_variant(default_value_override=7) == 7
        entry.set_value(5)
        assert entry.convert_from_variant(entry.value_as_variant(default_value_override=7)) == 5

    def test_value_with_default_override(self, root: SettingsTreeNode) -> None:
        """Test the typed override bypasses the default."""
        entry = root.create_setting(SettingsEntryInteger, "count", 3)
        assert entry.value_with_default_override(9) == 9
        entry.set_value(4)
        assert entry.value_with_default_override(9) == 4

    def test_default_value_as_variant(self, root: SettingsTreeNode) -> None:
        """Test the default is returned regardless of the stored value."""
        entry = root.create_setting(SettingsEntryString, "name", "anonymous")
        entry.set_value("bob")
        assert entry.default_value_as_variant() == "anonymous"

    def test_origin(self, layered_store: QSettingsStore) -> None:
        """Test the origin follows the layer serving the key."""
        root = SettingsTreeNode.create_root_node(layered_store)
        network = root.create_child_node("network")
        proxy = network.create_setting(SettingsEntryString, "proxy", "")
        port = network.create_setting(SettingsEntryInteger, "port", 8080)

        assert proxy.origin() == SettingsOrigin.GLOBAL
        assert proxy.value() == "proxy.example.org"
        assert port.origin() == SettingsOrigin.ANY

        proxy.set_value("local.example.org")
        assert proxy.origin() == SettingsOrigin.LOCAL
        proxy.remove()
        assert proxy.origin() == SettingsOrigin.GLOBAL

    def test_rejected_value_leaves_store_untouched(self, root: SettingsTreeNode) -> None:
        """Test set_value() returns False when check_value() fails."""
        entry = root.create_setting(SettingsEntryInteger, "percent", 50, "", SettingsOption.NONE, 0, 100)
        assert entry.set_value(101) is False
        assert entry.exists() is False
        assert entry.set_value(100) is True
        assert entry.set_value(-1) is False
        assert entry.value() == 100

    def test_failed_write_returns_false(self, tmp_path: Any) -> None:
        """Test a store write failure is reported as False."""
        failing = FailingStore.from_files(tmp_path / "failing.ini")
        root = SettingsTreeNode.create_root_node(failing)
        entry = root.create_setting(SettingsEntryInteger, "count", 0)
        assert entry.set_value(1) is False

    def test_entry_uses_default_store(self, isolated_default_store: QSettingsStore) -> None:
        """Test a tree without store writes to the default store."""
        root = SettingsTreeNode.create_root_node()
        entry = root.create_setting(SettingsEntryInteger, "count", 0)
        entry.set_value(2)
        assert isolated_default_store.contains("count")

    def test_by_reference_default_is_copied(self, root: SettingsTreeNode) -> None:
        """Test mutating a returned default does not change the declared default."""
        entry = root.create_setting(SettingsEntryStringList, "recent", ["a"])
        default = entry.default_value()
        default.append("b")
        assert entry.default_value() == ["a"]
        assert entry.value() == ["a"]


class TestFormerValue:
    """Tests for the save-former-value option."""

    def test_former_value_is_kept(self, root: SettingsTreeNode) -> None:
        """Test writing a new value keeps the previous one."""
        entry = root.create_setting(
            SettingsEntryString, "mode", "a", "", SettingsOption.SAVE_FORMER_VALUE
        )
        assert entry.former_value() == "a"
        entry.set_value("b")
        assert entry.former_value() == "b"
        entry.set_value("c")
        assert entry.value() == "c"
        assert entry.former_value() == "b"

    def test_same_value_keeps_former_value(self, root: SettingsTreeNode) -> None:
        """Test writing the current value again does not overwrite the former value."""
        entry = root.create_setting(
            SettingsEntryInteger, "level", 0, "", SettingsOption.SAVE_FORMER_VALUE
        )
        entry.set_value(1)
        entry.set_value(2)
        entry.set_value(2)
        assert entry.former_value() == 1

    def test_former_value_with_dynamic_key(self, root: SettingsTreeNode) -> None:
        """Test former values are kept per item."""
        servers = root.create_named_list_node("servers")
        entry = servers.create_setting(
            SettingsEntryInteger, "port", 80, "", SettingsOption.SAVE_FORMER_VALUE
        )
        entry.set_value(8080, "a")
        entry.set_value(9090, "a")
        entry.set_value(1000, "b")
        assert entry.former_value("a") == 8080
        assert entry.former_value("b") == 1000

    def test_without_option_former_value_is_current(self, root: SettingsTreeNode) -> None:
        """Test the former value is the current value when the option is off."""
        entry = root.create_setting(SettingsEntryInteger, "level", 0)
        entry.set_value(1)
        entry.set_value(2)
        assert entry.former_value() == 2
        assert root.store is not None
        assert not root.store.contains("level_formervalue")


class TestCopyValue:
    """Tests for copy_value_from_key and copy_value_to_key."""

    def test_copy_from_existing_key(self, root: SettingsTreeNode, store: QSettingsStore) -> None:
        """Test copying a value from an obsolete key."""
        entry = root.create_setting(SettingsEntryString, "name", "")
        store.set("old/name", "alice")

        assert entry.copy_value_from_key("old/name") is True
        assert entry.value() == "alice"
        assert store.contains("old/name")

    def test_copy_from_key_and_remove(self, root: SettingsTreeNode, store: QSettingsStore) -> None:
        """Test the source key can be removed after copying."""
        entry = root.create_setting(SettingsEntryString, "name", "")
        store.set("old/name", "alice")

        assert entry.copy_value_from_key("old/name", remove_setting_at_key=True) is True
        assert not store.contains("old/name")

    def test_copy_from_missing_key(self, root: SettingsTreeNode) -> None:
        """Test copying from an absent key returns False."""
        entry = root.create_setting(SettingsEntryString, "name", "default")
        assert entry.copy_value_from_key("old/missing") is False
        assert entry.exists() is False

    def test_copy_from_dynamic_key(self, root: SettingsTreeNode, store: QSettingsStore) -> None:
        """Test the same dynamic parts fill the source and destination keys."""
        servers = root.create_named_list_node("servers")
        host = servers.create_setting(SettingsEntryString, "host", "")
        store.set("legacy/srv1/hostname", "example.org")

        assert host.copy_value_from_key("legacy/%1/hostname", "srv1") is True
        assert host.value("srv1") == "example.org"

    def test_copy_to_key(self, root: SettingsTreeNode, store: QSettingsStore) -> None:
        """Test copying the value (or default) to another key."""
        entry = root.create_setting(SettingsEntryString, "name", "default")
        entry.copy_value_to_key("backup/name")
        assert store.get("backup/name") == "default"
        entry.set_value("bob")
        entry.copy_value_to_key("backup/name")
        assert store.get("backup/name") == "bob"


class TestDefinition:
    """Tests for entry metadata."""

    def test_metadata(self, root: SettingsTreeNode) -> None:
        """Test name, description, options, parent and type."""
        network = root.create_child_node("network")
        entry = network.create_setting(
            SettingsEntryInteger,
            "retries",
            3,
            "Number of retries",
            SettingsOption.SAVE_FORMER_VALUE,
        )
        assert entry.name == "retries"
        assert entry.description == "Number of retries"
        assert SettingsOption.SAVE_FORMER_VALUE in entry.options
        assert entry.parent is network
        assert entry.settings_type() == SettingsType.INTEGER
        assert "network/retries" in repr(entry)

    def test_unregister(self, root: SettingsTreeNode) -> None:
        """Test an entry can unregister itself from its node."""
        entry = root.create_setting(SettingsEntryInteger, "count", 0)
        entry.set_value(3)
        entry.unregister(delete_values=True)
        assert root.child_setting("count") is None
        assert entry.exists() is False
