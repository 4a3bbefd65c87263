"""
Settings validation.

Checks the values found in the store against the settings declared in a
tree.
"""

import logging
from typing import List, Optional

from .entry import FORMER_VALUE_SUFFIX
from .keys import SEPARATOR
from .store import SettingsStore, default_store
from .tree import iter_settings
from .tree_node import SettingsTreeNode
from .types import ValidationResult

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates stored settings against a settings tree."""

    def __init__(self, root: SettingsTreeNode, store: Optional[SettingsStore] = None):
        self.root = root
        self.store = store

    def validate(self, remove_invalid: bool = False) -> ValidationResult:
        """Validate the stored values below the root node.

        Stored values rejected by their setting are errors. Stored keys that
        match no declared setting are warnings.

        Args:
            remove_invalid: If True, remove the values reported as errors
        """
        errors: List[str] = []
        warnings: List[str] = []

        store = self.store or self.root.store or default_store()
        settings = list(iter_settings(self.root))
        # Keys below a named list start with the part before its first placeholder
        prefix = self.root.complete_key.split("%", 1)[0]
        if prefix and not prefix.endswith(SEPARATOR):
            prefix += SEPARATOR

        invalid_keys: List[str] = []
        for key in store.keys_with_prefix(prefix):
            matching = [setting for setting in settings if setting.key_is_valid(key)]
            if not matching and key.endswith(FORMER_VALUE_SUFFIX):
                base_key = key[: -len(FORMER_VALUE_SUFFIX)]
                matching = [setting for setting in settings if setting.key_is_valid(base_key)]
            if not matching:
                warnings.append(f"Stored key does not match any declared setting: {key}")
                continue

            value = store.get(key)
            for setting in matching:
                if not setting.check_variant_value(value):
                    errors.append(
                        f"Invalid value {value!r} for setting '{setting.definition_key()}' at '{key}'"
                    )
                    invalid_keys.append(key)
                    break

        # Clean up invalid values
        if remove_invalid:
            for key in invalid_keys:
                store.remove(key)
                logger.info(f"Removed invalid setting value at '{key}'")

        return ValidationResult(
            is_valid=len(errors) == 0, errors=errors, warnings=warnings
        )
