"""
Key composition for the settings tree.

Keys are separator-joined segments. A key template may contain ordered
placeholders (``%1``, ``%2``, ...) that are replaced by dynamic key parts
to obtain a concrete key, e.g. ``connections/items/%1/url`` with
``["local"]`` gives ``connections/items/local/url``.
"""

import re
from typing import List, Optional, Sequence, Union

from .types import ArityError

SEPARATOR = "/"

_PLACEHOLDER_RE = re.compile(r"%(\d+)")

DynamicKeyPart = Optional[Union[str, Sequence[str]]]


def compose(parent_complete_key: str, local_key: str) -> str:
    """Join a parent key and a local key with the separator."""
    if not parent_complete_key:
        return local_key
    return f"{parent_complete_key}{SEPARATOR}{local_key}"


def placeholder_indices(template: str) -> List[int]:
    """Return the distinct placeholder indices of a template, sorted."""
    return sorted({int(match) for match in _PLACEHOLDER_RE.findall(template)})


def placeholder_count(template: str) -> int:
    """Return the number of distinct placeholders in a template."""
    return len(placeholder_indices(template))


def has_placeholders(template: str) -> bool:
    """Check whether a template contains at least one placeholder."""
    return _PLACEHOLDER_RE.search(template) is not None


def substitute(template: str, dynamic_parts: Sequence[str]) -> str:
    """Replace the placeholders of a template with dynamic parts.

    Args:
        template: Key template, possibly containing ``%1``..``%n``.
        dynamic_parts: One part per placeholder, in placeholder order.

    Returns:
        The concrete key.

    Raises:
        ArityError: If the number of parts differs from the number of placeholders.
    """
    indices = placeholder_indices(template)
    if len(indices) != len(dynamic_parts) or (indices and indices[-1] > len(dynamic_parts)):
        raise ArityError(
            f"Key '{template}' expects {len(indices)} dynamic part(s), "
            f"got {len(dynamic_parts)}: {list(dynamic_parts)}"
        )
    if not indices:
        return template

    def _replace(match: "re.Match[str]") -> str:
        return str(dynamic_parts[int(match.group(1)) - 1])

    return _PLACEHOLDER_RE.sub(_replace, template)


def template_pattern(template: str) -> "re.Pattern[str]":
    """Build a regular expression matching the concrete keys of a template.

    Each placeholder matches exactly one non-empty key segment.
    """
    pieces = []
    position = 0
    for match in _PLACEHOLDER_RE.finditer(template):
        pieces.append(re.escape(template[position:match.start()]))
        pieces.append(f"[^{re.escape(SEPARATOR)}]+")
        position = match.end()
    pieces.append(re.escape(template[position:]))
    return re.compile("".join(pieces))


def matches_template(candidate_key: str, template: str) -> bool:
    """Check whether a concrete key belongs to a key template."""
    if not has_placeholders(template):
        return candidate_key == template
    return template_pattern(template).fullmatch(candidate_key) is not None


def dynamic_parts_from_single_string(value: Optional[str]) -> List[str]:
    """Split a convenience string into dynamic parts.

    Empty leading and trailing slices are dropped, so ``""`` and ``None``
    give an empty list and ``"a"`` gives ``["a"]``.
    """
    if not value:
        return []
    parts = value.split(SEPARATOR)
    while parts and not parts[0]:
        parts.pop(0)
    while parts and not parts[-1]:
        parts.pop()
    return parts


def to_dynamic_parts(dynamic_key_part: DynamicKeyPart) -> List[str]:
    """Normalize a single string, a sequence of strings or None to a list."""
    if dynamic_key_part is None:
        return []
    if isinstance(dynamic_key_part, str):
        return dynamic_parts_from_single_string(dynamic_key_part)
    return [str(part) for part in dynamic_key_part]
