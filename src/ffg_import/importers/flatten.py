"""
Flatten nested entity data into dotted-path update instructions.

Hosts apply ``{"data.attributes.attr1.value": 2}`` style updates to touch
single leaves instead of replacing whole subtrees.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

logger = logging.getLogger("ffg-import")


def flatten_update(tree: Mapping[str, Any], root: str | None = "data") -> dict[str, Any]:
    """Flatten ``tree`` into ``{dotted.path: leaf}``.

    Every nested mapping is expanded; anything else (including lists,
    ``False`` and ``0``) is a leaf. ``None`` leaves are skipped.

    Args:
        tree: Nested mapping to flatten.
        root: Leading path segment; falsy for no prefix.

    Examples:
        >>> flatten_update({"a": {"b": 1, "c": {"d": 2}}})
        {'data.a.b': 1, 'data.a.c.d': 2}
    """
    flat: dict[str, Any] = {}

    def _walk(prefix: str | None, node: Mapping[str, Any]) -> None:
        for key, value in node.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            if isinstance(value, Mapping):
                _walk(path, value)
            elif value is not None:
                flat[path] = value

    _walk(root or None, tree)
    return flat


def build_update_data(entity: Mapping[str, Any]) -> dict[str, Any]:
    """Build the update payload for an entity: its image plus flattened ``data``."""
    logger.debug(f"Starting build_update_data for item - {entity.get('name')}")
    update: dict[str, Any] = {}
    if entity.get("img"):
        update["img"] = entity["img"]

    update.update(flatten_update(entity.get("data") or {}, root="data"))
    logger.debug(f"Completed build_update_data for item - {entity.get('name')}")
    return update
