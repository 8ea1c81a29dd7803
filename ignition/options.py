"""
Options helpers - deep-set and deep-merge for nested option trees.
"""

from typing import Any, Dict, Mapping, Optional


def deep_set(tree: Optional[Dict[str, Any]], key_path: str, value: Any) -> Dict[str, Any]:
    """
    Set ``value`` at a dot-separated path, creating intermediate dicts.

    Non-dict values found along the path are replaced by dicts.

    Args:
        tree: Options tree to update in place (``None`` starts a new one)
        key_path: Dot-separated path, e.g. ``"db.pool.size"``
        value: Value to set

    Returns:
        The updated tree
    """
    if tree is None:
        tree = {}

    parts = key_path.split(".")
    current = tree
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value
    return tree


def deep_merge(base: Optional[Mapping[str, Any]], partial: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merge ``partial`` into ``base`` and return the merged tree.

    Dicts are merged recursively; any other value in ``partial`` replaces
    the value in ``base``. Neither input is mutated.
    """
    merged: Dict[str, Any] = dict(base or {})

    for key, value in (partial or {}).items():
        if isinstance(merged.get(key), Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value

    return merged
