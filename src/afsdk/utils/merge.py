"""Dictionary merge helpers.

"""

from __future__ import annotations

from typing import Any, Dict


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge.

    Args:
        base (Dict[str, Any]): Mapping providing defaults.
        override (Dict[str, Any]): Mapping whose values win; nested dicts are merged recursively.

    Returns:
        Dict[str, Any]: New merged mapping; lists and scalars from ``override`` replace ``base`` values.

    Examples:
        >>> from afsdk.utils.merge import deep_merge
        >>> deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}})
        {'a': {'b': 1, 'c': 3}}

    """
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
