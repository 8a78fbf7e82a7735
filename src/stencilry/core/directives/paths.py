"""Flatten nested input into dotted lookup keys.

Example:
    >>> flatten({"a": {"b": 1, "c": [1, 2]}}, "root")
    {'root.a.b': 1, 'root.a.c': [1, 2]}
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

DEFAULT_SEPARATOR = "."


def flatten(
    value: Any,
    prefix: str,
    separator: str = DEFAULT_SEPARATOR,
    into: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Map every leaf under `value` to its dotted path.

    Mappings are descended depth-first; anything else, lists included,
    is a leaf keyed by the accumulated path.

    Args:
        value: Value to flatten
        prefix: Path of `value` itself
        separator: Joiner between path segments
        into: Optional dict to add entries to

    Returns:
        Dict of dotted path -> leaf value
    """
    result: Dict[str, Any] = {} if into is None else into
    if not isinstance(value, Mapping):
        result[prefix] = value
        return result
    for key, child in value.items():
        flatten(child, f"{prefix}{separator}{key}", separator, result)
    return result


def build_lookup(context: Mapping[str, Any], separator: str = DEFAULT_SEPARATOR) -> Dict[str, Any]:
    """Build the lookup surface for one render pass.

    Contains every top-level key of `context` plus every dotted path below
    it. Top-level keys win over a flattened path with the same spelling.
    """
    lookup: Dict[str, Any] = {}
    for key, value in context.items():
        if isinstance(value, Mapping):
            flatten(value, str(key), separator, lookup)
    for key, value in context.items():
        lookup[str(key)] = value
    return lookup


def resolve_path(context: Mapping[str, Any], path: str, separator: str = DEFAULT_SEPARATOR) -> Any:
    """Resolve `path` against `context`.

    A literal top-level key is tried first, then the dotted walk.

    Raises:
        KeyError: If no value lives at `path`
    """
    if path in context:
        return context[path]
    current: Any = context
    for part in path.split(separator):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            raise KeyError(path)
    return current


__all__ = ["flatten", "build_lookup", "resolve_path", "DEFAULT_SEPARATOR"]
