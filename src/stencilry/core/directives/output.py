"""Output tags: transforms applied to a rendered value.

Tags are short suffixes picked up by the renderer (``{{ name# }}`` escapes
the value). Each tag can also be addressed by its transform name.

| Tag | Name       | Transform                          |
|-----|------------|------------------------------------|
| #   | escape     | HTML-escape < > & ' "              |
| &   | unescape   | decode named/numeric entities      |
| @   | trim       | strip surrounding whitespace       |
| ^   | upper      | upper-case                         |
| _   | lower      | lower-case                         |
| ~   | capitalize | upper-case the first character     |
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from stencilry.core.exceptions import TransformTypeError, UnknownTransformTagError

from .evaluator import display
from .syntax import ESCAPE_TABLE, UNESCAPE_TABLE

logger = logging.getLogger(__name__)

TransformFn = Callable[[str], str]


def escape(value: str) -> str:
    """Replace < > & ' " with entities.

    Example:
        >>> escape("<a>&")
        '&lt;a&gt;&amp;'
    """
    return "".join(ESCAPE_TABLE.get(char, char) for char in value)


def unescape(value: str) -> str:
    """Decode entities produced by :func:`escape` (and their numeric forms).

    ``&`` opens a candidate that closes at ``;`` or end of string. A new
    ``&`` before the ``;`` flushes the open candidate as plain text.
    Candidates that are not known entities are kept verbatim.

    Example:
        >>> unescape("&lt;a&gt; && &#x26;")
        '<a> && &'
    """
    out: List[str] = []
    candidate: Optional[str] = None
    for char in value:
        if char == "&":
            if candidate is not None:
                out.append(candidate)
            candidate = char
        elif candidate is not None:
            candidate += char
            if char == ";":
                out.append(UNESCAPE_TABLE.get(candidate, candidate))
                candidate = None
        else:
            out.append(char)
    if candidate is not None:
        out.append(UNESCAPE_TABLE.get(candidate, candidate))
    return "".join(out)


def capitalize(value: str) -> str:
    """Upper-case the first character only."""
    return value[:1].upper() + value[1:]


@dataclass(frozen=True)
class OutputTag:
    tag: str
    name: str
    description: str
    transform: TransformFn
    requires_string: bool = True


class OutputTagRegistry:
    """Read-only lookup of output tags by tag or by name."""

    def __init__(self, tags: List[OutputTag]) -> None:
        by_key: Dict[str, OutputTag] = {}
        for entry in tags:
            by_key[entry.tag] = entry
            by_key[entry.name] = entry
        self._tags = MappingProxyType({entry.tag: entry for entry in tags})
        self._lookup = MappingProxyType(by_key)

    def get(self, tag: str) -> Optional[OutputTag]:
        return self._lookup.get(tag)

    def resolve(self, tag: str) -> OutputTag:
        entry = self._lookup.get(tag)
        if entry is None:
            raise UnknownTransformTagError(
                f"Unknown output tag '{tag}'. Available tags: {sorted(self._tags)}",
                context={"tag": tag},
            )
        return entry

    def __contains__(self, tag: str) -> bool:
        return tag in self._lookup

    @property
    def tags(self) -> Mapping[str, OutputTag]:
        return self._tags


OUTPUT_TAGS = OutputTagRegistry([
    OutputTag("#", "escape", "Escape HTML special characters", escape),
    OutputTag("&", "unescape", "Decode HTML entities", unescape),
    OutputTag("@", "trim", "Strip surrounding whitespace", str.strip),
    OutputTag("^", "upper", "Upper-case the value", str.upper),
    OutputTag("_", "lower", "Lower-case the value", str.lower),
    OutputTag("~", "capitalize", "Upper-case the first character", capitalize),
])


def serialize(value: Any) -> Any:
    """Turn structured values into their canonical JSON text.

    Strings and primitives are returned unchanged.
    """
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return value


def apply_transform(
    tag: str,
    value: Any,
    registry: OutputTagRegistry = OUTPUT_TAGS,
) -> str:
    """Apply an output tag, raising on failure.

    Raises:
        UnknownTransformTagError: If `tag` is not registered
        TransformTypeError: If a string transform gets a non-string
    """
    value = serialize(value)
    if not tag:
        return value if isinstance(value, str) else display(value)

    entry = registry.resolve(tag)
    if entry.requires_string and not isinstance(value, str):
        raise TransformTypeError(
            f"Output tag '{tag}' ({entry.name}) needs a string, got {type(value).__name__}",
            context={"tag": tag, "type": type(value).__name__},
        )
    return entry.transform(value)


def apply(
    tag: str,
    value: Any,
    registry: OutputTagRegistry = OUTPUT_TAGS,
    log_failures: bool = True,
) -> Union[str, bool]:
    """Apply an output tag; failures yield ``False``.

    Example:
        >>> apply("#", "<b>")
        '&lt;b&gt;'
        >>> apply("nope", "x")
        False
    """
    try:
        return apply_transform(tag, value, registry)
    except (UnknownTransformTagError, TransformTypeError) as exc:
        if log_failures:
            logger.warning("Output tag failed: %s", exc)
        return False


__all__ = [
    "OutputTag",
    "OutputTagRegistry",
    "OUTPUT_TAGS",
    "escape",
    "unescape",
    "capitalize",
    "serialize",
    "apply",
    "apply_transform",
]
