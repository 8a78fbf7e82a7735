"""Statement validation for `$if`, `$loop` and `:else` directives.

Validation never raises: malformed directives come back as a falsy
:class:`InvalidStatement` so the renderer can skip them and keep going.

Forms:
    $loop items as item        -> LoopStatement("items", "item")
    $if x eq 3 and y < 2       -> IfStatement('input["x"] == 3 && ...')
    :else                      -> ElseStatement("1 === 1")
    :else if x eq 4            -> ElseStatement('input["x"] == 4 ')
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from .paths import DEFAULT_SEPARATOR, resolve_path
from .syntax import ALWAYS_TRUE, CONDITION_SYNTAX, INPUT_ROOT, VARIABLES_ROOT
from .translator import reference

logger = logging.getLogger(__name__)

LOOP = "$loop"
IF = "$if"
ELSE = ":else"

_NUMBER = re.compile(r"-?(\d+(\.\d+)?|\.\d+)([eE][-+]?\d+)?")
_BOOLEANS = frozenset({"true", "false"})


@dataclass(frozen=True)
class IfStatement:
    condition: str
    segments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LoopStatement:
    var_name: str
    as_name: str
    segments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ElseStatement:
    condition: str
    segments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class InvalidStatement:
    """Rejected directive. Always falsy."""

    reason: str
    segments: Tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return False


StatementKind = Union[IfStatement, LoopStatement, ElseStatement]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _has_key(source: Mapping[str, Any], key: str, separator: str) -> bool:
    try:
        resolve_path(source, key, separator)
    except KeyError:
        return False
    return True


def _invalid(reason: str, segments: Tuple[str, ...]) -> InvalidStatement:
    logger.debug("Invalid directive %r: %s", " ".join(segments), reason)
    return InvalidStatement(reason, segments)


def _validate_loop(
    segments: Tuple[str, ...],
    input: Mapping[str, Any],
    variables: Mapping[str, Any],
) -> Union[LoopStatement, InvalidStatement]:
    if len(segments) != 4:
        return _invalid(f"$loop expects 4 segments, got {len(segments)}", segments)
    name = segments[1]
    if name not in input and name not in variables:
        return _invalid(f"'{name}' is not defined", segments)
    if not _is_sequence(input.get(name)) and not _is_sequence(variables.get(name)):
        return _invalid(f"'{name}' is not a list", segments)
    if segments[2].lower() != "as":
        return _invalid(f"expected 'as', got '{segments[2]}'", segments)
    return LoopStatement(name, segments[3], segments)


def build_condition(
    segments: Sequence[str],
    input: Mapping[str, Any],
    separator: str = DEFAULT_SEPARATOR,
) -> Optional[str]:
    """Map condition segments onto evaluator text.

    Returns None when a double-quoted literal is left open.
    """
    parts = []
    in_literal = False
    for segment in segments:
        if in_literal:
            parts.append(segment + " ")
            in_literal = not segment.endswith('"')
            continue

        if segment.startswith('"'):
            parts.append(segment + " ")
            # A lone `"` opens a literal without closing it.
            in_literal = not (len(segment) > 1 and segment.endswith('"'))
            continue

        mapped = CONDITION_SYNTAX.get(segment)
        if mapped is not None:
            parts.append(mapped)
        elif _NUMBER.fullmatch(segment) or segment in _BOOLEANS:
            parts.append(segment + " ")
        elif _has_key(input, segment, separator):
            parts.append(reference(INPUT_ROOT, segment) + " ")
        else:
            parts.append(reference(VARIABLES_ROOT, segment) + " ")

    if in_literal:
        return None
    return "".join(parts)


def validate(
    segments: Sequence[str],
    input: Mapping[str, Any],
    variables: Optional[Mapping[str, Any]] = None,
    separator: str = DEFAULT_SEPARATOR,
) -> Union[StatementKind, InvalidStatement]:
    """Classify and check one directive.

    Args:
        segments: Whitespace-split directive, e.g. ``["$if", "x", "eq", "3"]``
        input: Render-time input context
        variables: Loop/local bindings
        separator: Path separator for dotted references

    Returns:
        The statement, or an InvalidStatement describing the rejection
    """
    segs = tuple(segments)
    variables = variables or {}
    if not segs:
        return _invalid("empty directive", segs)

    command = segs[0].lower()
    if command == LOOP:
        return _validate_loop(segs, input, variables)

    is_else = command == ELSE
    if is_else:
        if len(segs) == 1:
            return ElseStatement(ALWAYS_TRUE, segs)
        # `:else if ...` continues as `$if ...`
        command = ("$" + segs[1]).lower()
        condition_segments = segs[2:]
    else:
        condition_segments = segs[1:]

    if command != IF:
        return _invalid(f"unknown directive '{segs[0]}'", segs)
    if not condition_segments:
        return _invalid("condition is empty", segs)

    condition = build_condition(condition_segments, input, separator)
    if condition is None:
        return _invalid("string literal is never closed", segs)

    if is_else:
        return ElseStatement(condition, segs)
    return IfStatement(condition, segs)


__all__ = [
    "validate",
    "build_condition",
    "IfStatement",
    "LoopStatement",
    "ElseStatement",
    "InvalidStatement",
    "StatementKind",
]
