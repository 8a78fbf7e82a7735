"""Directive scanner and translator.

Rewrites directive text from DSL spellings into evaluator spellings:

    x eq 3 And name EQ `bob`   ->   input["x"] == 3 && input["name"] === `bob`

Scanning is string-literal aware. Backtick, single and double quoted
literals are copied verbatim and never classified; a literal only closes on
the delimiter that opened it.

Identifiers are classified in this order:
1. key of the input context   -> ``input["<name>"]``
2. DSL operator (SYNTAX)      -> mapped operator
3. disallowed word            -> DirectiveSyntaxError
4. anything else              -> left unchanged
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Collection, List, Optional

from stencilry.core.exceptions import DirectiveSyntaxError, UnterminatedLiteralError

from .syntax import (
    BOUNDARY_CHARACTERS,
    INPUT_ROOT,
    NOT_ALLOWED,
    STRING_DELIMITERS,
    SYNTAX,
)

logger = logging.getLogger(__name__)

INPUT_VARIANT = "input"


@dataclass(frozen=True)
class Token:
    """A recognized identifier with offsets into the original source."""

    name: str
    variant: str
    start: int
    end: int

    @property
    def replacement(self) -> str:
        if self.variant == INPUT_VARIANT:
            return input_reference(self.name)
        return SYNTAX[self.variant]


def input_reference(name: str) -> str:
    """Return the evaluator spelling of an input lookup."""
    return reference(INPUT_ROOT, name)


def reference(root: str, name: str) -> str:
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'{root}["{escaped}"]'


def _is_boundary(source: str, index: int) -> bool:
    char = source[index]
    if char.isspace():
        return True
    if char == "!":
        # `!=` and `!==` stay whole so they can be rejected as words.
        return not source.startswith("=", index + 1)
    return char in BOUNDARY_CHARACTERS


def _classify(
    name: str,
    start: int,
    context_keys: Collection[str],
    source: str,
) -> Optional[Token]:
    if name in context_keys:
        return Token(name, INPUT_VARIANT, start, start + len(name))
    if name in SYNTAX:
        return Token(name, name, start, start + len(name))
    if name in NOT_ALLOWED:
        raise DirectiveSyntaxError(
            f"Invalid statement syntax: '{name}' is not allowed",
            context={"word": name, "offset": start, "source": source},
        )
    return None


def scan(source: str, context_keys: Collection[str]) -> List[Token]:
    """Find every identifier of `source` that translation rewrites.

    Args:
        source: Directive text
        context_keys: Names resolvable as input references

    Returns:
        Tokens in ascending `start` order

    Raises:
        DirectiveSyntaxError: On a disallowed bare word (first one wins)
        UnterminatedLiteralError: If a literal is still open at end of input
    """
    tokens: List[Token] = []
    delimiter: Optional[str] = None
    literal_start = 0
    word_start = 0
    word = ""

    def flush() -> None:
        if word:
            token = _classify(word, word_start, context_keys, source)
            if token is not None:
                tokens.append(token)

    for index, char in enumerate(source):
        if delimiter is not None:
            if char == delimiter:
                delimiter = None
                word_start = index + 1
            continue

        if char in STRING_DELIMITERS:
            flush()
            word = ""
            delimiter = char
            literal_start = index
            continue

        if _is_boundary(source, index):
            flush()
            word = ""
            word_start = index + 1
            continue

        if not word:
            word_start = index
        word += char

    if delimiter is not None:
        raise UnterminatedLiteralError(
            f"{delimiter} opened at offset {literal_start} is never closed",
            context={"delimiter": delimiter, "offset": literal_start, "source": source},
        )
    flush()
    return tokens


def translate(source: str, context_keys: Collection[str]) -> str:
    """Translate directive text into an evaluator expression.

    Example:
        >>> translate("x eq 3", {"x"})
        'input["x"] == 3'
    """
    tokens = scan(source, context_keys)
    parts: List[str] = []
    cursor = 0
    for token in tokens:
        parts.append(source[cursor:token.start])
        parts.append(token.replacement)
        cursor = token.end
    parts.append(source[cursor:])
    translated = "".join(parts)
    logger.debug("Translated %r -> %r (%d tokens)", source, translated, len(tokens))
    return translated


__all__ = ["Token", "scan", "translate", "input_reference", "reference", "INPUT_VARIANT"]
