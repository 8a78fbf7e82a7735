"""Static symbol tables for directive translation and output tags.

All tables are read-only views built at import time.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

# DSL spelling -> evaluator spelling, used by translate().
SYNTAX: Mapping[str, str] = MappingProxyType({
    "eq": "==",
    "-eq": "!=",
    "EQ": "===",
    "-EQ": "!==",
    # Math
    "+": "+",
    "-": "-",
    "/": "/",
    "*": "*",
    "%": "%",
    # Logic
    "And": "&&",
    "Or": "||",
    "True": "true",
    "False": "false",
    # Comparison
    ">": ">",
    "<": "<",
    ">=": ">=",
    "<=": "<=",
})

# Stricter table for whitespace-split `$if` segments. Values carry a trailing
# space so segments can be concatenated directly.
CONDITION_SYNTAX: Mapping[str, str] = MappingProxyType({
    "eq": "== ",
    "-eq": "!= ",
    "EQ": "=== ",
    "-EQ": "!== ",
    "mod": "% ",
    "and": "&& ",
    "or": "|| ",
    ">": "> ",
    "<": "< ",
    ">=": ">= ",
    "<=": "<= ",
})

# Evaluator spellings that must not be written directly in directive text.
NOT_ALLOWED = frozenset({
    "==",
    "!=",
    "===",
    "!==",
    "&&",
    "||",
    "true",
    "false",
})

STRING_DELIMITERS = frozenset({"`", "'", '"'})

# Whitespace is matched with str.isspace().
BOUNDARY_CHARACTERS = frozenset({"(", ")", ",", "!"})

ESCAPE_TABLE: Mapping[str, str] = MappingProxyType({
    ">": "&gt;",
    "<": "&lt;",
    "&": "&amp;",
    "'": "&#39;",
    '"': "&quot;",
})


def _build_unescape_table() -> Mapping[str, str]:
    table = {
        "&lt;": "<",
        "&gt;": ">",
        "&amp;": "&",
        "&quot;": '"',
        "&apos;": "'",
    }
    for char in ESCAPE_TABLE:
        code = ord(char)
        table[f"&#{code};"] = char
        table[f"&#x{code:x};"] = char
        table[f"&#x{code:X};"] = char
        table[f"&#X{code:x};"] = char
        table[f"&#X{code:X};"] = char
    return MappingProxyType(table)


UNESCAPE_TABLE: Mapping[str, str] = _build_unescape_table()

# Reference roots understood by the evaluator.
INPUT_ROOT = "input"
VARIABLES_ROOT = "variables"

# Condition used for a bare `:else`.
ALWAYS_TRUE = "1 === 1"


__all__ = [
    "SYNTAX",
    "CONDITION_SYNTAX",
    "NOT_ALLOWED",
    "STRING_DELIMITERS",
    "BOUNDARY_CHARACTERS",
    "ESCAPE_TABLE",
    "UNESCAPE_TABLE",
    "INPUT_ROOT",
    "VARIABLES_ROOT",
    "ALWAYS_TRUE",
]
