"""Constrained evaluator for translated directive conditions.

Translated text (``input["x"] == 3 && input["y"] > 1``) is parsed with a
small Lark grammar into an expression tree of literals, references and
operators, which is then evaluated directly. Nothing is ever handed to
``eval``; the grammar admits no calls, attribute access or assignment.

Semantics follow the template language rather than Python:
- ``===`` / ``!==`` compare kind and value (``true === 1`` is false)
- ``==`` / ``!=`` coerce numeric strings and booleans to numbers
- ``+`` concatenates when either side is a string
- ``&&`` / ``||`` short-circuit and return an operand
- ``None``, ``false``, ``0``, ``""`` and NaN are falsy; lists and mappings
  are truthy even when empty

Usage:
    predicate = compile_expression('input["x"] == 3')
    predicate({"x": 3})              # True
    predicate.evaluate({"y": 1})     # EvaluationResult(value=False, error=...)
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from lark import Lark, v_args
from lark.visitors import Transformer_NonRecursive
from lark.exceptions import UnexpectedInput

from stencilry.core.exceptions import EvaluationFault, ExpressionSyntaxError

from .paths import DEFAULT_SEPARATOR, resolve_path
from .syntax import INPUT_ROOT, VARIABLES_ROOT

logger = logging.getLogger(__name__)

_STRING_ESCAPE = re.compile(r'\\(["\\])')
# Plain decimal text only: no digit separators, inf or nan spellings.
_NUMERIC_STRING = re.compile(r"[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")


# ============================================================
# VALUE SEMANTICS
# ============================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def truthy(value: Any) -> bool:
    """Truthiness as seen by directive conditions."""
    if value is None or value is False:
        return False
    if _is_number(value):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if not _NUMERIC_STRING.fullmatch(text):
            return math.nan
        return float(text)
    return math.nan


def display(value: Any) -> str:
    """Render a primitive the way the template language spells it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def strict_equal(left: Any, right: Any) -> bool:
    return _kind(left) == _kind(right) and left == right


def loose_equal(left: Any, right: Any) -> bool:
    left_kind, right_kind = _kind(left), _kind(right)
    if left_kind == right_kind:
        return left == right
    if "null" in (left_kind, right_kind) or "object" in (left_kind, right_kind):
        return False
    return _to_number(left) == _to_number(right)


def _require_numbers(op: str, left: Any, right: Any) -> None:
    if not (_is_number(left) and _is_number(right)):
        raise EvaluationFault(
            f"Operator '{op}' needs numbers, got {_kind(left)} and {_kind(right)}",
            context={"operator": op},
        )


def _compare(op: str, left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        pass
    elif isinstance(left, str) and isinstance(right, str):
        pass
    else:
        raise EvaluationFault(
            f"Cannot compare {_kind(left)} with {_kind(right)} using '{op}'",
            context={"operator": op},
        )
    if op == "<":
        return left < right
    if op == ">":
        return left > right
    if op == "<=":
        return left <= right
    return left >= right


def _add(left: Any, right: Any) -> Any:
    if isinstance(left, str) or isinstance(right, str):
        if _kind(left) == "object" or _kind(right) == "object":
            raise EvaluationFault("Cannot concatenate a structured value", context={"operator": "+"})
        return display(left) + display(right)
    _require_numbers("+", left, right)
    return left + right


def _divide(left: Any, right: Any) -> Any:
    _require_numbers("/", left, right)
    if right == 0:
        raise EvaluationFault("Division by zero", context={"operator": "/"})
    return left / right


def _modulo(left: Any, right: Any) -> Any:
    _require_numbers("%", left, right)
    if right == 0:
        raise EvaluationFault("Modulo by zero", context={"operator": "%"})
    # Remainder takes the sign of the dividend.
    result = math.fmod(left, right)
    if isinstance(left, int) and isinstance(right, int):
        return int(result)
    return result


def _arith(op: str, fn: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Any]:
    def apply(left: Any, right: Any) -> Any:
        _require_numbers(op, left, right)
        return fn(left, right)
    return apply


BINARY_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "===": strict_equal,
    "!==": lambda a, b: not strict_equal(a, b),
    "==": loose_equal,
    "!=": lambda a, b: not loose_equal(a, b),
    "<": lambda a, b: _compare("<", a, b),
    ">": lambda a, b: _compare(">", a, b),
    "<=": lambda a, b: _compare("<=", a, b),
    ">=": lambda a, b: _compare(">=", a, b),
    "+": _add,
    "-": _arith("-", lambda a, b: a - b),
    "*": _arith("*", lambda a, b: a * b),
    "/": _divide,
    "%": _modulo,
}


# ============================================================
# EXPRESSION TREE
# ============================================================

@dataclass
class Scope:
    """Bindings visible to one evaluation."""

    input: Mapping[str, Any]
    variables: Mapping[str, Any] = field(default_factory=dict)
    separator: str = DEFAULT_SEPARATOR

    def lookup(self, root: str, key: str) -> Any:
        source = self.input if root == INPUT_ROOT else self.variables
        try:
            return resolve_path(source, key, self.separator)
        except KeyError:
            raise EvaluationFault(
                f'{root}["{key}"] is not defined',
                context={"root": root, "key": key},
            ) from None


class Node:
    def evaluate(self, scope: Scope) -> Any:
        raise NotImplementedError


@dataclass
class Literal(Node):
    value: Any

    def evaluate(self, scope: Scope) -> Any:
        return self.value


@dataclass
class Reference(Node):
    root: str
    key: str

    def evaluate(self, scope: Scope) -> Any:
        return scope.lookup(self.root, self.key)


@dataclass
class Name(Node):
    """A bare identifier that translation did not resolve."""

    name: str

    def evaluate(self, scope: Scope) -> Any:
        raise EvaluationFault(f"Unresolved identifier '{self.name}'", context={"name": self.name})


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node

    def evaluate(self, scope: Scope) -> Any:
        value = self.operand.evaluate(scope)
        if self.op == "!":
            return not truthy(value)
        if not _is_number(value):
            raise EvaluationFault(f"Cannot negate {_kind(value)}", context={"operator": "-"})
        return -value


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node

    def evaluate(self, scope: Scope) -> Any:
        # Long chains nest on the left; walk that spine without recursing.
        spine = [self]
        node = self.left
        while isinstance(node, BinaryOp):
            spine.append(node)
            node = node.left
        value = node.evaluate(scope)
        for step in reversed(spine):
            value = step._combine(value, scope)
        return value

    def _combine(self, left: Any, scope: Scope) -> Any:
        if self.op == "&&":
            return self.right.evaluate(scope) if truthy(left) else left
        if self.op == "||":
            return left if truthy(left) else self.right.evaluate(scope)
        return BINARY_OPERATORS[self.op](left, self.right.evaluate(scope))


def _binary(op: str) -> Callable[..., BinaryOp]:
    def build(self: Any, left: Node, right: Node) -> BinaryOp:
        return BinaryOp(op, left, right)
    return build


def _decode_string(token: str) -> str:
    body = token[1:-1]
    if token[0] == '"':
        body = _STRING_ESCAPE.sub(r"\1", body)
    return body


@v_args(inline=True)
class _TreeBuilder(Transformer_NonRecursive):
    """Turn the Lark parse tree into evaluator nodes."""

    def number(self, token: Any) -> Literal:
        text = str(token)
        if any(c in text for c in ".eE"):
            return Literal(float(text))
        return Literal(int(text))

    def string(self, token: Any) -> Literal:
        return Literal(_decode_string(str(token)))

    def true(self) -> Literal:
        return Literal(True)

    def false(self) -> Literal:
        return Literal(False)

    def input_ref(self, token: Any) -> Reference:
        return Reference(INPUT_ROOT, _decode_string(str(token)))

    def variables_ref(self, token: Any) -> Reference:
        return Reference(VARIABLES_ROOT, _decode_string(str(token)))

    def name(self, token: Any) -> Name:
        return Name(str(token))

    def logical_not(self, operand: Node) -> UnaryOp:
        return UnaryOp("!", operand)

    def neg(self, operand: Node) -> UnaryOp:
        return UnaryOp("-", operand)

    logical_or = _binary("||")
    logical_and = _binary("&&")
    strict_eq = _binary("===")
    strict_ne = _binary("!==")
    loose_eq = _binary("==")
    loose_ne = _binary("!=")
    le = _binary("<=")
    ge = _binary(">=")
    lt = _binary("<")
    gt = _binary(">")
    add = _binary("+")
    sub = _binary("-")
    mul = _binary("*")
    div = _binary("/")
    mod = _binary("%")


# ============================================================
# PARSER
# ============================================================

class ExpressionParser:
    """Lark parser for translated conditions (process-wide singleton)."""

    _instance: Optional["ExpressionParser"] = None
    _parser: Optional[Lark] = None

    def __new__(cls) -> "ExpressionParser":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if ExpressionParser._parser is not None:
            return

        grammar_path = Path(__file__).parent / "grammar.lark"
        with open(grammar_path, "r", encoding="utf-8") as f:
            grammar = f.read()

        ExpressionParser._parser = Lark(
            grammar,
            start="start",
            parser="lalr",
            maybe_placeholders=False,
        )

    def parse(self, expression: str) -> Node:
        """Parse `expression` into an evaluator tree.

        Raises:
            ExpressionSyntaxError: If the text is outside the grammar
        """
        if not expression or not expression.strip():
            raise ExpressionSyntaxError("Empty condition expression", context={"expression": expression})
        assert ExpressionParser._parser is not None
        try:
            tree = ExpressionParser._parser.parse(expression)
        except UnexpectedInput as exc:
            raise ExpressionSyntaxError(
                f"Invalid condition expression at column {exc.column}: {expression!r}",
                context={"expression": expression, "column": exc.column},
            ) from exc
        try:
            return _TreeBuilder().transform(tree)
        except RecursionError as exc:
            raise ExpressionSyntaxError(
                "Condition expression is nested too deeply",
                context={"expression": expression},
            ) from exc


# ============================================================
# PREDICATES
# ============================================================

@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one predicate evaluation."""

    value: bool
    error: Optional[EvaluationFault] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.value


class Predicate:
    """A compiled condition, callable with an input context."""

    def __init__(self, expression: str, root: Node, separator: str = DEFAULT_SEPARATOR) -> None:
        self.expression = expression
        self.root = root
        self.separator = separator

    def evaluate(
        self,
        input: Mapping[str, Any],
        variables: Optional[Mapping[str, Any]] = None,
    ) -> EvaluationResult:
        scope = Scope(input=input, variables=variables or {}, separator=self.separator)
        try:
            return EvaluationResult(truthy(self.root.evaluate(scope)))
        except EvaluationFault as exc:
            exc.context.setdefault("expression", self.expression)
            logger.warning("Evaluation failed for %r: %s", self.expression, exc)
            return EvaluationResult(False, exc)
        except (TypeError, ValueError, ArithmeticError, RecursionError) as exc:
            fault = EvaluationFault(str(exc), context={"expression": self.expression})
            logger.warning("Evaluation failed for %r: %s", self.expression, exc)
            return EvaluationResult(False, fault)

    def __call__(
        self,
        input: Mapping[str, Any],
        variables: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        return self.evaluate(input, variables).value

    def __repr__(self) -> str:
        return f"Predicate({self.expression!r})"


def compile_expression(expression: str, separator: str = DEFAULT_SEPARATOR) -> Predicate:
    """Compile translated text into a :class:`Predicate`.

    Raises:
        ExpressionSyntaxError: If the text is outside the grammar
    """
    return Predicate(expression, ExpressionParser().parse(expression), separator)


__all__ = [
    "compile_expression",
    "Predicate",
    "EvaluationResult",
    "ExpressionParser",
    "truthy",
    "display",
    "strict_equal",
    "loose_equal",
]
