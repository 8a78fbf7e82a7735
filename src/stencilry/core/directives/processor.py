"""Directive processing for renderers.

Ties validation, translation, compilation and evaluation together and keeps
simple counters for reporting. Renderers hand in whitespace-split directive
segments and receive a :class:`DirectiveOutcome`; nothing here raises for a
malformed directive or a failing condition.

Example:
    processor = DirectiveProcessor()
    outcome = processor.evaluate(["$if", "count", ">", "2"], {"count": 3})
    outcome.result   # True
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from stencilry.core.config import DirectivesConfig
from stencilry.core.exceptions import DirectiveSyntaxError, StencilryError
from stencilry.core.stdlib_logging import configure_from_config

from .evaluator import Predicate, compile_expression
from .output import apply
from .paths import build_lookup
from .translator import translate
from .validity import (
    ElseStatement,
    IfStatement,
    InvalidStatement,
    LoopStatement,
    StatementKind,
    validate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectiveOutcome:
    """Result of processing one directive."""

    statement: Union[StatementKind, InvalidStatement]
    result: bool = False
    error: Optional[StencilryError] = None

    @property
    def ok(self) -> bool:
        return bool(self.statement) and self.error is None


class DirectiveProcessor:
    """Validate and evaluate directives against one render pass's bindings."""

    def __init__(self, config: Optional[DirectivesConfig] = None) -> None:
        self.config = config or DirectivesConfig()
        configure_from_config(self.config.logging)
        self.separator = self.config.path_separator
        self.cache_size = self.config.cache_size
        self._predicates: "OrderedDict[str, Predicate]" = OrderedDict()

        # Tracking for reports
        self.evaluated = 0
        self.failed = 0
        self.invalid = 0

    def compile(self, condition: str) -> Predicate:
        """Compile `condition`, reusing a cached predicate when possible."""
        predicate = self._predicates.get(condition)
        if predicate is not None:
            self._predicates.move_to_end(condition)
            return predicate
        predicate = compile_expression(condition, self.separator)
        if self.cache_size > 0:
            self._predicates[condition] = predicate
            while len(self._predicates) > self.cache_size:
                self._predicates.popitem(last=False)
        return predicate

    def translate_condition(self, source: str, input: Mapping[str, Any]) -> Predicate:
        """Translate free-form condition text and compile it.

        Dotted paths of `input` are accepted as identifiers.

        Raises:
            DirectiveSyntaxError: If the text cannot be translated or parsed
        """
        keys = build_lookup(input, self.separator)
        return self.compile(translate(source, keys))

    def condition_for(
        self,
        segments: Sequence[str],
        input: Mapping[str, Any],
        variables: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Predicate]:
        """Return the predicate of an `$if` / `:else` directive.

        Loops and invalid directives have no predicate.
        """
        statement = validate(segments, input, variables, self.separator)
        if not isinstance(statement, (IfStatement, ElseStatement)):
            return None
        return self.compile(statement.condition)

    def evaluate(
        self,
        segments: Sequence[str],
        input: Mapping[str, Any],
        variables: Optional[Mapping[str, Any]] = None,
    ) -> DirectiveOutcome:
        """Validate one directive and evaluate its condition.

        A valid `$loop` yields ``result=True``; invalid directives and
        failing conditions yield ``result=False``.
        """
        statement = validate(segments, input, variables, self.separator)
        if isinstance(statement, InvalidStatement):
            self.invalid += 1
            return DirectiveOutcome(statement)
        if isinstance(statement, LoopStatement):
            return DirectiveOutcome(statement, result=True)

        try:
            predicate = self.compile(statement.condition)
        except DirectiveSyntaxError as exc:
            self.failed += 1
            logger.warning("Directive %r did not compile: %s", " ".join(segments), exc)
            return DirectiveOutcome(statement, error=exc)

        self.evaluated += 1
        evaluation = predicate.evaluate(input, variables)
        if not evaluation.ok:
            self.failed += 1
        return DirectiveOutcome(statement, result=evaluation.value, error=evaluation.error)

    def loop_items(
        self,
        statement: LoopStatement,
        input: Mapping[str, Any],
        variables: Optional[Mapping[str, Any]] = None,
    ) -> Iterable[Any]:
        """Return the list a valid `$loop` iterates, preferring `input`."""
        variables = variables or {}
        for source in (input, variables):
            value = source.get(statement.var_name)
            if isinstance(value, (list, tuple)):
                return value
        return ()

    def apply_output(self, tag: str, value: Any) -> Union[str, bool]:
        """Apply an output tag; failures yield ``False``."""
        return apply(tag, value, log_failures=self.config.log_output_failures)


__all__ = ["DirectiveProcessor", "DirectiveOutcome"]
