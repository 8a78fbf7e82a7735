from __future__ import annotations

from typing import Any, Dict, Mapping


class StencilryError(Exception):
    """Base exception for Stencilry."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class DirectiveSyntaxError(StencilryError, SyntaxError):
    """Raised when directive text contains a disallowed bare word."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StencilryError.__init__(self, message, context=context)
        SyntaxError.__init__(self, message)


class UnterminatedLiteralError(DirectiveSyntaxError):
    """Raised when a string literal delimiter is never closed."""


class ExpressionSyntaxError(DirectiveSyntaxError):
    """Raised when a translated expression falls outside the evaluator grammar."""


class EvaluationFault(StencilryError, RuntimeError):
    """Raised while evaluating a compiled predicate against a context.

    Predicates catch this and report it through ``EvaluationResult``.
    """

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StencilryError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class TransformError(StencilryError, ValueError):
    """Base class for output tag failures."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StencilryError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class TransformTypeError(TransformError, TypeError):
    """Raised when a string transform receives a non-string value."""


class UnknownTransformTagError(TransformError, KeyError):
    """Raised when an output tag is not registered."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0]) if self.args else ""


class ConfigError(StencilryError, ValueError):
    """Raised when configuration cannot be loaded or fails validation."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        StencilryError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "StencilryError",
    "DirectiveSyntaxError",
    "UnterminatedLiteralError",
    "ExpressionSyntaxError",
    "EvaluationFault",
    "TransformError",
    "TransformTypeError",
    "UnknownTransformTagError",
    "ConfigError",
]
