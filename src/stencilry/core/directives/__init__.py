"""Directive core for Stencilry templates.

- syntax: static operator, keyword and entity tables
- paths: flattening nested input into dotted keys
- translator: DSL text -> evaluator text
- evaluator: constrained predicate compilation
- validity: `$if` / `$loop` / `:else` validation
- output: output tag transforms
- processor: validation + evaluation for renderers
"""
from __future__ import annotations

from .evaluator import EvaluationResult, Predicate, compile_expression
from .output import OUTPUT_TAGS, OutputTag, OutputTagRegistry, apply, apply_transform, escape, unescape
from .paths import build_lookup, flatten, resolve_path
from .processor import DirectiveOutcome, DirectiveProcessor
from .syntax import CONDITION_SYNTAX, NOT_ALLOWED, SYNTAX
from .translator import Token, scan, translate
from .validity import (
    ElseStatement,
    IfStatement,
    InvalidStatement,
    LoopStatement,
    validate,
)

__all__ = [
    # Tables
    "SYNTAX",
    "CONDITION_SYNTAX",
    "NOT_ALLOWED",
    # Paths
    "flatten",
    "build_lookup",
    "resolve_path",
    # Translation
    "Token",
    "scan",
    "translate",
    # Evaluation
    "compile_expression",
    "Predicate",
    "EvaluationResult",
    # Validation
    "validate",
    "IfStatement",
    "LoopStatement",
    "ElseStatement",
    "InvalidStatement",
    # Output
    "OutputTag",
    "OutputTagRegistry",
    "OUTPUT_TAGS",
    "apply",
    "apply_transform",
    "escape",
    "unescape",
    # Processing
    "DirectiveProcessor",
    "DirectiveOutcome",
]
