"""Tests for DirectiveProcessor: validation + evaluation for renderers."""
from __future__ import annotations

import pytest

from stencilry.core.config import ConfigManager, DirectivesConfig
from stencilry.core.directives.processor import DirectiveProcessor
from stencilry.core.directives.validity import ElseStatement, InvalidStatement, LoopStatement
from stencilry.core.exceptions import DirectiveSyntaxError, EvaluationFault


@pytest.fixture
def processor(directives_config: DirectivesConfig) -> DirectiveProcessor:
    return DirectiveProcessor(directives_config)


def test_if_directive(processor: DirectiveProcessor) -> None:
    outcome = processor.evaluate(["$if", "count", ">", "2"], {"count": 3})
    assert outcome.ok
    assert outcome.result is True
    assert processor.evaluated == 1


def test_if_with_variables(processor: DirectiveProcessor) -> None:
    outcome = processor.evaluate(["$if", "item", "eq", '"a"'], {}, {"item": "a"})
    assert outcome.result is True


def test_else_directive(processor: DirectiveProcessor) -> None:
    outcome = processor.evaluate([":else"], {})
    assert isinstance(outcome.statement, ElseStatement)
    assert outcome.result is True


def test_loop_directive(processor: DirectiveProcessor) -> None:
    context = {"items": [1, 2, 3]}
    outcome = processor.evaluate(["$loop", "items", "as", "item"], context)
    assert isinstance(outcome.statement, LoopStatement)
    assert outcome.result is True
    assert list(processor.loop_items(outcome.statement, context)) == [1, 2, 3]


def test_loop_items_prefers_input(processor: DirectiveProcessor) -> None:
    statement = LoopStatement("rows", "row")
    assert processor.loop_items(statement, {"rows": [1]}, {"rows": [2]}) == [1]
    assert processor.loop_items(statement, {}, {"rows": [2]}) == [2]
    assert processor.loop_items(statement, {}, {}) == ()


def test_invalid_directive_is_counted(processor: DirectiveProcessor) -> None:
    outcome = processor.evaluate(["$loop", "items", "item"], {"items": [1]})
    assert isinstance(outcome.statement, InvalidStatement)
    assert outcome.result is False
    assert not outcome.ok
    assert processor.invalid == 1


def test_failing_condition_is_reported(processor: DirectiveProcessor) -> None:
    outcome = processor.evaluate(["$if", "name", ">", "2"], {"name": "bob"})
    assert outcome.result is False
    assert isinstance(outcome.error, EvaluationFault)
    assert processor.failed == 1


def test_uncompilable_condition_is_reported(processor: DirectiveProcessor) -> None:
    # Two operands with no operator between them do not parse.
    outcome = processor.evaluate(["$if", "1", "2"], {})
    assert outcome.result is False
    assert isinstance(outcome.error, DirectiveSyntaxError)
    assert processor.failed == 1


def test_condition_for(processor: DirectiveProcessor) -> None:
    predicate = processor.condition_for(["$if", "x", "EQ", "1"], {"x": 1})
    assert predicate is not None
    assert predicate({"x": 1})
    assert not predicate({"x": "1"})
    assert processor.condition_for(["$loop", "x", "as", "y"], {"x": [1]}) is None
    assert processor.condition_for(["$bogus"], {}) is None


def test_translate_condition_with_dotted_paths(processor: DirectiveProcessor) -> None:
    context = {"user": {"age": 30, "name": "ann"}}
    predicate = processor.translate_condition("user.age > 18 And user.name EQ `ann`", context)
    assert predicate(context)


def test_translate_condition_raises_on_disallowed_word(processor: DirectiveProcessor) -> None:
    with pytest.raises(DirectiveSyntaxError):
        processor.translate_condition("x == 1", {"x": 1})


def test_predicates_are_cached(processor: DirectiveProcessor) -> None:
    first = processor.compile("1 === 1")
    assert processor.compile("1 === 1") is first


def test_cache_is_bounded(isolated_project_env, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STENCILRY_DIRECTIVES__CACHESIZE", "1")
    config = DirectivesConfig(manager=ConfigManager(repo_root=isolated_project_env))
    processor = DirectiveProcessor(config)
    first = processor.compile("1 === 1")
    processor.compile("2 === 2")
    assert processor.compile("1 === 1") is not first


def test_apply_output(processor: DirectiveProcessor) -> None:
    assert processor.apply_output("#", "<x>") == "&lt;x&gt;"
    assert processor.apply_output("nope", "x") is False


def test_long_if_directive_evaluates(processor: DirectiveProcessor) -> None:
    segments = ["$if"] + " and ".join(["x"] * 1500).split()
    outcome = processor.evaluate(segments, {"x": 1})
    assert outcome.ok
    assert outcome.result is True
    assert processor.evaluate(segments, {"x": 0}).result is False

