"""Tests for output tags and the escape/unescape codecs."""
from __future__ import annotations

import pytest

from stencilry.core.directives.output import (
    OUTPUT_TAGS,
    OutputTag,
    OutputTagRegistry,
    apply,
    apply_transform,
    capitalize,
    escape,
    serialize,
    unescape,
)
from stencilry.core.exceptions import TransformTypeError, UnknownTransformTagError


class TestEscape:
    def test_escape(self) -> None:
        assert apply("escape", "<a>&") == "&lt;a&gt;&amp;"

    def test_escape_quotes(self) -> None:
        assert escape("'\"") == "&#39;&quot;"

    def test_unescape(self) -> None:
        assert apply("unescape", "&lt;a&gt;&amp;") == "<a>&"

    @pytest.mark.parametrize("text", ["<a href='x'>\"q\" & r</a>", "&lt;", "&&;", "plain", ""])
    def test_escape_then_unescape_restores_original(self, text: str) -> None:
        assert unescape(escape(text)) == text

    @pytest.mark.parametrize(
        "encoded,decoded",
        [
            ("&#60;&#62;&#38;&#39;&#34;", "<>&'\""),
            ("&#x3c;&#x3C;&#X3e;", "<<>"),
            ("&apos;&quot;", "'\""),
        ],
    )
    def test_numeric_and_named_entities(self, encoded: str, decoded: str) -> None:
        assert unescape(encoded) == decoded

    @pytest.mark.parametrize(
        "text",
        ["&nbsp;", "a & b", "&", "&lt", "fish&chips", "&#999;"],
    )
    def test_unknown_candidates_pass_through(self, text: str) -> None:
        assert unescape(text) == text

    def test_adjacent_ampersands_flush_previous_candidate(self) -> None:
        assert unescape("&&lt;") == "&<"
        assert unescape("a &b &gt;") == "a &b >"


class TestTransforms:
    @pytest.mark.parametrize(
        "tag,value,expected",
        [
            ("#", "<b>", "&lt;b&gt;"),
            ("&", "&lt;b&gt;", "<b>"),
            ("@", "  x  ", "x"),
            ("trim", "\tx\n", "x"),
            ("^", "abc", "ABC"),
            ("upper", "abc", "ABC"),
            ("_", "ABC", "abc"),
            ("lower", "ABC", "abc"),
            ("~", "hello world", "Hello world"),
            ("capitalize", "", ""),
        ],
    )
    def test_transform(self, tag: str, value: str, expected: str) -> None:
        assert apply(tag, value) == expected

    def test_capitalize_leaves_rest_untouched(self) -> None:
        assert capitalize("hELLO") == "HELLO"

    def test_empty_tag_passes_value_through(self) -> None:
        assert apply("", "<b>") == "<b>"

    @pytest.mark.parametrize(
        "value,expected",
        [
            (3, "3"),
            (2.5, "2.5"),
            (True, "true"),
            (None, "null"),
            ({"a": [1, 2]}, '{"a":[1,2]}'),
            ([1, "x"], '[1,"x"]'),
        ],
    )
    def test_empty_tag_serializes(self, value: object, expected: str) -> None:
        assert apply("", value) == expected

    def test_structured_values_are_serialized_before_transform(self) -> None:
        assert apply("#", {"a": "<b>"}) == '{&quot;a&quot;:&quot;&lt;b&gt;&quot;}'

    def test_serialize_keeps_primitives(self) -> None:
        assert serialize(3) == 3
        assert serialize("x") == "x"


class TestFailures:
    def test_unknown_tag_yields_false(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            assert apply("?", "x") is False
        assert "Unknown output tag '?'" in caplog.text

    def test_non_string_yields_false(self) -> None:
        assert apply("#", 5) is False
        assert apply("@", None) is False

    def test_failures_can_be_silenced(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            assert apply("?", "x", log_failures=False) is False
        assert caplog.text == ""

    def test_apply_transform_raises(self) -> None:
        with pytest.raises(UnknownTransformTagError) as exc_info:
            apply_transform("?", "x")
        assert exc_info.value.context == {"tag": "?"}
        with pytest.raises(TransformTypeError):
            apply_transform("#", 1.5)


class TestRegistry:
    def test_lookup_by_tag_and_name(self) -> None:
        assert OUTPUT_TAGS.get("#") is OUTPUT_TAGS.get("escape")
        assert "@" in OUTPUT_TAGS
        assert "trim" in OUTPUT_TAGS
        assert "missing" not in OUTPUT_TAGS

    def test_tags_are_read_only(self) -> None:
        with pytest.raises(TypeError):
            OUTPUT_TAGS.tags["!"] = OUTPUT_TAGS.get("#")  # type: ignore[index]

    def test_custom_registry(self) -> None:
        registry = OutputTagRegistry([OutputTag("*", "reverse", "Reverse the value", lambda s: s[::-1])])
        assert apply("*", "abc", registry=registry) == "cba"
        assert apply("#", "abc", registry=registry) is False
