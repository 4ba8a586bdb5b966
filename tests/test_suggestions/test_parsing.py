"""Tests for extracting suggestions from raw model output."""

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from cmdsense.suggestions.models import REASON_MAX_LENGTH, SuggestionSource
from cmdsense.suggestions.parsing import (
    MAX_SUGGESTIONS,
    decode_suggestions,
    find_json_array,
    iter_bracket_spans,
    parse_suggestions,
)


def _array(*items: dict) -> str:
    return json.dumps(list(items))


# Bracket scanning tests


class TestIterBracketSpans:
    """Tests for the bracket-balance scanner."""

    def test_single_span(self):
        assert list(iter_bracket_spans('say [1, 2] ok')) == ["[1, 2]"]

    def test_multiple_top_level_spans(self):
        assert list(iter_bracket_spans("[a] then [[b], c]")) == ["[a]", "[[b], c]"]

    def test_brackets_inside_strings_ignored(self):
        text = '[{"command": "echo ]", "reason": "a [b"}]'
        assert list(iter_bracket_spans(text)) == [text]

    def test_escaped_quote_inside_string(self):
        text = r'[{"command": "echo \"]\"", "reason": "r"}]'
        assert list(iter_bracket_spans(text)) == [text]

    def test_unbalanced_yields_nothing(self):
        assert list(iter_bracket_spans('[{"command": "ls"')) == []

    def test_stray_bracket_before_array_skipped(self):
        text = 'Options [see below:\n[{"command": "ls -la", "reason": "list files"}]'
        assert list(iter_bracket_spans(text)) == ['[{"command": "ls -la", "reason": "list files"}]']

    def test_no_brackets(self):
        assert list(iter_bracket_spans("nothing here")) == []


class TestFindJsonArray:
    """Tests for picking the candidate array."""

    def test_prefers_json_fence(self):
        text = 'Options [a, b]\n```json\n[{"command": "ls", "reason": "list"}]\n```'
        assert find_json_array(text) == '[{"command": "ls", "reason": "list"}]'

    def test_plain_fence(self):
        text = 'Here:\n```\n[{"command": "ls", "reason": "list"}]\n```\n'
        assert find_json_array(text) == '[{"command": "ls", "reason": "list"}]'

    def test_prefers_object_array_over_earlier_span(self):
        text = 'Options [beta]: [{"command": "ls", "reason": "list"}]'
        assert find_json_array(text) == '[{"command": "ls", "reason": "list"}]'

    def test_empty_array(self):
        assert find_json_array("Nothing to suggest: []") == "[]"

    def test_falls_back_to_first_span(self):
        assert find_json_array("values [1] and [2]") == "[1]"

    @pytest.mark.parametrize("text", ["", "no array", "[unclosed", "]["])
    def test_none_when_missing(self, text: str):
        assert find_json_array(text) is None


# Decoding tests


class TestDecodeSuggestions:
    """Tests for strict decoding."""

    def test_skips_malformed_items(self):
        candidate = _array(
            {"command": "ls", "reason": "list"},
            {"command": "pwd"},
            {"reason": "no command"},
            {"command": 42, "reason": "not a string"},
            {"command": "   ", "reason": "blank"},
            "just a string",
            {"command": "git status", "reason": "check"},
        )
        assert [s.command for s in decode_suggestions(candidate)] == ["ls", "git status"]

    def test_not_an_array(self):
        assert decode_suggestions('{"command": "ls"}') == []

    def test_invalid_json(self):
        assert decode_suggestions("[{command: npm install}]") == []

    def test_confidence_handling(self):
        candidate = _array(
            {"command": "a", "reason": "r", "confidence": 1.7},
            {"command": "b", "reason": "r", "confidence": -3},
            {"command": "c", "reason": "r", "confidence": "high"},
            {"command": "d", "reason": "r", "confidence": 0.4},
            {"command": "e", "reason": "r", "confidence": True},
        )
        assert [s.confidence for s in decode_suggestions(candidate)] == [1.0, 0.0, 0.8, 0.4, 0.8]

    def test_source_handling(self):
        candidate = _array(
            {"command": "a", "reason": "r", "source": "gitStatus"},
            {"command": "b", "reason": "r", "source": "mystery"},
            {"command": "c", "reason": "r"},
        )
        assert [s.source for s in decode_suggestions(candidate)] == [
            SuggestionSource.GIT_STATUS,
            SuggestionSource.GENERAL_CONTEXT,
            SuggestionSource.GENERAL_CONTEXT,
        ]


# parse_suggestions tests


class TestParseSuggestions:
    """Tests for the full parsing pipeline."""

    def test_simple_array(self):
        result = parse_suggestions('[{"command": "npm install", "reason": "Install deps", "source": "projectContext"}]')
        assert len(result) == 1
        assert result[0].command == "npm install"
        assert result[0].reason == "Install deps"
        assert result[0].source == SuggestionSource.PROJECT_CONTEXT
        assert result[0].confidence == 0.8

    def test_fenced_with_prose_and_long_reason(self):
        raw = (
            "Sure! ```json\n"
            '[{"command":"npm test","reason":"run the test suite to verify nothing broke"}]\n'
            "``` Let me know!"
        )
        result = parse_suggestions(raw)

        assert len(result) == 1
        assert result[0].command == "npm test"
        assert len(result[0].reason) <= REASON_MAX_LENGTH
        assert result[0].reason.endswith("…")
        assert result[0].source == SuggestionSource.GENERAL_CONTEXT

    def test_prose_around_bare_array(self):
        raw = 'Here are some ideas:\n[{"command": "ls -la", "reason": "list files"}]\nHope that helps.'
        assert [s.command for s in parse_suggestions(raw)] == ["ls -la"]

    def test_stray_bracket_in_prose(self):
        raw = 'Options [see below:\n[{"command": "ls -la", "reason": "list files"}]'
        result = parse_suggestions(raw)
        assert [s.command for s in result] == ["ls -la"]
        assert result[0].reason == "list files"

    def test_caps_at_three_in_order(self):
        raw = _array(*({"command": f"cmd{i}", "reason": "r"} for i in range(5)))
        assert [s.command for s in parse_suggestions(raw)] == ["cmd0", "cmd1", "cmd2"]

    def test_cap_applies_after_dropping_malformed(self):
        raw = _array(
            {"command": "a"},
            {"command": "b", "reason": "r"},
            {"reason": "r"},
            {"command": "c", "reason": "r"},
            {"command": "d", "reason": "r"},
            {"command": "e", "reason": "r"},
        )
        assert [s.command for s in parse_suggestions(raw)] == ["b", "c", "d"]

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "I don't have any suggestions right now.",
            "[]",
            '[{"command": "ls"',
            "[{command: npm install}]",
            '{"command": "ls", "reason": "list"}',
            "[1, 2, 3]",
        ],
    )
    def test_unusable_output_yields_empty(self, raw: str):
        assert parse_suggestions(raw) == []

    @given(st.text())
    @settings(max_examples=300)
    def test_never_raises_on_arbitrary_text(self, raw: str):
        """Property: any text parses to at most three suggestions."""
        assert len(parse_suggestions(raw)) <= MAX_SUGGESTIONS

    @given(
        st.lists(
            st.fixed_dictionaries(
                {"command": st.text(min_size=1).filter(str.strip), "reason": st.text()},
                optional={"confidence": st.floats(allow_nan=False), "source": st.text()},
            ),
            max_size=8,
        ),
        st.text(alphabet="abc xyz!.\n"),
    )
    @settings(max_examples=100)
    def test_well_formed_arrays(self, items: list[dict], prose: str):
        """Property: well-formed items survive up to the cap, in order, within bounds."""
        result = parse_suggestions(f"{prose}\n{json.dumps(items)}\n{prose}")

        assert [s.command for s in result] == [item["command"].strip() for item in items][:MAX_SUGGESTIONS]
        for suggestion in result:
            assert 0.0 <= suggestion.confidence <= 1.0
            assert len(suggestion.reason) <= REASON_MAX_LENGTH
