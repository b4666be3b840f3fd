"""Tests for LLM output parsing helpers."""

import pytest

from job_recommendations.errors import ParseError
from job_recommendations.utils.llm_output import (
    extract_bounded_integer,
    isolate_json_object,
    parse_json_object,
)


class TestExtractBoundedInteger:
    """Tests for reading a score out of a free-form reply."""

    def test_reads_number_inside_prose(self):
        """Test the first number in a sentence is used."""
        assert extract_bounded_integer("The candidate is an 87% match.") == 87

    def test_bare_number(self):
        assert extract_bounded_integer("64") == 64

    def test_no_digits_returns_minimum(self):
        """Test a reply without digits scores the minimum instead of failing."""
        assert extract_bounded_integer("I cannot determine a score") == 0
        assert extract_bounded_integer("", 10, 90) == 10
        assert extract_bounded_integer(None) == 0

    def test_clamps_to_maximum(self):
        assert extract_bounded_integer("250") == 100

    def test_clamps_to_minimum(self):
        assert extract_bounded_integer("score: 3", minimum=5, maximum=50) == 5

    def test_only_first_run_of_up_to_three_digits(self):
        """Test long digit runs are split into 3-digit groups and the first is taken."""
        assert extract_bounded_integer("Score 75 out of 100") == 75
        assert extract_bounded_integer("12345") == 100

    def test_sign_is_ignored(self):
        assert extract_bounded_integer("-5") == 5


class TestIsolateJsonObject:
    """Tests for finding the first balanced JSON object."""

    def test_object_wrapped_in_prose(self):
        text = 'Here is the profile:\n{"full_name": "Ada"}\nLet me know!'
        assert isolate_json_object(text) == '{"full_name": "Ada"}'

    def test_code_fence(self):
        text = '```json\n{"skills": ["Python"]}\n```'
        assert isolate_json_object(text) == '{"skills": ["Python"]}'

    def test_nested_objects(self):
        text = 'x {"a": {"b": {"c": 1}}} y {"d": 2}'
        assert isolate_json_object(text) == '{"a": {"b": {"c": 1}}}'

    def test_braces_inside_strings_are_ignored(self):
        text = 'prefix {"note": "use {curly} braces }", "n": 2} suffix'
        assert isolate_json_object(text) == '{"note": "use {curly} braces }", "n": 2}'

    def test_escaped_quotes_inside_strings(self):
        text = r'{"quote": "she said \"hi {\" to me", "n": 1}'
        assert isolate_json_object(text) == text

    def test_skips_unbalanced_brace(self):
        """Test an unclosed brace before the real object does not hide it."""
        text = 'broken { start then {"a": 1}'
        assert isolate_json_object(text) == '{"a": 1}'

    def test_no_object_raises(self):
        with pytest.raises(ParseError) as exc_info:
            isolate_json_object("no json here")
        assert exc_info.value.raw == "no json here"

    def test_empty_raises(self):
        with pytest.raises(ParseError):
            isolate_json_object("")


class TestParseJsonObject:
    """Tests for decoding the isolated object."""

    def test_parses_object(self):
        assert parse_json_object('Result: {"experience_years": 5}') == {"experience_years": 5}

    def test_invalid_json_raises(self):
        """Test balanced but invalid JSON raises ParseError with the raw text."""
        text = "{'single': 'quotes'}"
        with pytest.raises(ParseError) as exc_info:
            parse_json_object(text)
        assert exc_info.value.raw == text
