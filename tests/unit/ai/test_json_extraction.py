"""Tests for pulling JSON out of model output."""

import pytest

from evexia.ai.json_extraction import extract_json_object


class TestExtractJsonObject:
    """Fenced blocks, bare objects and garbage."""

    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"clinician_summary": "ok"}\n```\nThanks'
        assert extract_json_object(text) == {"clinician_summary": "ok"}

    def test_fence_without_language(self):
        assert extract_json_object('```\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_object_surrounded_by_prose(self):
        text = 'Sure! {"a": {"b": 2}} Let me know if you need more.'
        assert extract_json_object(text) == {"a": {"b": 2}}

    def test_braces_inside_strings(self):
        text = 'prefix {"note": "use {curly} braces", "q": "say \\"hi\\""} suffix'
        assert extract_json_object(text) == {"note": "use {curly} braces", "q": 'say "hi"'}

    def test_broken_fence_falls_back_to_body(self):
        text = '```json\nnot json\n```\n{"a": 1}'
        assert extract_json_object(text) == {"a": 1}

    def test_skips_unparseable_leading_braces(self):
        assert extract_json_object('{oops} then {"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("text", [None, "", "   ", "no json here", "[1, 2, 3]", "{unclosed"])
    def test_nothing_usable(self, text):
        assert extract_json_object(text) is None
