"""Tests for recovering JSON objects from model output."""

import json

from app.backend.services.ai import RAW_RESPONSE_KEY, recover_json


class TestRecoverJson:
    """Tests for recover_json."""

    def test_plain_object(self):
        assert recover_json('{"a":"1","b":"2"}') == {"a": "1", "b": "2"}

    def test_object_surrounded_by_prose(self):
        text = 'Sure! Here is the data: {"total":"9.99"} Hope that helps!'
        assert recover_json(text) == {"total": "9.99"}

    def test_markdown_fenced_object(self):
        text = '```json\n{"business_name": "Coffee Corner", "total": "$8.37"}\n```'
        assert recover_json(text) == {"business_name": "Coffee Corner", "total": "$8.37"}

    def test_nested_braces(self):
        """Test that inner objects are kept inside the outermost span."""
        text = 'Result: {"store": {"name": "Shop", "city": "Oslo"}, "total": "5.00"}.'
        assert recover_json(text) == {
            "store": {"name": "Shop", "city": "Oslo"},
            "total": "5.00",
        }

    def test_stray_closing_brace_before_object(self):
        """Test that a } before the first { does not affect the span."""
        text = 'Oops } ignore that. {"total": "1.00"}'
        assert recover_json(text) == {"total": "1.00"}

    def test_non_string_scalars(self):
        assert recover_json('{"count": 3, "paid": true, "tip": null}') == {
            "count": 3,
            "paid": True,
            "tip": None,
        }

    def test_no_json(self):
        assert recover_json("no json here") == {RAW_RESPONSE_KEY: "no json here"}

    def test_empty_text(self):
        assert recover_json("") == {RAW_RESPONSE_KEY: ""}

    def test_braces_in_wrong_order(self):
        text = "} backwards {"
        assert recover_json(text) == {RAW_RESPONSE_KEY: text}

    def test_invalid_json_falls_back_to_raw_text(self):
        """Test that a decode failure keeps the whole text, not a partial parse."""
        text = '{"a": invalid}'
        assert recover_json(text) == {"raw_response": text}

    def test_deeply_nested_json_falls_back(self):
        """Test that nesting beyond the decoder's recursion limit does not raise."""
        text = '{"a": ' + "[" * 100000 + "]" * 100000 + "}"
        assert recover_json(text) == {RAW_RESPONSE_KEY: text}

    def test_braces_in_surrounding_prose_fall_back(self):
        """Test the first-{/last-} heuristic on ambiguous input."""
        text = 'Note {see below}: {"total": "2.00"}'
        assert recover_json(text) == {RAW_RESPONSE_KEY: text}

    def test_result_survives_reserialization(self):
        """Test that a decoded result round-trips through JSON unchanged."""
        first = recover_json('Here you go: {"total": "9.99", "items": ["a", "b"]}')
        assert recover_json(json.dumps(first)) == first
