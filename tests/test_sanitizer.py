"""Tests for raw-output sanitization."""

import json

import pytest
from backend.app.services.sanitizer import (
    extract_object_span,
    remove_trailing_commas,
    sanitize,
    strip_fences,
)

WELL_FORMED = '{"workoutPlan": [{"day": "Day 1", "exercises": []}], "tips": {"tips": ["Hydrate"]}}'


# ---------------------------------------------------------------------------
# Fences
# ---------------------------------------------------------------------------


class TestFences:
    def test_json_fence_removed(self) -> None:
        raw = '```json\n{"a": 1}\n```'
        assert strip_fences(raw) == '{"a": 1}'

    def test_fence_tag_is_case_insensitive(self) -> None:
        raw = '```JSON\n{"a": 1}\n```'
        assert strip_fences(raw) == '{"a": 1}'

    def test_untagged_fence_removed(self) -> None:
        raw = '```\n{"a": 1}\n```'
        assert strip_fences(raw) == '{"a": 1}'

    def test_other_language_tag_removed(self) -> None:
        raw = '```javascript\n{"a": 1}\n```'
        assert sanitize(raw) == '{"a": 1}'


# ---------------------------------------------------------------------------
# Span extraction
# ---------------------------------------------------------------------------


class TestSpanExtraction:
    def test_surrounding_prose_discarded(self) -> None:
        raw = 'Here is your plan:\n{"a": 1}\nLet me know if you need changes!'
        assert sanitize(raw) == '{"a": 1}'

    def test_nested_braces_kept(self) -> None:
        raw = 'Sure! {"a": {"b": [1, 2]}} Done.'
        assert extract_object_span(raw) == '{"a": {"b": [1, 2]}}'

    def test_truncated_output_kept_from_first_brace(self) -> None:
        raw = 'Plan follows {"name": "Day 1", "exercises": [{"name": "Squ'
        assert extract_object_span(raw) == '{"name": "Day 1", "exercises": [{"name": "Squ'

    def test_stray_closing_brace_before_object_ignored(self) -> None:
        raw = 'note: } then {"day": "Day 1", "exercises": ['
        assert extract_object_span(raw) == '{"day": "Day 1", "exercises": ['

    def test_no_braces_returns_text(self) -> None:
        assert extract_object_span("no json here") == "no json here"


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class TestNormalization:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ('{"a": 1,}', '{"a": 1}'),
            ('{"a": [1, 2, ]}', '{"a": [1, 2 ]}'),
            ('{"a": [1, 2],\n}', '{"a": [1, 2]\n}'),
        ],
    )
    def test_trailing_commas_removed(self, text: str, expected: str) -> None:
        assert remove_trailing_commas(text) == expected

    def test_single_quotes_become_double(self) -> None:
        assert sanitize("{'a': 'b'}") == '{"a": "b"}'
        assert json.loads(sanitize("{'a': 'b'}")) == {"a": "b"}

    def test_apostrophe_corruption_is_known_limitation(self) -> None:
        # Accepted trade-off: apostrophes inside values are also replaced.
        assert sanitize('{"tip": "Don\'t skip"}') == '{"tip": "Don"t skip"}'


# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------


class TestIdempotence:
    @pytest.mark.parametrize(
        "text",
        [
            WELL_FORMED,
            '{"a": 1}',
            '{"nested": {"list": [{"x": 1}, {"x": 2}]}, "empty": []}',
        ],
    )
    def test_sanitize_twice_equals_once(self, text: str) -> None:
        once = sanitize(text)
        assert sanitize(once) == once

    def test_fenced_input_idempotent_after_first_pass(self) -> None:
        raw = f"```json\n{WELL_FORMED}\n```"
        once = sanitize(raw)
        assert once == WELL_FORMED
        assert sanitize(once) == once
