from __future__ import annotations

import pytest

from pagepilot_ai.agent_core.abstraction.json_extraction import (
    extract_json_object,
    iter_balanced_objects,
    strip_thinking,
)


def test_thinking_block_is_ignored() -> None:
    text = '<think>maybe {"draft": true}</think>\n{"go_back": {}}'
    result = extract_json_object(text)

    assert result.ok
    assert result.value == {"go_back": {}}


def test_dangling_think_close_drops_prefix() -> None:
    assert strip_thinking('reasoning {"x": 1} more</think> {"a": 1}') == '{"a": 1}'


def test_braces_inside_strings_do_not_count() -> None:
    text = 'Sure! {"input_text": {"index": 2, "text": "a } tricky \\" {value"}} trailing'
    result = extract_json_object(text)

    assert result.value == {"input_text": {"index": 2, "text": 'a } tricky " {value'}}


def test_markdown_fence_is_tolerated() -> None:
    text = 'Here you go:\n```json\n{"done": {"text": "ok"}}\n```'
    assert extract_json_object(text).value == {"done": {"text": "ok"}}


def test_invalid_candidate_is_skipped() -> None:
    text = "{not json} then {\"wait\": {\"seconds\": 1}}"
    result = extract_json_object(text)

    assert result.value == {"wait": {"seconds": 1}}
    assert result.source == '{"wait": {"seconds": 1}}'


def test_nested_objects_yield_only_top_level() -> None:
    assert list(iter_balanced_objects('{"a": {"b": {}}} {"c": 1}')) == ['{"a": {"b": {}}}', '{"c": 1}']


def test_unterminated_object_is_not_yielded() -> None:
    assert list(iter_balanced_objects('{"a": 1')) == []


@pytest.mark.parametrize(
    "text,error",
    [
        ("", "empty response"),
        ("   ", "empty response"),
        ("I cannot help with that", "no JSON object found in response"),
        ("{oops} {nope}", "none of the 2 JSON object candidate(s) could be parsed"),
    ],
)
def test_failures_are_reported(text: str, error: str) -> None:
    result = extract_json_object(text)
    assert not result.ok
    assert result.value is None
    assert result.error == error


def test_unclosed_brace_in_prose_does_not_hide_later_object() -> None:
    text = 'I will use {placeholder syntax. {"go_to_url": {"url": "https://a.b"}}'
    result = extract_json_object(text)

    assert result.value == {"go_to_url": {"url": "https://a.b"}}


def test_quote_inside_invalid_candidate_does_not_hide_later_object() -> None:
    result = extract_json_object('Example {a"} then {"value": 1}')

    assert result.value == {"value": 1}
    assert result.source == '{"value": 1}'


def test_iteration_resumes_after_unclosed_brace() -> None:
    assert list(iter_balanced_objects('{ stray {"a": 1}')) == ['{"a": 1}']
