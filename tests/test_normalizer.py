import pytest

from prompt_gateway.services.normalizer import (
    normalize_response,
    scrub_response,
    strip_thinking_segments,
)
from prompt_gateway.utils.errors import EmptyResponseError


def test_thinking_then_prefix_is_fully_removed():
    raw = "<thinking>reasoning...</thinking>\n\nHere is the enhanced prompt: Actually do X"
    assert normalize_response(raw) == "Actually do X"


def test_strip_thinking_removes_every_segment_and_collapses_newlines():
    raw = "<thinking>a</thinking>Intro\n\n\n\n<thinking>b\nmore</thinking>Body"
    assert strip_thinking_segments(raw) == "Intro\n\nBody"


def test_strip_thinking_without_segments_is_identity():
    raw = "  keep\n\n\n\nspacing  "
    assert strip_thinking_segments(raw) == raw


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Here is an enhanced prompt: Write a haiku", "Write a haiku"),
        ("Here's the enhanced prompt:\nWrite a haiku", "Write a haiku"),
        ("enhanced version: Write a haiku", "Write a haiku"),
        ("Improved prompt Write a haiku", "Write a haiku"),
        ("**Enhanced Prompt:** Write a haiku", "Write a haiku"),
        ("```text\nWrite a haiku\n```", "Write a haiku"),
        ("Write a haiku\n\nHope this helps!", "Write a haiku"),
        ("Write a haiku. This enhanced prompt is more specific and detailed.", "Write a haiku."),
    ],
)
def test_scrub_removes_labels(raw, expected):
    assert scrub_response(raw) == expected


def test_scrub_handles_stacked_prefixes():
    raw = "**Enhanced Prompt:** ```markdown\nEnhanced prompt: # Plan\n- step"
    assert scrub_response(raw) == "# Plan\n- step"


def test_suffixes_are_removed_once():
    raw = "Do X\nHope this helps!\nHope this helps!"
    assert scrub_response(raw) == "Do X\nHope this helps!"


def test_label_prefixes_ignore_case():
    assert scrub_response("ENHANCED PROMPT: Do X") == "Do X"


@pytest.mark.parametrize("raw", ["Enhanced prompt:", "```", "Hope this helps!", "   x   "])
def test_scrub_never_returns_empty_for_non_empty_input(raw):
    assert scrub_response(raw) != ""


@pytest.mark.parametrize(
    "raw",
    [
        "<thinking>secret chain of thought</thinking>",
        "  <thinking>a</thinking>\n\n<thinking>b</thinking>\n",
    ],
)
def test_thinking_only_answer_is_an_empty_response(raw):
    with pytest.raises(EmptyResponseError, match="only thinking segments"):
        normalize_response(raw)


def test_label_only_answer_keeps_thinking_free_text():
    out = normalize_response("<thinking>plan</thinking>\nEnhanced prompt:")
    assert "<thinking>" not in out
    assert out == "Enhanced prompt:"


def test_plain_output_is_only_trimmed():
    assert normalize_response("  Explain quantum computing clearly \n") == "Explain quantum computing clearly"
