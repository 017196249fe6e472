"""Unit tests for delimiter span extraction."""

import pytest

from pii_chat.pii.spans import extract_delimited_spans


@pytest.mark.parametrize(
    "text,expected",
    [
        ("My name is <s>John Doe</s>", ["John Doe"]),
        ("<s>Ann</s> and <s>555-1234</s>", ["Ann", "555-1234"]),
        ("No PII detected.", []),
        ("", []),
        ("<s>Ann</s> met <s>Ann</s>", ["Ann", "Ann"]),
        ("<s>12 Main St\nSpringfield</s>", ["12 Main St\nSpringfield"]),
        ("unclosed <s>John", []),
    ],
)
def test_extract_default_delimiters(text, expected):
    assert extract_delimited_spans(text) == expected


def test_extraction_is_non_greedy():
    assert extract_delimited_spans("<s>a</s> x <s>b</s>") == ["a", "b"]


def test_custom_delimiters_are_escaped():
    text = "Found [[John Doe]] and [[+1 (555) 010]]"

    assert extract_delimited_spans(text, "[[", "]]") == ["John Doe", "+1 (555) 010"]
