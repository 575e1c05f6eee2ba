"""Tests for CSRF token recovery from session cookie values."""

from __future__ import annotations

import pytest

from loyalbot.backend import extract_csrf_token


@pytest.mark.parametrize(
    ("decoded", "expected"),
    [
        ("foo=bar; crf=XYZ123; baz=qux", "XYZ123"),
        ("crf=first", "first"),
        (";crf=tok42;", "tok42"),
        ("a=1;b=2;crf=late", "late"),
    ],
)
def test_extract_csrf_token_finds_fragment_anywhere(decoded: str, expected: str) -> None:
    """Ensure the crf fragment is found regardless of its position."""
    if extract_csrf_token(decoded) != expected:
        raise AssertionError


@pytest.mark.parametrize(
    "decoded",
    ["no token here", "", "crf=;other=1", "xcrf=nope"],
)
def test_extract_csrf_token_returns_none_without_value(decoded: str) -> None:
    """Ensure missing or empty fragments yield no token."""
    if extract_csrf_token(decoded) is not None:
        raise AssertionError


def test_extract_csrf_token_leaves_input_untouched() -> None:
    """Ensure extraction is a pure read of the input."""
    decoded = "foo=bar; crf=XYZ123"
    _ = extract_csrf_token(decoded)
    if decoded != "foo=bar; crf=XYZ123":
        raise AssertionError
