"""CSRF token recovery from the decoded session cookie value."""

from __future__ import annotations

import re

_CSRF_FRAGMENT_PATTERN = re.compile(r"(?:^|[;\s])crf=([^;]*)")


def extract_csrf_token(decoded_cookie_value: str) -> str | None:
    """Return the value of the first `crf=` fragment, or None if absent or empty."""
    match = _CSRF_FRAGMENT_PATTERN.search(decoded_cookie_value)
    if match is None:
        return None
    token = match.group(1).strip()
    return token or None
