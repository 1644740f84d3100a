"""
Pure predicates over settled form input.

Every function is total: it accepts any string, including the empty one.
"""

from __future__ import annotations

import re

from .config import DEFAULT_CONFIG, DEFAULT_STRENGTH_PATTERN

_DEFAULT_STRENGTH = re.compile(DEFAULT_STRENGTH_PATTERN)


def username_valid(username: str, min_length: int = DEFAULT_CONFIG["min_username_length"]) -> bool:
    """Return True if the username has at least ``min_length`` characters."""
    return len(username) >= min_length


def password_empty(password: str) -> bool:
    return password == ""


def passwords_equal(password: str, password_again: str) -> bool:
    return password == password_again


def password_strong(password: str, pattern: re.Pattern[str] | None = None) -> bool:
    """
    Check the password against the strength rule.

    The default rule needs an uppercase letter, a digit, a lowercase letter
    and a length of at least 6. The pattern must match the whole password.
    """
    pattern = pattern or _DEFAULT_STRENGTH
    return pattern.fullmatch(password) is not None
