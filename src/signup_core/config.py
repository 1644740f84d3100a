"""
Application identifiers and default settings for the sign-up form engine.
"""

from typing import Any

# Application identifiers, used for the log directory
APP_ORGANIZATION = "SignUpForm"
APP_NAME = "Validator"

# Strength rule: one uppercase, one digit, one lowercase, at least 6 characters
DEFAULT_STRENGTH_PATTERN = r"(?=.*[A-Z])(?=.*[0-9])(?=.*[a-z]).{6,}"

DEFAULT_CONFIG: dict[str, Any] = {
    # Quiet periods (milliseconds)
    "username_debounce_ms": 800,
    "password_debounce_ms": 800,
    "confirmation_debounce_ms": 200,
    # Predicates
    "min_username_length": 3,
    "strength_pattern": DEFAULT_STRENGTH_PATTERN,
    # Which predicate feeds the first classifier slot
    "empty_check": "password",  # Options: "password", "equality"
}
