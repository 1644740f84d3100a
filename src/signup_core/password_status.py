"""
Password status classification and inline error messages.
"""

from enum import Enum, auto


class PasswordStatus(Enum):
    """
    Overall state of the password fields.

    Declaration order is the check precedence: emptiness is reported before
    strength, strength before the confirmation mismatch.
    """

    EMPTY = auto()
    NOT_STRONG_ENOUGH = auto()
    REPEAT_PASSWORD_WRONG = auto()
    VALID = auto()


ERROR_MESSAGES: dict[PasswordStatus, str] = {
    PasswordStatus.EMPTY: "Password cannot be empty",
    PasswordStatus.NOT_STRONG_ENOUGH: "Password is too weak",
    PasswordStatus.REPEAT_PASSWORD_WRONG: "Passwords do not match",
    PasswordStatus.VALID: "",
}


def classify_password(empty: bool, strong: bool, equal: bool) -> PasswordStatus:
    """
    Fold the three password checks into a status, first match wins.

    Args:
        empty: Flag from the first classifier slot
        strong: Result of the strength check
        equal: Result of the confirmation check

    Returns:
        The PasswordStatus for this combination
    """
    if empty:
        return PasswordStatus.EMPTY
    if not strong:
        return PasswordStatus.NOT_STRONG_ENOUGH
    if not equal:
        return PasswordStatus.REPEAT_PASSWORD_WRONG
    return PasswordStatus.VALID


def is_form_valid(status: PasswordStatus, username_ok: bool) -> bool:
    return status is PasswordStatus.VALID and username_ok


def error_message_for(status: PasswordStatus) -> str:
    """Return the inline message shown under the password fields."""
    return ERROR_MESSAGES[status]
