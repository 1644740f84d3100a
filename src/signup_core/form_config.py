"""
FormConfig dataclass for one validation session.

Holds the quiet periods, predicate parameters and classifier wiring used when
a FormSession builds its signal graph. Defaults come from DEFAULT_CONFIG.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

from .config import DEFAULT_CONFIG
from .errors import ConfigError, ErrorCode


class EmptyCheck(Enum):
    """Predicate wired into the first slot of the password classifier."""

    PASSWORD = "password"  # the password itself is empty
    EQUALITY = "equality"  # legacy: password equals its confirmation


@dataclass(frozen=True)
class FormConfig:
    """
    Configuration for a FormSession.

    Durations are in milliseconds. The strength pattern must match the whole
    password for it to count as strong.
    """

    username_debounce_ms: int = DEFAULT_CONFIG["username_debounce_ms"]
    password_debounce_ms: int = DEFAULT_CONFIG["password_debounce_ms"]
    confirmation_debounce_ms: int = DEFAULT_CONFIG["confirmation_debounce_ms"]
    min_username_length: int = DEFAULT_CONFIG["min_username_length"]
    strength_pattern: str = DEFAULT_CONFIG["strength_pattern"]
    empty_check: EmptyCheck = EmptyCheck(DEFAULT_CONFIG["empty_check"])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FormConfig:
        """
        Create a FormConfig from a dictionary.

        Unknown keys are ignored; string values for ``empty_check`` are
        converted to EmptyCheck.

        Raises:
            ConfigError: If ``empty_check`` names an unknown wiring
        """
        config_data = data.copy()

        if "empty_check" in config_data and isinstance(config_data["empty_check"], str):
            try:
                config_data["empty_check"] = EmptyCheck(config_data["empty_check"])
            except ValueError as e:
                raise ConfigError(
                    code=ErrorCode.CONFIG_INVALID,
                    user_message=f"Unknown empty check: {config_data['empty_check']!r}",
                    key="empty_check",
                    technical_message=str(e),
                ) from e

        valid_fields = {f.name for f in fields(cls)}
        filtered_data = {k: v for k, v in config_data.items() if k in valid_fields}

        return cls(**filtered_data)

    def to_dict(self) -> dict[str, Any]:
        """Convert the configuration to a dictionary for logging."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.value if isinstance(value, Enum) else value
        return result

    def compiled_strength_pattern(self) -> re.Pattern[str]:
        """
        Compile the password strength pattern.

        Raises:
            ConfigError: If the pattern does not compile
        """
        try:
            return re.compile(self.strength_pattern)
        except re.error as e:
            raise ConfigError(
                code=ErrorCode.PATTERN_INVALID,
                user_message="Password strength pattern is not a valid regular expression",
                key="strength_pattern",
                technical_message=f"{self.strength_pattern!r}: {e}",
            ) from e

    def validate(self) -> None:
        """
        Check every field, raising on the first problem.

        Raises:
            ConfigError: If a duration or length is negative, the wiring is
                unknown, or the strength pattern does not compile
        """
        for key in ("username_debounce_ms", "password_debounce_ms", "confirmation_debounce_ms"):
            value = getattr(self, key)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(
                    code=ErrorCode.CONFIG_INVALID,
                    user_message=f"{key} must be a non-negative integer",
                    key=key,
                    technical_message=f"got {value!r}",
                )

        if (
            not isinstance(self.min_username_length, int)
            or isinstance(self.min_username_length, bool)
            or self.min_username_length < 0
        ):
            raise ConfigError(
                code=ErrorCode.CONFIG_INVALID,
                user_message="min_username_length must be a non-negative integer",
                key="min_username_length",
                technical_message=f"got {self.min_username_length!r}",
            )

        if not isinstance(self.empty_check, EmptyCheck):
            raise ConfigError(
                code=ErrorCode.CONFIG_INVALID,
                user_message=f"Unknown empty check: {self.empty_check!r}",
                key="empty_check",
            )

        self.compiled_strength_pattern()
