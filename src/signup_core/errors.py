"""
Exceptions raised by the sign-up form engine.

The inline password message is plain data and never becomes an exception.
Two things do: a FormConfig that cannot be used (raised while the session
is built) and a scheduled step that blows up inside the event loop (wrapped
and handed to the ErrorHandler).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Where an error came from."""

    CONFIG = "config"
    RUNTIME = "runtime"


class ErrorCode(Enum):
    CONFIG_INVALID = "CONFIG_INVALID"
    PATTERN_INVALID = "PATTERN_INVALID"
    CALLBACK_FAILED = "CALLBACK_FAILED"


@dataclass
class FormError(Exception):
    """Base error carrying a code, a short user message and a context dict."""

    type: ErrorType
    code: ErrorCode
    user_message: str
    technical_message: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.user_message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message='{self.user_message}')"


class ConfigError(FormError):
    """A FormConfig value was rejected. Raised before any graph node exists."""

    def __init__(
        self,
        code: ErrorCode,
        user_message: str,
        key: str | None = None,
        technical_message: str | None = None,
    ):
        super().__init__(
            type=ErrorType.CONFIG,
            code=code,
            user_message=user_message,
            technical_message=technical_message,
            context={"key": key} if key else {},
        )

    @property
    def key(self) -> str | None:
        """Name of the rejected FormConfig field."""
        return self.context.get("key")


class CallbackError(FormError):
    """A scheduled debounce or hand-off callback raised."""

    def __init__(self, user_message: str, technical_message: str | None = None, context: dict[str, Any] | None = None):
        super().__init__(
            type=ErrorType.RUNTIME,
            code=ErrorCode.CALLBACK_FAILED,
            user_message=user_message,
            technical_message=technical_message,
            context=context or {},
        )


def wrap_exception(exc: Exception, context: dict[str, Any] | None = None) -> FormError:
    """
    Normalize any exception into a FormError.

    FormErrors pass through unchanged; anything else becomes a CallbackError
    whose technical message names the original type.
    """
    if isinstance(exc, FormError):
        return exc

    return CallbackError(
        user_message="Validation could not be updated",
        technical_message=f"{type(exc).__name__}: {exc}",
        context=context,
    )
