"""
Error reporting for the sign-up form.

One ErrorHandler per process turns unexpected exceptions into FormErrors,
writes them to a rotating log under the platform app-data directory and
re-emits them as a Qt signal for the window. Context values are scrubbed
first so a typed password never lands in the log.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import traceback
from pathlib import Path
from typing import Any, ClassVar

from PySide6.QtCore import QObject, QStandardPaths, Signal

from .config import APP_NAME, APP_ORGANIZATION
from .errors import FormError, wrap_exception

ERROR_LOGGER_NAME = "signup_form.errors"
LOG_FILE_MAX_BYTES = 1_048_576
LOG_FILE_BACKUPS = 3
MAX_CONTEXT_ITEMS = 20
MAX_VALUE_LENGTH = 200
SENSITIVE_KEYS = ("password", "token", "key", "secret")


def _scrub(key: str, value: Any) -> str:
    if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
        return "[REDACTED]"
    text = value if isinstance(value, str) else repr(value)
    if len(text) > MAX_VALUE_LENGTH:
        return text[:MAX_VALUE_LENGTH] + "..."
    return text


def _log_directory() -> Path:
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
    if location:
        return Path(location) / "logs"
    # No app data location; fall back to the config directory
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.ConfigLocation)
    return Path(location) / APP_ORGANIZATION / APP_NAME / "logs"


class ErrorHandler(QObject):
    """
    Process-wide sink for unexpected exceptions.

    Signals:
        errorOccurred(object): a FormError was handled
    """

    errorOccurred = Signal(object)

    _instance: ClassVar[ErrorHandler | None] = None
    _logger: ClassVar[logging.Logger | None] = None

    def __new__(cls) -> ErrorHandler:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return

        super().__init__()
        self._initialized = True
        self._original_excepthook = sys.excepthook
        self._setup_logging()

    def capture(self, exception: Exception, context: dict[str, Any] | None = None) -> FormError:
        """Wrap ``exception`` with a scrubbed copy of ``context`` and the current traceback."""
        items = list((context or {}).items())
        safe_context = {key: _scrub(key, value) for key, value in items[:MAX_CONTEXT_ITEMS]}
        if len(items) > MAX_CONTEXT_ITEMS:
            safe_context["..."] = f"({len(items) - MAX_CONTEXT_ITEMS} more items truncated)"

        form_error = wrap_exception(exception, safe_context)
        if not form_error.technical_message:
            form_error.technical_message = f"{type(exception).__name__}: {exception}"

        if "traceback" not in form_error.context:
            trace = traceback.format_exc()
            if trace == "NoneType: None\n":
                trace = f"{type(exception).__name__}: {exception}\n"
            form_error.context["traceback"] = trace

        return form_error

    def handle(self, exception: Exception, context: dict[str, Any] | None = None) -> FormError:
        """
        Log an exception and emit errorOccurred.

        SystemExit and KeyboardInterrupt are re-raised untouched.
        """
        if isinstance(exception, SystemExit | KeyboardInterrupt):
            raise exception

        form_error = self.capture(exception, context)

        if self._logger:
            self._logger.error(
                f"[{form_error.code.value}] {form_error.user_message}",
                extra={"app_code": form_error.code.value, "error_type": form_error.type.value},
                exc_info=exception,
            )

        self.errorOccurred.emit(form_error)
        return form_error

    def _setup_logging(self) -> None:
        try:
            logs_dir = _log_directory()
            logs_dir.mkdir(parents=True, exist_ok=True)

            ErrorHandler._logger = logging.getLogger(ERROR_LOGGER_NAME)
            ErrorHandler._logger.setLevel(logging.DEBUG)
            ErrorHandler._logger.propagate = False

            if ErrorHandler._logger.handlers:
                return

            formatter = logging.Formatter(
                "%(asctime)s | %(levelname)s | code=%(app_code)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            file_handler = logging.handlers.RotatingFileHandler(
                logs_dir / "app.log",
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            ErrorHandler._logger.addHandler(file_handler)

            if __debug__:
                console_handler = logging.StreamHandler()
                console_handler.setFormatter(formatter)
                console_handler.setLevel(logging.WARNING)
                ErrorHandler._logger.addHandler(console_handler)

        except Exception as e:
            logging.basicConfig(level=logging.ERROR)
            logging.error(f"Failed to setup error logging: {e}")

    def install_hooks(self) -> None:
        """Route uncaught exceptions from the main thread through handle()."""

        def exception_hook(exc_type: type[BaseException], exc_value: BaseException, exc_traceback: Any) -> None:
            if not isinstance(exc_value, Exception):
                self._original_excepthook(exc_type, exc_value, exc_traceback)
                return
            try:
                self.handle(exc_value, {"source": "sys.excepthook"})
            except Exception:
                self._original_excepthook(exc_type, exc_value, exc_traceback)

        sys.excepthook = exception_hook

    def restore_hooks(self) -> None:
        sys.excepthook = self._original_excepthook


def get_error_handler() -> ErrorHandler:
    return ErrorHandler()


def setup_error_handling() -> ErrorHandler:
    """Install the excepthook. Call once at application startup."""
    handler = get_error_handler()
    handler.install_hooks()
    return handler


def init_logging(level: int = logging.INFO) -> None:
    """Configure console logging and create the error log."""
    get_error_handler()

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
