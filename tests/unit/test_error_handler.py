"""
Tests for ErrorHandler capture, logging setup and hooks.
"""

import sys
import threading
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from signup_core.error_handler import ErrorHandler, get_error_handler, init_logging, setup_error_handling
from signup_core.errors import ConfigError, ErrorCode, ErrorType, FormError


@pytest.fixture
def fresh_handler():
    """Give each test its own ErrorHandler singleton."""
    ErrorHandler._instance = None
    yield
    ErrorHandler._instance = None


class TestSingleton:
    """Test singleton access."""

    def test_same_instance(self, fresh_handler):
        assert ErrorHandler() is ErrorHandler()
        assert get_error_handler() is ErrorHandler()


class TestErrorCapture:
    """Test exception capture and normalization."""

    def setup_method(self):
        """Set up test fixtures."""
        self.handler = get_error_handler()

    def test_capture_basic_exception(self):
        app_error = self.handler.capture(ValueError("Test error"))

        assert isinstance(app_error, FormError)
        assert app_error.type == ErrorType.RUNTIME
        assert app_error.code == ErrorCode.CALLBACK_FAILED
        assert "ValueError: Test error" in app_error.technical_message
        assert "traceback" in app_error.context

    def test_capture_already_app_error(self):
        original = ConfigError(code=ErrorCode.CONFIG_INVALID, user_message="Bad config")

        assert self.handler.capture(original) is original

    def test_capture_redacts_passwords(self):
        """Test that typed passwords never reach the error context."""
        context = {
            "password": "Abcdef1",
            "password_again": "Abcdef1",
            "api_key": "key123",
            "token": "token123",
            "field": "username",
        }

        app_error = self.handler.capture(ValueError("Test error"), context)

        assert app_error.context["password"] == "[REDACTED]"
        assert app_error.context["password_again"] == "[REDACTED]"
        assert app_error.context["api_key"] == "[REDACTED]"
        assert app_error.context["token"] == "[REDACTED]"
        assert app_error.context["field"] == "username"

    def test_capture_truncates_long_values(self):
        app_error = self.handler.capture(ValueError("x"), {"note": "a" * 500, "count": 3})

        assert app_error.context["note"] == "a" * 200 + "..."
        assert app_error.context["count"] == "3"

    def test_capture_limits_context_size(self):
        context = {f"item{i}": i for i in range(25)}

        app_error = self.handler.capture(ValueError("x"), context)

        assert "item19" in app_error.context
        assert "item20" not in app_error.context
        assert app_error.context["..."] == "(5 more items truncated)"


class TestErrorHandling:
    """Test handle() logging and signal emission."""

    def setup_method(self):
        """Set up test fixtures."""
        self.handler = get_error_handler()

    def test_handle_emits_signal(self, qtbot):
        with qtbot.waitSignal(self.handler.errorOccurred, timeout=1000) as blocker:
            result = self.handler.handle(RuntimeError("boom"), {"source": "test"})

        assert blocker.args == [result]
        assert result.code == ErrorCode.CALLBACK_FAILED

    def test_handle_logs_error(self):
        with patch.object(ErrorHandler, "_logger") as mock_logger:
            self.handler.handle(ValueError("bad"))

        mock_logger.error.assert_called_once()
        message = mock_logger.error.call_args[0][0]
        assert message == "[CALLBACK_FAILED] Validation could not be updated"
        assert mock_logger.error.call_args[1]["extra"]["app_code"] == "CALLBACK_FAILED"

    def test_handle_reraises_keyboard_interrupt(self):
        with pytest.raises(KeyboardInterrupt):
            self.handler.handle(KeyboardInterrupt())


class TestLoggingSetup:
    """Test logging configuration."""

    def test_setup_logging_creates_directory(self, fresh_handler):
        with (
            patch("signup_core.error_handler.QStandardPaths.writableLocation") as mock_location,
            tempfile.TemporaryDirectory() as temp_dir,
        ):
            mock_location.return_value = temp_dir

            ErrorHandler()

            assert (Path(temp_dir) / "logs").exists()

    def test_setup_logging_handles_failure(self, fresh_handler):
        with patch("signup_core.error_handler.QStandardPaths.writableLocation") as mock_location:
            mock_location.side_effect = Exception("Permission denied")

            with patch("logging.basicConfig") as mock_basic_config, patch("logging.error") as mock_log_error:
                ErrorHandler()

                assert mock_basic_config.called
                assert mock_log_error.called

    def test_init_logging(self):
        with patch("logging.basicConfig") as mock_basic_config:
            init_logging()

        mock_basic_config.assert_called_once()


class TestExceptionHooks:
    """Test installing and restoring global hooks."""

    def test_install_and_restore(self):
        original = sys.excepthook
        handler = setup_error_handling()
        try:
            assert sys.excepthook is not original
        finally:
            handler.restore_hooks()

        assert sys.excepthook is handler._original_excepthook

    def test_excepthook_routes_to_handle(self):
        handler = get_error_handler()
        handler.install_hooks()
        try:
            with patch.object(handler, "handle") as mock_handle:
                error = ValueError("unhandled")
                sys.excepthook(ValueError, error, None)

            mock_handle.assert_called_once_with(error, {"source": "sys.excepthook"})
        finally:
            handler.restore_hooks()

    def test_keyboard_interrupt_goes_to_original_hook(self):
        handler = get_error_handler()
        handler.install_hooks()
        try:
            with (
                patch.object(handler, "_original_excepthook") as mock_original,
                patch.object(handler, "handle") as mock_handle,
            ):
                interrupt = KeyboardInterrupt()
                sys.excepthook(KeyboardInterrupt, interrupt, None)

            mock_original.assert_called_once_with(KeyboardInterrupt, interrupt, None)
            mock_handle.assert_not_called()
        finally:
            handler.restore_hooks()

    def test_thread_hook_untouched(self):
        original = threading.excepthook
        handler = setup_error_handling()
        try:
            assert threading.excepthook is original
        finally:
            handler.restore_hooks()
