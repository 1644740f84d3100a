"""
Reactive validation engine for a sign-up form.

Raw username and password inputs flow through debounced, deduplicated
derivations into a password status and an overall validity flag.
"""

from .errors import ConfigError
from .form_config import EmptyCheck, FormConfig
from .form_session import FormSession
from .password_status import ERROR_MESSAGES, PasswordStatus, classify_password
from .scheduler import ImmediateScheduler, QtScheduler, Scheduler, VirtualTimeScheduler

__all__ = [
    "ERROR_MESSAGES",
    "ConfigError",
    "EmptyCheck",
    "FormConfig",
    "FormSession",
    "ImmediateScheduler",
    "PasswordStatus",
    "QtScheduler",
    "Scheduler",
    "VirtualTimeScheduler",
    "classify_password",
]
