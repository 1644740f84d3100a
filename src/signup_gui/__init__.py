"""
Reference PySide6 window for the sign-up form engine.
"""

from .signup_window import SignUpWindow

__all__ = ["SignUpWindow"]
