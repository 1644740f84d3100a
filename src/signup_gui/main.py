"""
Main entry point for the sign-up form application.
"""

import sys

from PySide6.QtWidgets import QApplication

from signup_core.error_handler import init_logging, setup_error_handling
from signup_gui.signup_window import SignUpWindow


def main() -> int:
    """Main application entry point."""
    app = QApplication(sys.argv)

    init_logging()
    setup_error_handling()

    window = SignUpWindow()
    window.show()

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
