"""
Sign-up window for the form validation engine.

The window only forwards keystrokes into a FormSession and reflects its two
published outputs; all validation lives in signup_core.
"""

import logging

from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QFormLayout,
    QGroupBox,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from signup_core.error_handler import get_error_handler
from signup_core.errors import FormError
from signup_core.form_session import FormSession

ERROR_TEXT_COLOR = "#dc3545"
ERROR_MESSAGE_TIMEOUT_MS = 5000


class SignUpWindow(QMainWindow):
    """
    Main window with username, password and confirmation fields.

    The Continue button is enabled only while the session reports the form
    as valid. Errors reported to the ErrorHandler are flashed in the status
    bar. Closing the window closes the session.
    """

    def __init__(self, session: FormSession | None = None) -> None:
        super().__init__()
        self._logger = logging.getLogger(__name__)
        self.session = session or FormSession(parent=self)
        self._error_handler = get_error_handler()

        self.setWindowTitle("Sign Up")
        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)

        username_group = QGroupBox("USERNAME", central)
        username_layout = QFormLayout(username_group)
        self.username_edit = QLineEdit(username_group)
        self.username_edit.setObjectName("usernameEdit")
        self.username_edit.setPlaceholderText("Username")
        self.username_edit.setAccessibleName("Username")
        username_layout.addRow(self.username_edit)
        layout.addWidget(username_group)

        password_group = QGroupBox("PASSWORD", central)
        password_layout = QFormLayout(password_group)
        self.password_edit = QLineEdit(password_group)
        self.password_edit.setObjectName("passwordEdit")
        self.password_edit.setPlaceholderText("Password")
        self.password_edit.setEchoMode(QLineEdit.EchoMode.Password)
        self.password_edit.setAccessibleName("Password")
        password_layout.addRow(self.password_edit)

        self.password_again_edit = QLineEdit(password_group)
        self.password_again_edit.setObjectName("passwordAgainEdit")
        self.password_again_edit.setPlaceholderText("Password again")
        self.password_again_edit.setAccessibleName("Password again")
        password_layout.addRow(self.password_again_edit)

        self.password_error_label = QLabel("", password_group)
        self.password_error_label.setObjectName("passwordErrorLabel")
        self.password_error_label.setStyleSheet(f"color: {ERROR_TEXT_COLOR};")
        self.password_error_label.setAccessibleName("Password error")
        password_layout.addRow(self.password_error_label)
        layout.addWidget(password_group)

        self.continue_button = QPushButton("Continue", central)
        self.continue_button.setObjectName("continueButton")
        self.continue_button.setMinimumHeight(60)
        self.continue_button.setEnabled(self.session.is_valid)
        layout.addWidget(self.continue_button)
        layout.addStretch()

        self.setCentralWidget(central)

    def _connect_signals(self) -> None:
        self.username_edit.textChanged.connect(self.session.set_username)
        self.password_edit.textChanged.connect(self.session.set_password)
        self.password_again_edit.textChanged.connect(self.session.set_password_again)

        self.session.isValidChanged.connect(self.continue_button.setEnabled)
        self.session.inlineErrorForPasswordChanged.connect(self.password_error_label.setText)
        self._error_handler.errorOccurred.connect(self._show_error)
        self._showing_errors = True

    def _show_error(self, error: FormError) -> None:
        self.statusBar().showMessage(error.user_message, ERROR_MESSAGE_TIMEOUT_MS)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._logger.debug("Sign-up window closing")
        if self._showing_errors:
            self._showing_errors = False
            self._error_handler.errorOccurred.disconnect(self._show_error)
        self.session.close()
        super().closeEvent(event)
