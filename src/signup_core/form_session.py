"""
FormSession: the validation graph for one sign-up form.

A session owns three raw inputs, the signal graph derived from them and the
two published outputs. It is built once when the form is presented and
closed once when the form goes away; closing cancels every pending timer
and subscription together.
"""

from __future__ import annotations

import logging
from functools import partial

from PySide6.QtCore import QObject, Signal

from .form_config import EmptyCheck, FormConfig
from .password_status import PasswordStatus, classify_password, error_message_for, is_form_valid
from .predicates import password_empty, password_strong, passwords_equal, username_valid
from .reactive import SignalGraph, Stream
from .scheduler import QtScheduler, Scheduler

logger = logging.getLogger(__name__)


class FormSession(QObject):
    """
    Reactive validity state for a username/password/confirmation form.

    Signals:
        isValidChanged(bool): ``is_valid`` was assigned
        inlineErrorForPasswordChanged(str): ``inline_error_for_password`` was assigned

    Both signals fire on every assignment, on the session's scheduler. The
    inline error skips the first password status so nothing is shown before
    the user has touched the form.
    """

    isValidChanged = Signal(bool)
    inlineErrorForPasswordChanged = Signal(str)

    def __init__(
        self,
        config: FormConfig | None = None,
        scheduler: Scheduler | None = None,
        parent: QObject | None = None,
    ) -> None:
        """
        Build and start the session graph.

        Args:
            config: Quiet periods and predicate settings (defaults if omitted)
            scheduler: Execution context; a QtScheduler on the GUI thread if omitted
            parent: Parent QObject for lifetime management

        Raises:
            ConfigError: If the configuration is invalid
        """
        super().__init__(parent)
        self.setObjectName("FormSession")

        self._config = config or FormConfig()
        self._config.validate()

        self._scheduler = scheduler or QtScheduler(self)
        self._is_valid = False
        self._inline_error_for_password = ""
        self._closed = False

        self._graph = SignalGraph("FormSession")
        self._build_graph()
        self._graph.start()

        logger.info(f"Form session opened with {self._config.to_dict()}")

    def _build_graph(self) -> None:
        graph = self._graph
        config = self._config
        scheduler = self._scheduler
        strength = config.compiled_strength_pattern()

        self._username_input = graph.source("", name="username")
        self._password_input = graph.source("", name="password")
        self._password_again_input = graph.source("", name="passwordAgain")

        # Debounce/dedup stage
        settled_username = self._username_input.debounce(
            config.username_debounce_ms, scheduler, name="username.debounced"
        ).distinct(name="username.settled")
        settled_password = self._password_input.debounce(
            config.password_debounce_ms, scheduler, name="password.debounced"
        ).distinct(name="password.settled")
        settled_pair = (
            graph.combine_latest(self._password_input, self._password_again_input, name="passwords.latest")
            .debounce(config.confirmation_debounce_ms, scheduler, name="passwords.debounced")
            .distinct(name="passwords.settled")
        )

        # Predicates
        self.username_valid = settled_username.map(
            partial(username_valid, min_length=config.min_username_length), name="usernameValid"
        )
        self.password_empty = settled_password.map(password_empty, name="passwordEmpty")
        self.password_strong = settled_password.map(partial(password_strong, pattern=strength), name="passwordStrong")
        self.passwords_equal = settled_pair.map(lambda pair: passwords_equal(*pair), name="passwordsEqual")

        # Classification and aggregation
        empty_slot = self.password_empty if config.empty_check is EmptyCheck.PASSWORD else self.passwords_equal
        self.password_status = graph.combine_latest(
            empty_slot, self.password_strong, self.passwords_equal, name="passwordStatus.inputs"
        ).map(lambda checks: classify_password(*checks), name="passwordStatus")
        self.form_valid = graph.combine_latest(self.password_status, self.username_valid, name="formValid.inputs").map(
            lambda pair: is_form_valid(*pair), name="formValid"
        )

        # Output sink
        self.form_valid.receive_on(scheduler, name="isValid.ui").sink(self._assign_is_valid)
        (
            self.password_status.drop_first(name="passwordStatus.afterFirst")
            .map(error_message_for, name="inlineError")
            .receive_on(scheduler, name="inlineError.ui")
            .sink(self._assign_inline_error)
        )

    # Inputs

    def set_username(self, username: str) -> None:
        self._username_input.set(username)

    def set_password(self, password: str) -> None:
        self._password_input.set(password)

    def set_password_again(self, password_again: str) -> None:
        self._password_again_input.set(password_again)

    @property
    def username(self) -> str:
        return self._username_input.current

    @property
    def password(self) -> str:
        return self._password_input.current

    @property
    def password_again(self) -> str:
        return self._password_again_input.current

    # Outputs

    @property
    def is_valid(self) -> bool:
        return self._is_valid

    @property
    def inline_error_for_password(self) -> str:
        return self._inline_error_for_password

    @property
    def status(self) -> PasswordStatus | None:
        """Latest password status, or None before the password has settled."""
        return self.password_status.value

    def _assign_is_valid(self, is_valid: bool) -> None:
        self._is_valid = is_valid
        self.isValidChanged.emit(is_valid)

    def _assign_inline_error(self, message: str) -> None:
        self._inline_error_for_password = message
        self.inlineErrorForPasswordChanged.emit(message)

    # Lifecycle

    @property
    def config(self) -> FormConfig:
        return self._config

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def streams(self) -> tuple[Stream, ...]:
        return self._graph.nodes

    def close(self) -> None:
        """End the session. Later input writes are stored but not propagated."""
        if self._closed:
            return
        self._closed = True
        self._graph.dispose()
        logger.info("Form session closed")

    def __enter__(self) -> FormSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
