"""
Shared fixtures for the sign-up form tests.
"""

import os

# Set offscreen platform to prevent display errors on headless systems
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QStandardPaths
from PySide6.QtWidgets import QApplication

from signup_core.form_config import FormConfig
from signup_core.form_session import FormSession
from signup_core.scheduler import VirtualTimeScheduler


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """Create QApplication for all tests, with test-mode standard paths."""
    QStandardPaths.setTestModeEnabled(True)
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def scheduler():
    """Virtual clock for driving debounce timers."""
    return VirtualTimeScheduler()


@pytest.fixture
def session(scheduler):
    """Form session on the virtual clock, closed after the test."""
    form_session = FormSession(scheduler=scheduler)
    yield form_session
    form_session.close()


@pytest.fixture
def settled_session(session, scheduler):
    """Session whose initial values have already settled, as if the form was just shown."""
    scheduler.advance(1000)
    return session


@pytest.fixture
def legacy_session(scheduler):
    """Session wired with the equality check in the first classifier slot."""
    form_session = FormSession(config=FormConfig.from_dict({"empty_check": "equality"}), scheduler=scheduler)
    scheduler.advance(1000)
    yield form_session
    form_session.close()
