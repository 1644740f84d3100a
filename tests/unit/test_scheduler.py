"""
Tests for the virtual, immediate and Qt schedulers.
"""

from unittest.mock import Mock

import pytest

from signup_core.scheduler import ImmediateScheduler, QtScheduler, ScheduledTask, VirtualTimeScheduler


class TestScheduledTask:
    """Test task state transitions."""

    def test_run_once(self):
        callback = Mock()
        task = ScheduledTask(callback)

        task.run()
        task.run()

        callback.assert_called_once()
        assert task.done
        assert not task.pending

    def test_cancel_prevents_run(self):
        callback = Mock()
        on_cancel = Mock()
        task = ScheduledTask(callback, on_cancel=on_cancel)

        task.cancel()
        task.cancel()
        task.run()

        callback.assert_not_called()
        on_cancel.assert_called_once()
        assert task.cancelled

    def test_cancel_after_run_is_noop(self):
        on_cancel = Mock()
        task = ScheduledTask(Mock(), on_cancel=on_cancel)

        task.run()
        task.cancel()

        on_cancel.assert_not_called()
        assert not task.cancelled


class TestVirtualTimeScheduler:
    """Test the virtual clock."""

    def setup_method(self):
        """Set up test fixtures."""
        self.scheduler = VirtualTimeScheduler()
        self.calls = []

    def test_nothing_runs_until_advanced(self):
        self.scheduler.schedule(0, lambda: self.calls.append("a"))

        assert self.calls == []
        assert self.scheduler.pending_count == 1

        self.scheduler.advance(0)

        assert self.calls == ["a"]
        assert self.scheduler.pending_count == 0

    def test_runs_in_due_order_then_schedule_order(self):
        self.scheduler.schedule(200, lambda: self.calls.append("late"))
        self.scheduler.schedule(100, lambda: self.calls.append("first"))
        self.scheduler.schedule(100, lambda: self.calls.append("second"))

        self.scheduler.advance(150)
        assert self.calls == ["first", "second"]
        assert self.scheduler.now == 150

        self.scheduler.advance(50)
        assert self.calls == ["first", "second", "late"]

    def test_clock_reflects_due_time_inside_callback(self):
        seen = []
        self.scheduler.schedule(300, lambda: seen.append(self.scheduler.now))

        self.scheduler.advance(1000)

        assert seen == [300]
        assert self.scheduler.now == 1000

    def test_tasks_scheduled_while_advancing(self):
        """Test that follow-up tasks falling due before the target also run."""

        def first():
            self.calls.append("first")
            self.scheduler.schedule(0, lambda: self.calls.append("hop"))
            self.scheduler.schedule(500, lambda: self.calls.append("too late"))

        self.scheduler.schedule(100, first)
        self.scheduler.advance(200)

        assert self.calls == ["first", "hop"]
        assert self.scheduler.pending_count == 1

    def test_cancelled_task_skipped(self):
        task = self.scheduler.schedule(100, lambda: self.calls.append("x"))
        task.cancel()

        self.scheduler.advance(200)

        assert self.calls == []
        assert self.scheduler.pending_count == 0

    def test_run_until_idle(self):
        self.scheduler.schedule(5000, lambda: self.calls.append("x"))

        self.scheduler.run_until_idle()

        assert self.calls == ["x"]
        assert self.scheduler.now == 5000

    def test_negative_advance(self):
        with pytest.raises(ValueError):
            self.scheduler.advance(-1)


class TestImmediateScheduler:
    """Test the synchronous scheduler."""

    def test_runs_inline(self):
        callback = Mock()

        task = ImmediateScheduler().schedule(800, callback)

        callback.assert_called_once()
        assert task.done


class TestQtScheduler:
    """Test the QTimer-backed scheduler."""

    def setup_method(self):
        """Set up test fixtures."""
        self.error_handler = Mock()
        self.scheduler = QtScheduler(error_handler=self.error_handler)

    def test_callback_fires_after_delay(self, qtbot):
        calls = []
        self.scheduler.schedule(20, lambda: calls.append("fired"))

        assert calls == []
        assert self.scheduler.pending_count == 1

        qtbot.waitUntil(lambda: calls == ["fired"], timeout=1000)
        assert self.scheduler.pending_count == 0

    def test_zero_delay_is_not_inline(self, qtbot):
        calls = []
        self.scheduler.schedule(0, lambda: calls.append("fired"))

        assert calls == []
        qtbot.waitUntil(lambda: calls == ["fired"], timeout=1000)

    def test_cancel_stops_timer(self, qtbot):
        calls = []
        task = self.scheduler.schedule(20, lambda: calls.append("fired"))

        task.cancel()
        qtbot.wait(100)

        assert calls == []
        assert self.scheduler.pending_count == 0

    def test_exception_routed_to_error_handler(self, qtbot):
        def failing():
            raise RuntimeError("task failed")

        self.scheduler.schedule(0, failing)

        qtbot.waitUntil(lambda: self.error_handler.handle.called, timeout=1000)
        exc, context = self.error_handler.handle.call_args[0]
        assert isinstance(exc, RuntimeError)
        assert context == {"source": "QtScheduler"}
