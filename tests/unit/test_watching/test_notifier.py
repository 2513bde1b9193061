"""
Tests for the watchdog-backed change notifier.
"""

import time
from unittest.mock import patch

import pytest
from watchdog.events import DirCreatedEvent, FileModifiedEvent, FileMovedEvent

from relaunch.models import ChangeEvent
from relaunch.validation import WatchSetupError
from relaunch.watching import ChangeNotifier
from relaunch.watching.notifier import _ChangeHandler


def _collect(notifier, predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        item = notifier.get(timeout=0.1)
        if isinstance(item, ChangeEvent) and predicate(item):
            return item
    return None


@pytest.mark.unit
class TestChangeHandler:
    """Translation of raw watchdog events."""

    def test_moved_event_reports_destination(self):
        notifier = ChangeNotifier()
        _ChangeHandler(notifier).on_any_event(FileMovedEvent("/proj/myapp.new", "/proj/myapp"))

        event = notifier.get(timeout=0.1)
        assert event.kind == "moved"
        assert event.path == "/proj/myapp"

    def test_modified_event(self):
        notifier = ChangeNotifier()
        _ChangeHandler(notifier).on_any_event(FileModifiedEvent("/proj/app.js"))

        event = notifier.get(timeout=0.1)
        assert (event.kind, event.path) == ("modified", "/proj/app.js")

    def test_directory_events_are_ignored(self):
        notifier = ChangeNotifier()
        _ChangeHandler(notifier).on_any_event(DirCreatedEvent("/proj/newdir"))
        assert notifier.get(timeout=0.05) is None

    def test_errors_share_the_event_queue(self):
        notifier = ChangeNotifier()
        error = InterruptedError("EINTR")
        notifier.report_error(error)
        assert notifier.get(timeout=0.1) is error


@pytest.mark.unit
class TestChangeNotifierStartFailure:

    def test_failed_start_stops_observer(self, temp_dir):
        with patch("relaunch.watching.notifier.Observer") as observer_class:
            observer = observer_class.return_value
            observer.start.side_effect = OSError("inotify watch limit reached")
            notifier = ChangeNotifier()
            with pytest.raises(WatchSetupError):
                notifier.start([temp_dir])

        observer.stop.assert_called_once_with()
        # Nothing is left for a later stop to clean up
        notifier.stop()
        notifier.check_health()

    def test_failed_schedule_stops_observer(self, temp_dir):
        with patch("relaunch.watching.notifier.Observer") as observer_class:
            observer = observer_class.return_value
            observer.schedule.side_effect = OSError("No such file or directory")
            with pytest.raises(WatchSetupError):
                ChangeNotifier().start([temp_dir])

        observer.stop.assert_called_once_with()
        observer.start.assert_not_called()


@pytest.mark.integration
class TestChangeNotifierLive:
    """Real filesystem events from the watchdog observer."""

    def test_reports_file_changes_in_watched_directory(self, temp_dir):
        notifier = ChangeNotifier()
        notifier.start([temp_dir])
        try:
            target = temp_dir / "app.js"
            target.write_text("console.log('hi')")
            event = _collect(notifier, lambda e: e.path == str(target))
            assert event is not None
            notifier.check_health()
        finally:
            notifier.stop()

    def test_subdirectories_are_not_watched_implicitly(self, temp_dir):
        sub = temp_dir / "sub"
        sub.mkdir()
        notifier = ChangeNotifier()
        notifier.start([temp_dir])
        try:
            (sub / "app.js").write_text("x")
            assert _collect(notifier, lambda e: e.path.startswith(str(sub)), timeout=1.0) is None
        finally:
            notifier.stop()

    def test_unwatchable_directory_is_fatal(self, temp_dir):
        notifier = ChangeNotifier()
        with pytest.raises(WatchSetupError):
            notifier.start([temp_dir / "missing"])

    def test_stop_is_idempotent(self, temp_dir):
        notifier = ChangeNotifier()
        notifier.start([temp_dir])
        notifier.stop()
        notifier.stop()
        notifier.check_health()
