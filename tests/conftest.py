"""
Pytest configuration and shared fixtures for the relaunch test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules.
"""

import queue
import shutil
import sys
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from relaunch.models import WatchConfig  # noqa: E402
from relaunch.models.runtime import ChangeEvent  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path).resolve()
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sleeper_command() -> List[str]:
    """A command that runs until it is killed."""
    return [sys.executable, "-c", "import time; time.sleep(60)"]


@pytest.fixture
def stubborn_command() -> List[str]:
    """A command that ignores SIGTERM and only dies on SIGKILL."""
    return [
        sys.executable,
        "-c",
        "import signal, time; signal.signal(signal.SIGTERM, signal.SIG_IGN); time.sleep(60)",
    ]


@pytest.fixture
def sample_config_data(temp_dir, sleeper_command) -> Dict[str, Any]:
    """Raw configuration values as they would appear in the [relaunch] table."""
    return {
        "directory": str(temp_dir),
        "command": sleeper_command,
        "recursive": True,
        "include": ["*.tmpl"],
        "exclude": ["*.swp"],
        "exclude_dirs": ["node_modules", ".git"],
        "debounce": 0.0,
        "restart_limit": 10,
        "restart_window": 15.0,
        "stop_timeout": 2.0,
        "queue_size": 20,
        "strict_termination": True,
        "beep": False,
    }


@pytest.fixture
def make_config(temp_dir, sleeper_command) -> Callable[..., WatchConfig]:
    """Factory for WatchConfig objects with fast test timings."""

    def _make(**overrides: Any) -> WatchConfig:
        values: Dict[str, Any] = {
            "directory": temp_dir,
            "command": sleeper_command,
            "debounce": 0.0,
            "stop_timeout": 2.0,
            "beep": False,
        }
        values.update(overrides)
        return WatchConfig(**values)

    return _make


# ============================================================================
# Test Utilities
# ============================================================================


class FakeNotifier:
    """In-memory stand-in for ChangeNotifier driven by the test."""

    def __init__(self) -> None:
        self.items: "queue.Queue[Any]" = queue.Queue()
        self.targets: List[Path] = []
        self.started = False
        self.stopped = False
        self.health_error: Exception = None

    def start(self, targets: Iterable[Path]) -> None:
        self.targets = list(targets)
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def get(self, timeout: float):
        try:
            return self.items.get(timeout=timeout)
        except queue.Empty:
            return None

    def check_health(self) -> None:
        if self.health_error is not None:
            raise self.health_error

    def push_change(self, path: Path, kind: str = "modified") -> None:
        self.items.put(ChangeEvent(timestamp=time.time(), kind=kind, path=str(path)))

    def push_error(self, error: BaseException) -> None:
        self.items.put(error)


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def wait_until(predicate: Callable[[], bool], timeout: float = 10.0, interval: float = 0.02) -> bool:
        """Poll *predicate* until it is true or *timeout* expires."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    @staticmethod
    def is_running(pid: int) -> bool:
        import psutil

        try:
            return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture
def fake_notifier():
    return FakeNotifier()
