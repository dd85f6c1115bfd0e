import logging
import threading

import pytest

from print_monitor import env
from print_monitor.errors import PrintError
from print_monitor.printers.base import PrinterProvider


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep audit output inside the test's tmp dir."""
    monkeypatch.setattr(env, "AUDIT_LOG_PATH", str(tmp_path / "logs" / "audit.jsonl"))
    yield


@pytest.fixture(autouse=True)
def reset_logging():
    """configure_logging() detaches the package logger; undo that after each test."""
    yield
    logger = logging.getLogger("print_monitor")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


class RecordingProvider(PrinterProvider):
    """Fake Print Sink that keeps a copy of every submission."""

    def __init__(self, fail_with=None, delay=0.0):
        self.calls = []
        self.fail_with = fail_with
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def print_raw(self, printer, data):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                threading.Event().wait(self.delay)
            if self.fail_with is not None:
                raise self.fail_with
            self.calls.append((printer, bytes(data)))
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def failing_provider():
    return RecordingProvider(fail_with=PrintError("printer offline", printer="Cozinha", code=1801,
                                                  stage="open"))


@pytest.fixture
def dirs(tmp_path):
    watched = tmp_path / "ToPrint"
    archive = tmp_path / "Processed"
    watched.mkdir()
    archive.mkdir()
    return watched, archive
