"""Shared fixtures for the scheduler tests."""

import pytest
from structlog.testing import capture_logs

from src.classplan.config import reset_config
from src.classplan.dispatcher import Dispatcher
from src.classplan.state import ScheduleState


class RecordingLauncher:
    """Stands in for the browser: remembers every URL it was asked to open."""

    def __init__(self) -> None:
        self.urls: list[str] = []

    def __call__(self, url: str) -> bool:
        self.urls.append(url)
        return True


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def log_events():
    """Capture structlog events instead of printing them."""
    with capture_logs() as events:
        yield events


@pytest.fixture
def state() -> ScheduleState:
    return ScheduleState()


@pytest.fixture
def launcher() -> RecordingLauncher:
    return RecordingLauncher()


@pytest.fixture
def dispatcher(state: ScheduleState, launcher: RecordingLauncher) -> Dispatcher:
    return Dispatcher(state, launcher=launcher)
