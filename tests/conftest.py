"""Pytest fixtures for nested-fixtures tests."""

import pytest

from nested_fixtures import Result, RunNotifier
from tests.fixtures.suites import SPY


@pytest.fixture(autouse=True)
def reset_spy():
    """Clear the shared spy log before every test."""
    SPY.clear()
    yield
    SPY.clear()


@pytest.fixture
def spy() -> list[str]:
    """The log suites append to."""
    return SPY


class EventRecorder(Result):
    """Result that also records every event in order."""

    def __init__(self) -> None:
        super().__init__()
        self.events: list[tuple[str, str]] = []

    def test_started(self, description):
        super().test_started(description)
        self.events.append(("started", description.method_name or description.display_name))

    def test_finished(self, description):
        super().test_finished(description)
        self.events.append(("finished", description.method_name or description.display_name))

    def test_failure(self, failure):
        super().test_failure(failure)
        name = failure.description.method_name or failure.description.display_name
        self.events.append(("failed", name))

    def test_ignored(self, description):
        super().test_ignored(description)
        self.events.append(("ignored", description.method_name or description.display_name))


@pytest.fixture
def recorder() -> EventRecorder:
    """A listener recording events and results."""
    return EventRecorder()


@pytest.fixture
def notifier(recorder: EventRecorder) -> RunNotifier:
    """A notifier wired to ``recorder``."""
    notifier = RunNotifier()
    notifier.add_listener(recorder)
    return notifier
