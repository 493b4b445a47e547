"""Run notification: listeners, the notifier, and collected results."""

import time
from typing import IO, Any

import click
from ulid import ULID

from .models import Description, Failure


class RunListener:
    """
    Receives run events. Override the events you care about.

    Per test, listeners see either ``test_ignored`` alone, or
    ``test_started`` followed by exactly one of ``test_finished`` /
    ``test_failure``. Suite-level failures (class-level hooks, invalid
    suites) arrive as ``test_failure`` with a suite description.
    """

    def run_started(self, description: Description) -> None:
        pass

    def run_finished(self, result: "Result") -> None:
        pass

    def test_started(self, description: Description) -> None:
        pass

    def test_finished(self, description: Description) -> None:
        pass

    def test_failure(self, failure: Failure) -> None:
        pass

    def test_ignored(self, description: Description) -> None:
        pass


class RunNotifier:
    """Fans events out to listeners, in registration order."""

    def __init__(self) -> None:
        self._listeners: list[RunListener] = []

    def add_listener(self, listener: RunListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: RunListener) -> None:
        self._listeners.remove(listener)

    def fire_run_started(self, description: Description) -> None:
        for listener in self._listeners:
            listener.run_started(description)

    def fire_run_finished(self, result: "Result") -> None:
        for listener in self._listeners:
            listener.run_finished(result)

    def fire_test_started(self, description: Description) -> None:
        for listener in self._listeners:
            listener.test_started(description)

    def fire_test_finished(self, description: Description) -> None:
        for listener in self._listeners:
            listener.test_finished(description)

    def fire_test_failure(self, failure: Failure) -> None:
        for listener in self._listeners:
            listener.test_failure(failure)

    def fire_test_ignored(self, description: Description) -> None:
        for listener in self._listeners:
            listener.test_ignored(description)


class Result(RunListener):
    """
    Collects the outcome of a run.

    Attributes:
        run_id: Unique, time-ordered id of this run (ULID)
        run_count: Tests that started
        failures: Every failure, test- and suite-level
        ignore_count: Tests reported as ignored
        run_time: Seconds between run start and finish
    """

    def __init__(self) -> None:
        self.run_id = str(ULID())
        self.run_count = 0
        self.ignore_count = 0
        self.failures: list[Failure] = []
        self.run_time = 0.0
        self._started_at: float | None = None

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def was_successful(self) -> bool:
        return not self.failures

    def run_started(self, description: Description) -> None:
        if self._started_at is None:
            self._started_at = time.monotonic()

    def run_finished(self, result: "Result") -> None:
        if self._started_at is not None:
            self.run_time = time.monotonic() - self._started_at

    def test_started(self, description: Description) -> None:
        self.run_count += 1

    def test_failure(self, failure: Failure) -> None:
        self.failures.append(failure)

    def test_ignored(self, description: Description) -> None:
        self.ignore_count += 1

    def as_dict(self) -> dict[str, Any]:
        """Serialize for machine-readable reports."""
        return {
            "run_id": self.run_id,
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "ignore_count": self.ignore_count,
            "run_time": round(self.run_time, 3),
            "successful": self.was_successful,
            "failures": [
                {
                    "test": f.description.display_name,
                    "kind": f.kind.value,
                    "message": f.message,
                    "suppressed": [f"{type(s).__name__}: {s}" for s in f.suppressed],
                }
                for f in self.failures
            ],
        }


class TextListener(RunListener):
    """
    Prints progress and a summary.

    One character per test while running (``.`` passed, ``F`` failed,
    ``I`` ignored), then failure details and the totals.
    """

    def __init__(self, stream: IO[str] | None = None, verbose: bool = False) -> None:
        self.stream = stream
        self.verbose = verbose

    def _echo(self, message: str = "", nl: bool = True) -> None:
        click.echo(message, file=self.stream, nl=nl)

    def test_finished(self, description: Description) -> None:
        if self.verbose:
            self._echo(f"PASS    {description.display_name}")
        else:
            self._echo(".", nl=False)

    def test_failure(self, failure: Failure) -> None:
        if self.verbose:
            self._echo(f"FAIL    {failure.description.display_name}")
        else:
            self._echo("F", nl=False)

    def test_ignored(self, description: Description) -> None:
        if self.verbose:
            self._echo(f"IGNORE  {description.display_name}")
        else:
            self._echo("I", nl=False)

    def run_finished(self, result: Result) -> None:
        if not self.verbose:
            self._echo()
        self._echo(f"Time: {result.run_time:.3f}s")
        for number, failure in enumerate(result.failures, start=1):
            self._echo(f"{number}) {failure.description.display_name} [{failure.kind.value}]")
            self._echo(failure.trace.rstrip())
            for suppressed in failure.suppressed:
                self._echo(f"  Suppressed: {type(suppressed).__name__}: {suppressed}")
        if result.was_successful:
            self._echo(f"OK ({result.run_count} test(s), {result.ignore_count} ignored)")
        else:
            self._echo(
                f"FAILURES!!! Tests run: {result.run_count}, "
                f"Failures: {result.failure_count}, Ignored: {result.ignore_count}"
            )
        self._echo(f"Run: {result.run_id}")
