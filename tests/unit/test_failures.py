"""Tests for failure propagation within a fixture chain."""

import pytest

from nested_fixtures import (
    FailureKind,
    NestedFixture,
    NestedSuite,
    after,
    after_all,
    before,
    before_all,
    rule,
    run_suites,
    test,
)
from tests.fixtures.suites import SPY, FailingStack, SpyRule


class SetupFailure:
    @rule
    def tracing(self):
        return SpyRule("R1 start", "R1 end")

    @before
    def setup(self):
        SPY.append("L1 before")

    @after
    def teardown(self):
        SPY.append("L1 after")

    class Nested(NestedFixture):
        @rule
        def tracing(self):
            return SpyRule("R2 start", "R2 end")

        @before
        def first(self):
            SPY.append("L2 before 1")
            raise RuntimeError("setup boom")

        @before
        def second(self):
            SPY.append("L2 before 2")

        @after
        def teardown(self):
            SPY.append("L2 after")

        @test
        def foo(self):
            SPY.append("L2 test")


class RootSetupFailure:
    @before
    def setup(self):
        SPY.append("L1 before")
        raise RuntimeError("root setup")

    @after
    def teardown(self):
        SPY.append("L1 after")

    @test
    def foo(self):
        SPY.append("L1 test")


class TeardownFailure:
    @after
    def teardown(self):
        SPY.append("L1 after")
        raise ValueError("L1 teardown")

    class Nested(NestedFixture):
        @after
        def first(self):
            SPY.append("L2 after 1")
            raise KeyError("L2 teardown")

        @after
        def second(self):
            SPY.append("L2 after 2")

        @test
        def foo(self):
            SPY.append("L2 test")


class BodyAndTeardownFailure:
    @after
    def teardown(self):
        SPY.append("L1 after")
        raise RuntimeError("teardown")

    class Nested(NestedFixture):
        @test
        def fails(self):
            SPY.append("L2 test")
            assert 1 == 2, "body"


class BodyError:
    class Nested(NestedFixture):
        @test
        def explodes(self):
            raise LookupError("missing")


class BrokenConstructor:
    class Broken(NestedFixture):
        def __init__(self, parent):
            raise RuntimeError("cannot build")

        @test
        def foo(self):
            SPY.append("broken test")

    class Fine(NestedFixture):
        @test
        def foo(self):
            SPY.append("fine test")


class BadRule:
    @rule
    def not_a_rule(self):
        return 42

    @test
    def foo(self):
        SPY.append("test")


class ExitRaises:
    """Context manager whose exit always fails."""

    def __enter__(self):
        SPY.append("rule enter")
        return self

    def __exit__(self, *exc_info):
        SPY.append("rule exit")
        raise RuntimeError("rule exit failed")


class RuleExitFailure:
    @rule
    def exit_raises(self):
        return ExitRaises()

    class Nested(NestedFixture):
        @test
        def fails(self):
            assert 1 == 2, "body"


class BodyExits:
    @after
    def teardown(self):
        SPY.append("L1 after")

    class Nested(NestedFixture):
        @test
        def exits(self):
            raise SystemExit(3)

        @test
        def runs(self):
            SPY.append("sibling")


class BeforeAllFailure:
    @before_all
    @staticmethod
    def setup_class():
        SPY.append("before class")
        raise RuntimeError("no database")

    @after_all
    @staticmethod
    def teardown_class():
        SPY.append("after class")

    @test
    def foo(self):
        SPY.append("test")


class AfterAllFailure:
    @after_all
    @staticmethod
    def teardown_class():
        raise RuntimeError("cleanup failed")

    @test
    def foo(self):
        SPY.append("test")


class TestSetupFailures:
    """Tests for failing before-hooks."""

    def test_nested_setup_failure_skips_body_and_own_teardown(self, spy) -> None:
        """Level 2 teardown is skipped; level 1 teardown and entered rules still run."""
        result = run_suites(SetupFailure)

        assert spy == [
            "R1 start",
            "L1 before",
            "R2 start",
            "L2 before 1",
            "R2 end",
            "L1 after",
            "R1 end",
        ]
        assert result.run_count == 1
        assert result.failure_count == 1
        failure = result.failures[0]
        assert failure.kind is FailureKind.SETUP
        assert str(failure.exception) == "setup boom"
        assert failure.description.method_name == "foo"

    def test_root_setup_failure_skips_root_teardown(self, spy) -> None:
        """A direct test's teardown is paired with a successful setup."""
        result = run_suites(RootSetupFailure)

        assert spy == ["L1 before"]
        assert result.failures[0].kind is FailureKind.SETUP


class TestTeardownFailures:
    """Tests for failing after-hooks."""

    def test_teardown_continues_after_failure(self, spy) -> None:
        """Remaining and shallower teardown still runs."""
        result = run_suites(TeardownFailure)

        assert spy == ["L2 test", "L2 after 1", "L2 after 2", "L1 after"]
        assert result.failure_count == 1

    def test_first_teardown_failure_is_of_record(self) -> None:
        """The earliest teardown error is reported; later ones are suppressed."""
        result = run_suites(TeardownFailure)

        failure = result.failures[0]
        assert isinstance(failure.exception, KeyError)
        assert failure.kind is FailureKind.TEARDOWN
        assert len(failure.suppressed) == 1
        assert isinstance(failure.suppressed[0], ValueError)

    def test_body_failure_wins_over_teardown_failure(self, spy) -> None:
        """A body assertion stays the failure of record."""
        result = run_suites(BodyAndTeardownFailure)

        assert spy == ["L2 test", "L1 after"]
        failure = result.failures[0]
        assert isinstance(failure.exception, AssertionError)
        assert failure.kind is FailureKind.ASSERTION
        assert [str(s) for s in failure.suppressed] == ["teardown"]


class TestBodyFailures:
    """Tests for failing test bodies and construction."""

    def test_non_assertion_error_is_error_kind(self) -> None:
        """Anything other than AssertionError is reported as an error."""
        result = run_suites(BodyError)

        assert result.failures[0].kind is FailureKind.ERROR
        assert isinstance(result.failures[0].exception, LookupError)

    def test_failure_does_not_affect_siblings(self, recorder, notifier) -> None:
        """A failing test leaves its sibling's chain untouched."""
        NestedSuite(FailingStack).run(notifier)

        assert recorder.events == [
            ("started", "an_empty_stack_has_an_item"),
            ("failed", "an_empty_stack_has_an_item"),
            ("started", "passes"),
            ("finished", "passes"),
        ]

    def test_constructor_failure_is_reported_per_test(self, spy) -> None:
        """A nested constructor raising fails only that unit's tests."""
        result = run_suites(BrokenConstructor)

        assert spy == ["fine test"]
        assert result.run_count == 2
        assert result.failure_count == 1
        assert str(result.failures[0].exception) == "cannot build"
        assert result.failures[0].kind is FailureKind.ERROR

    def test_invalid_rule_fails_the_test(self, spy) -> None:
        """A rule factory returning something unusable fails the test."""
        result = run_suites(BadRule)

        assert spy == []
        assert isinstance(result.failures[0].exception, TypeError)

    def test_rule_exit_failure_is_suppressed_under_body_failure(self, spy) -> None:
        """A rule failing on exit does not replace the earlier failure."""
        result = run_suites(RuleExitFailure)

        assert spy == ["rule enter", "rule exit"]
        failure = result.failures[0]
        assert isinstance(failure.exception, AssertionError)
        assert failure.kind is FailureKind.ASSERTION
        assert len(failure.suppressed) == 1
        assert str(failure.suppressed[0]) == "rule exit failed"

    def test_system_exit_is_reported_and_siblings_run(self, spy, recorder, notifier) -> None:
        """Exceptions outside Exception still end in one failure event."""
        NestedSuite(BodyExits).run(notifier)

        assert spy == ["L1 after", "sibling", "L1 after"]
        assert recorder.events == [
            ("started", "exits"),
            ("failed", "exits"),
            ("started", "runs"),
            ("finished", "runs"),
        ]
        assert isinstance(recorder.failures[0].exception, SystemExit)
        assert recorder.failures[0].kind is FailureKind.ERROR


class TestClassLevelFailures:
    """Tests for failing suite-wide hooks."""

    def test_before_all_failure_skips_suite(self, spy) -> None:
        """No test runs and the suite is reported as failed."""
        result = run_suites(BeforeAllFailure)

        assert spy == ["before class"]
        assert result.run_count == 0
        failure = result.failures[0]
        assert failure.description.is_suite
        assert failure.kind is FailureKind.SETUP

    def test_after_all_failure_reported_against_suite(self, spy) -> None:
        """Tests pass, then the suite-wide teardown failure is reported."""
        result = run_suites(AfterAllFailure)

        assert spy == ["test"]
        assert result.run_count == 1
        assert result.failure_count == 1
        assert result.failures[0].kind is FailureKind.TEARDOWN
        assert result.failures[0].description.unit is AfterAllFailure


@pytest.mark.parametrize(
    ("suite", "kind"),
    [
        (SetupFailure, FailureKind.SETUP),
        (TeardownFailure, FailureKind.TEARDOWN),
        (BodyAndTeardownFailure, FailureKind.ASSERTION),
        (BodyError, FailureKind.ERROR),
    ],
)
def test_each_test_gets_one_terminal_event(suite, kind, recorder, notifier) -> None:
    """A failed test is started once and failed once, never finished."""
    NestedSuite(suite).run(notifier)

    assert [event for event, _ in recorder.events] == ["started", "failed"]
    assert recorder.failures[0].kind is kind
