"""Single-level fixture runners.

``FixtureLevel`` is the one primitive for running a test against one suite
level: (a) create the fixture, (b) run befores, (c) run the body, (d) run
afters, (e) apply rules around (b)-(d).

``NestedFixtureLevel`` reuses that primitive unchanged at any depth. The
fixture it uses is handed in by the caller, and its "body" is whatever
statement the caller delegates to it: the next inner level, or the real
test method at the leaf.
"""

import contextlib
import functools
from collections.abc import Iterator
from typing import Any

from .exceptions import DelegationStateError
from .introspection import Introspector
from .models import SuiteNode, TestCase
from .statements import (
    UNREPORTABLE,
    ChainOutcome,
    Fail,
    InvokeMethod,
    RunAfters,
    RunBefores,
    RunRules,
    Statement,
    as_test_rule,
)

_UNSET: Any = object()


class FixtureLevel:
    """
    Runs one test at one suite level.

    Subclasses change where the fixture comes from (``create_fixture``) and
    what the body is (``method_invoker``); the lifecycle around them is
    always built by ``method_block``.
    """

    def __init__(self, node: SuiteNode, introspector: Introspector) -> None:
        self.node = node
        self.introspector = introspector

    def create_fixture(self) -> Any:
        """Construct a fresh, zero-argument fixture instance."""
        return self.introspector.instantiate(self.node.unit)

    def method_invoker(self, test: TestCase, fixture: Any, outcome: ChainOutcome) -> Statement:
        """The body of the block: the test method itself."""
        return InvokeMethod(test.function, fixture, outcome)

    def method_block(self, test: TestCase, outcome: ChainOutcome) -> Statement:
        """
        Build the full lifecycle statement for ``test`` at this level.

        Construction failures (of the fixture or of its rules) become a
        statement that raises them, so they are reported as the test's
        failure.
        """
        try:
            fixture = self.create_fixture()
            rules = [as_test_rule(factory(fixture)) for factory in self.node.rules]
        except UNREPORTABLE:
            raise
        except BaseException as e:
            return Fail(e)

        statement = self.method_invoker(test, fixture, outcome)
        statement = self.with_afters(statement, fixture, outcome)
        statement = self.with_befores(statement, fixture, outcome)
        if rules:
            statement = RunRules(statement, rules, test.description, outcome)
        return statement

    def with_befores(self, statement: Statement, fixture: Any, outcome: ChainOutcome) -> Statement:
        hooks = [functools.partial(hook, fixture) for hook in self.node.befores]
        return RunBefores(statement, hooks, outcome) if hooks else statement

    def with_afters(self, statement: Statement, fixture: Any, outcome: ChainOutcome) -> Statement:
        hooks = [functools.partial(hook, fixture) for hook in self.node.afters]
        return RunAfters(statement, hooks, outcome) if hooks else statement


class NestedFixtureLevel(FixtureLevel):
    """
    A level whose fixture and body are supplied by its caller.

    The same instance serves every test below its suite node, so the
    supplied state lives only for one ``delegating`` block and is cleared
    on every exit path.
    """

    def __init__(self, node: SuiteNode, introspector: Introspector) -> None:
        super().__init__(node, introspector)
        self._fixture: Any = _UNSET
        self._inner: Statement | None = None

    @contextlib.contextmanager
    def delegating(self, fixture: Any, inner: Statement) -> Iterator["NestedFixtureLevel"]:
        """Supply the fixture and inner statement for one delegated call."""
        self._fixture = fixture
        self._inner = inner
        try:
            yield self
        finally:
            self._fixture = _UNSET
            self._inner = None

    def create_fixture(self) -> Any:
        if self._fixture is _UNSET:
            raise DelegationStateError(self.node.unit, "fixture instance")
        return self._fixture

    def method_invoker(self, test: TestCase, fixture: Any, outcome: ChainOutcome) -> Statement:
        if self._inner is None:
            raise DelegationStateError(self.node.unit, "inner statement")
        return self._inner

    def evaluate_delegated(
        self, test: TestCase, fixture: Any, inner: Statement, outcome: ChainOutcome
    ) -> None:
        """Run this level's lifecycle around ``inner`` using ``fixture``."""
        with self.delegating(fixture, inner):
            self.method_block(test, outcome).evaluate()


class Delegate:
    """Statement that runs ``inner`` inside a nested level's lifecycle."""

    def __init__(
        self,
        level: NestedFixtureLevel,
        test: TestCase,
        fixture: Any,
        inner: Statement,
        outcome: ChainOutcome,
    ) -> None:
        self.level = level
        self.test = test
        self.fixture = fixture
        self.inner = inner
        self.outcome = outcome

    def evaluate(self) -> None:
        self.level.evaluate_delegated(self.test, self.fixture, self.inner, self.outcome)
