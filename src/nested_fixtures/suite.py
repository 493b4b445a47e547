"""Nested suites: construction, description and running.

Example:
    from nested_fixtures import NestedSuite, Result, RunNotifier

    suite = NestedSuite(StackTest)
    print(suite.description.as_dict())

    result = Result()
    notifier = RunNotifier()
    notifier.add_listener(result)
    suite.run(notifier)
    assert result.was_successful
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from .builder import build_suite_tree
from .exceptions import InitializationError
from .executor import ChainExecutor
from .introspection import ClassIntrospector, Introspector
from .models import Description, Failure, FailureKind, SuiteNode, TestCase
from .notification import Result, RunListener, RunNotifier
from .statements import (
    UNREPORTABLE,
    ChainOutcome,
    RunAfters,
    RunBefores,
    RunRules,
    Statement,
    as_test_rule,
)

logger = logging.getLogger(__name__)


class NestedSuite:
    """
    A top-level suite class with its nested units.

    The suite tree is built and validated on construction, so an invalid
    suite never runs any test.

    Args:
        unit: The top-level suite class
        introspector: Structure discovery (default: ``ClassIntrospector``)

    Raises:
        InitializationError: With every structural problem found
    """

    def __init__(self, unit: type, introspector: Introspector | None = None) -> None:
        self.unit = unit
        self.introspector = introspector or ClassIntrospector()
        root, description, errors = build_suite_tree(unit, self.introspector)
        if errors or root is None or description is None:
            raise InitializationError(unit, errors)
        self.root: SuiteNode = root
        self._description = description
        self._paths = {(test.unit, test.name): path for path, test in root.walk()}
        self._executor = ChainExecutor(root, self.introspector)

    @property
    def description(self) -> Description:
        """The report tree; stable and available before any run."""
        return self._description

    @property
    def test_cases(self) -> list[TestCase]:
        """Every test in run order: direct tests first, then nested suites."""
        return [test for _, test in self.root.walk()]

    def run_test(self, test: TestCase, notifier: RunNotifier) -> None:
        """Run a single test with its full fixture chain."""
        try:
            path = self._paths[(test.unit, test.name)]
        except KeyError:
            raise ValueError(f"{test.description.display_name} is not part of this suite") from None
        self._executor.execute(path, test, notifier)

    def run(self, notifier: RunNotifier, name_filter: str | None = None) -> None:
        """
        Run every test (or those whose display name contains ``name_filter``).

        Class-level hooks of the top-level suite wrap the whole run. A
        failure there is reported against the suite description.
        """
        selected = [
            (path, test)
            for path, test in self.root.walk()
            if not name_filter or name_filter in test.description.display_name
        ]
        if not selected:
            logger.debug("No tests of %s match %r", self.description.display_name, name_filter)
            return

        logger.info("Running %s: %d test(s)", self.description.display_name, len(selected))

        def run_children() -> None:
            for path, test in selected:
                self._executor.execute(path, test, notifier)

        outcome = ChainOutcome()
        try:
            self.class_block(_Call(run_children), outcome).evaluate()
        except UNREPORTABLE:
            raise
        except BaseException as e:
            kind = outcome.kind_of(e)
            logger.warning("Suite %s failed (%s): %s", self.description.display_name, kind.value, e)
            notifier.fire_test_failure(
                Failure(
                    description=self.description,
                    exception=e,
                    kind=kind,
                    suppressed=outcome.suppressed_by(e),
                )
            )
        logger.info("Finished %s", self.description.display_name)

    def class_block(self, statement: Statement, outcome: ChainOutcome) -> Statement:
        """Wrap the run of all tests in the suite-wide hooks and rules."""
        root = self.root
        if root.before_alls or root.after_alls:
            statement = RunAfters(statement, root.after_alls, outcome)
            statement = RunBefores(statement, root.before_alls, outcome)
        if root.class_rules:
            statement = _ClassRules(statement, root.class_rules, self.description, outcome)
        return statement


class _Call:
    def __init__(self, function: Callable[[], Any]) -> None:
        self.function = function

    def evaluate(self) -> None:
        self.function()


class _ClassRules:
    """Create the class rules when evaluated, so their failures are reported."""

    def __init__(
        self,
        statement: Statement,
        factories: Iterable[Callable[[], Any]],
        description: Description,
        outcome: ChainOutcome,
    ) -> None:
        self.statement = statement
        self.factories = tuple(factories)
        self.description = description
        self.outcome = outcome

    def evaluate(self) -> None:
        rules = [as_test_rule(factory()) for factory in self.factories]
        RunRules(self.statement, rules, self.description, self.outcome).evaluate()


def run_suites(
    *units: type,
    listeners: Iterable[RunListener] = (),
    name_filter: str | None = None,
    introspector: Introspector | None = None,
) -> Result:
    """
    Build and run suites, collecting a ``Result``.

    Invalid suites do not stop the run: each of their validation errors
    is reported as a failure of the suite.
    """
    result = Result()
    notifier = RunNotifier()
    notifier.add_listener(result)
    for listener in listeners:
        notifier.add_listener(listener)

    suites: list[NestedSuite] = []
    broken: list[InitializationError] = []
    for unit in units:
        try:
            suites.append(NestedSuite(unit, introspector))
        except InitializationError as e:
            logger.warning("%s", e)
            broken.append(e)

    children = tuple(s.description for s in suites) + tuple(
        Description.suite(e.unit) for e in broken
    )
    notifier.fire_run_started(Description(display_name="All suites", children=children))

    for error in broken:
        _report_invalid(notifier, error)
    for suite in suites:
        suite.run(notifier, name_filter=name_filter)

    notifier.fire_run_finished(result)
    return result


def _report_invalid(notifier: RunNotifier, error: InitializationError) -> None:
    description = Description.suite(error.unit)
    for problem in error.errors:
        notifier.fire_test_failure(Failure(description, problem, FailureKind.ERROR))
