"""Per-test fixture chains.

For a test declared at depth ``d`` the executor creates one fresh fixture
per ancestor level, root first, each nested one from its parent's
instance. It then wraps the test method in every level's lifecycle, leaf
innermost, so that befores run root to leaf, afters leaf to root, and
rules nest by depth.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .introspection import Introspector
from .levels import Delegate, FixtureLevel, NestedFixtureLevel
from .models import Failure, SuiteNode, TestCase
from .notification import RunNotifier
from .statements import UNREPORTABLE, ChainOutcome, Fail, InvokeMethod, Statement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixtureLink:
    """One level of a chain: a suite node and its fixture for this test."""

    node: SuiteNode
    fixture: Any


@dataclass(frozen=True)
class FixtureChain:
    """
    Root-to-leaf fixtures for one test execution.

    Never reused: every execution creates its own chain.
    """

    links: tuple[FixtureLink, ...]

    @classmethod
    def create(cls, path: tuple[SuiteNode, ...], introspector: Introspector) -> "FixtureChain":
        """Instantiate the root with no arguments, then each level from its parent."""
        links: list[FixtureLink] = []
        for node in path:
            args = (links[-1].fixture,) if links else ()
            links.append(FixtureLink(node, introspector.instantiate(node.unit, *args)))
        return cls(tuple(links))

    @property
    def depth(self) -> int:
        return len(self.links) - 1

    @property
    def leaf(self) -> Any:
        return self.links[-1].fixture


class ChainExecutor:
    """
    Runs tests of one suite tree.

    Tests declared on the root run through a plain ``FixtureLevel``;
    nested tests run through one ``NestedFixtureLevel`` per ancestor,
    created once per suite node and shared by every test below it.
    """

    def __init__(self, root: SuiteNode, introspector: Introspector) -> None:
        self.root = root
        self.introspector = introspector
        self._root_level = FixtureLevel(root, introspector)
        self._levels: dict[type, NestedFixtureLevel] = {}
        self._register(root)

    def _register(self, node: SuiteNode) -> None:
        self._levels[node.unit] = NestedFixtureLevel(node, self.introspector)
        for child in node.children:
            self._register(child)

    def statement_for(
        self, path: tuple[SuiteNode, ...], test: TestCase, outcome: ChainOutcome
    ) -> Statement:
        """Compose the single statement that runs ``test`` with all its ancestors."""
        if len(path) == 1:
            return self._root_level.method_block(test, outcome)

        try:
            chain = FixtureChain.create(path, self.introspector)
        except UNREPORTABLE:
            raise
        except BaseException as e:
            return Fail(e)

        statement: Statement = InvokeMethod(test.function, chain.leaf, outcome)
        for link in reversed(chain.links):
            level = self._levels[link.node.unit]
            statement = Delegate(level, test, link.fixture, statement, outcome)
        return statement

    def execute(self, path: tuple[SuiteNode, ...], test: TestCase, notifier: RunNotifier) -> None:
        """
        Run one test and report it.

        An ignored test only produces ``test_ignored``. Otherwise the test
        produces ``test_started`` and then exactly one of ``test_finished``
        or ``test_failure``.

        Raises:
            DelegationStateError: If a nested level was misused
        """
        description = test.description
        if test.ignored:
            logger.debug("Ignoring %s", description.display_name)
            notifier.fire_test_ignored(description)
            return

        logger.debug("Running %s at depth %d", description.display_name, len(path) - 1)
        notifier.fire_test_started(description)
        outcome = ChainOutcome()
        try:
            self.statement_for(path, test, outcome).evaluate()
        except UNREPORTABLE:
            raise
        except BaseException as e:
            failure = Failure(
                description=description,
                exception=e,
                kind=outcome.kind_of(e),
                suppressed=outcome.suppressed_by(e),
            )
            logger.debug("%s failed (%s): %s", description.display_name, failure.kind.value, e)
            notifier.fire_test_failure(failure)
        else:
            notifier.fire_test_finished(description)
