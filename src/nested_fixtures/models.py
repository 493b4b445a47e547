"""Core models for nested-fixtures."""

import traceback
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def qualified_name(unit: type) -> str:
    """Return ``module.QualName`` for a class."""
    return f"{unit.__module__}.{unit.__qualname__}"


@dataclass(frozen=True)
class Description:
    """
    Read-only report node for a suite or a test.

    Equality and hashing ignore ``children`` so a bare description can be
    compared against a node taken from a built tree.

    Attributes:
        display_name: ``module.Class`` for suites, ``name(module.Class)`` for tests
        unit: The class the node describes
        method_name: Test method name (None for suites)
        children: Child descriptions, in run order
    """

    display_name: str
    unit: type | None = None
    method_name: str | None = None
    children: tuple["Description", ...] = field(default=(), compare=False, repr=False)

    @classmethod
    def suite(cls, unit: type, children: tuple["Description", ...] = ()) -> "Description":
        """Create a suite description for a class."""
        return cls(display_name=qualified_name(unit), unit=unit, children=tuple(children))

    @classmethod
    def test(cls, unit: type, name: str) -> "Description":
        """Create a test description for a method of a class."""
        return cls(
            display_name=f"{name}({qualified_name(unit)})",
            unit=unit,
            method_name=name,
        )

    @property
    def is_suite(self) -> bool:
        return self.method_name is None

    @property
    def is_test(self) -> bool:
        return self.method_name is not None

    @property
    def test_count(self) -> int:
        """Number of test descriptions at or below this node."""
        if self.is_test:
            return 1
        return sum(child.test_count for child in self.children)

    def iter_tests(self) -> Iterator["Description"]:
        """Yield every test description below this node, depth first."""
        if self.is_test:
            yield self
            return
        for child in self.children:
            yield from child.iter_tests()

    def find(self, unit: type) -> "Description | None":
        """Find the suite description for ``unit`` anywhere in this tree."""
        if self.is_suite and self.unit is unit:
            return self
        for child in self.children:
            found = child.find(unit)
            if found is not None:
                return found
        return None

    def as_dict(self) -> dict[str, Any]:
        """Serialize the tree for reports."""
        if self.is_test:
            return {"test": self.method_name, "display_name": self.display_name}
        return {
            "suite": self.display_name,
            "children": [child.as_dict() for child in self.children],
        }


@dataclass(frozen=True)
class TestCase:
    """
    One test method belonging to exactly one suite unit.

    Attributes:
        unit: The class declaring the test
        name: Method name
        function: The plain function, called with the fixture instance
        description: Report node for this test
        ignored: True when the test is marked with @ignore
        ignore_reason: Optional reason given to @ignore
    """

    __test__ = False

    unit: type
    name: str
    function: Callable[[Any], Any] = field(repr=False)
    description: Description = field(repr=False)
    ignored: bool = False
    ignore_reason: str | None = None


@dataclass(frozen=True)
class SuiteNode:
    """
    Execution-tree node for one suite unit that contains tests.

    Hooks are stored as plain functions in run order: ``befores`` are
    called root-most first within the unit, ``afters`` in declared order.

    Attributes:
        unit: The suite class
        description: Report node mirroring this suite
        befores: Per-test setup functions
        afters: Per-test teardown functions
        rules: Interceptor factory functions, called with the fixture instance
        tests: Tests declared directly on this unit
        children: Nested suite nodes that contain tests
        before_alls: Suite-wide setup callables (top-level only)
        after_alls: Suite-wide teardown callables (top-level only)
        class_rules: Suite-wide interceptor factories (top-level only)
    """

    unit: type
    description: Description = field(repr=False)
    befores: tuple[Callable[[Any], Any], ...] = ()
    afters: tuple[Callable[[Any], Any], ...] = ()
    rules: tuple[Callable[[Any], Any], ...] = ()
    tests: tuple[TestCase, ...] = ()
    children: tuple["SuiteNode", ...] = ()
    before_alls: tuple[Callable[[], Any], ...] = ()
    after_alls: tuple[Callable[[], Any], ...] = ()
    class_rules: tuple[Callable[[], Any], ...] = ()

    @property
    def test_count(self) -> int:
        return len(self.tests) + sum(child.test_count for child in self.children)

    def walk(
        self, path: tuple["SuiteNode", ...] = ()
    ) -> Iterator[tuple[tuple["SuiteNode", ...], TestCase]]:
        """
        Yield ``(path, test)`` for every test in run order.

        ``path`` runs from the root node to the node that declares the test.
        Direct tests come before nested ones.
        """
        path = (*path, self)
        for test in self.tests:
            yield path, test
        for child in self.children:
            yield from child.walk(path)


class FailureKind(Enum):
    """Classification of a test failure for reporting."""

    SETUP = "setup"
    TEARDOWN = "teardown"
    ASSERTION = "assertion"
    ERROR = "error"


@dataclass(frozen=True)
class Failure:
    """
    A failed test, as reported to listeners.

    Attributes:
        description: The failed test
        exception: The failure of record (the earliest failure)
        kind: Where the failure of record came from
        suppressed: Later failures (usually teardown), in occurrence order
    """

    description: Description
    exception: BaseException
    kind: FailureKind
    suppressed: tuple[BaseException, ...] = ()

    @property
    def message(self) -> str:
        return f"{type(self.exception).__name__}: {self.exception}"

    @property
    def trace(self) -> str:
        """Formatted traceback of the failure of record."""
        return "".join(traceback.format_exception(self.exception))
