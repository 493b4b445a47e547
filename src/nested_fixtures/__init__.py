"""
nested-fixtures: Nested test suites with composed fixtures.

A top-level suite class may contain nested classes. Each nested class is a
suite of its own whose tests run inside the setup, teardown and rules of
every enclosing level:
- Fresh fixture instances per test, each nested one built from its parent
- Befores run outermost first, afters innermost first
- Rules (interceptors) nest by depth
- A single description tree for reporting

Example:
    from nested_fixtures import NestedFixture, before, run_suites, test

    class StackTest:
        @before
        def create_stack(self):
            self.stack = []

        class An_empty_stack(NestedFixture):
            @test
            def is_empty(self):
                assert not self.parent.stack

    result = run_suites(StackTest)
    assert result.was_successful
"""

from importlib.metadata import PackageNotFoundError, version

from .builder import build_suite_tree
from .exceptions import (
    ConfigurationError,
    ConstructionError,
    DelegationStateError,
    ExecutionError,
    InitializationError,
    NestedFixturesError,
    StructuralValidationError,
    SuiteLoadError,
)
from .executor import ChainExecutor, FixtureChain, FixtureLink
from .introspection import ClassIntrospector, Introspector
from .levels import FixtureLevel, NestedFixtureLevel
from .loader import load_suite
from .markers import (
    NestedFixture,
    after,
    after_all,
    before,
    before_all,
    class_rule,
    ignore,
    rule,
    test,
)
from .models import Description, Failure, FailureKind, SuiteNode, TestCase
from .notification import Result, RunListener, RunNotifier, TextListener
from .statements import Statement, TestRule
from .suite import NestedSuite, run_suites

try:
    __version__ = version("nested-fixtures")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Main entry points
    "NestedSuite",
    "run_suites",
    "build_suite_tree",
    "load_suite",
    # Markers
    "test",
    "ignore",
    "before",
    "after",
    "rule",
    "before_all",
    "after_all",
    "class_rule",
    "NestedFixture",
    # Models
    "Description",
    "SuiteNode",
    "TestCase",
    "Failure",
    "FailureKind",
    # Execution
    "ChainExecutor",
    "FixtureChain",
    "FixtureLink",
    "FixtureLevel",
    "NestedFixtureLevel",
    "Statement",
    "TestRule",
    # Introspection
    "Introspector",
    "ClassIntrospector",
    # Notification
    "RunListener",
    "RunNotifier",
    "Result",
    "TextListener",
    # Exceptions - Base
    "NestedFixturesError",
    # Exceptions - Categories
    "ConstructionError",
    "ExecutionError",
    # Exceptions - Construction
    "StructuralValidationError",
    "InitializationError",
    "SuiteLoadError",
    # Exceptions - Configuration
    "ConfigurationError",
    # Exceptions - Execution
    "DelegationStateError",
]
