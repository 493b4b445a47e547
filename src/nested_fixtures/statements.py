"""Composable statements for fixture lifecycles.

A statement is one runnable step. Levels build a test's lifecycle by
wrapping statements: rules around befores, befores around afters, afters
around the test body. Every statement either returns or raises the
failure of record.
"""

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from .exceptions import DelegationStateError
from .models import Description, FailureKind

# Never reported as a test failure; they abort the run.
UNREPORTABLE: tuple[type[BaseException], ...] = (KeyboardInterrupt, DelegationStateError)


@runtime_checkable
class Statement(Protocol):
    """A runnable unit of work."""

    def evaluate(self) -> None: ...


@runtime_checkable
class TestRule(Protocol):
    """
    Interceptor wrapping a statement.

    Example:
        class Timing:
            def apply(self, base, description):
                return TimedStatement(base, description)
    """

    def apply(self, base: Statement, description: Description) -> Statement: ...


TestRule.__test__ = False  # type: ignore[attr-defined]


class ChainOutcome:
    """
    Classifies failures raised while one chain evaluates.

    Statements record the kind of each failure as it is raised, and the
    failures that lost to an earlier one, so the executor can report the
    failure of record with everything it suppressed.
    """

    def __init__(self) -> None:
        self._kinds: dict[int, tuple[BaseException, FailureKind]] = {}
        self._suppressed: dict[int, list[BaseException]] = {}

    def record(self, exc: BaseException, kind: FailureKind) -> None:
        """Remember where ``exc`` came from (first record wins)."""
        self._kinds.setdefault(id(exc), (exc, kind))

    def kind_of(self, exc: BaseException) -> FailureKind:
        entry = self._kinds.get(id(exc))
        if entry is not None and entry[0] is exc:
            return entry[1]
        return FailureKind.ERROR

    def suppressed_by(self, exc: BaseException) -> tuple[BaseException, ...]:
        return tuple(self._suppressed.get(id(exc), ()))

    def raise_first(self, errors: Sequence[BaseException]) -> None:
        """Raise the earliest error, suppressing the rest under it."""
        if not errors:
            return
        primary, *rest = errors
        if rest:
            self._suppressed.setdefault(id(primary), []).extend(rest)
        raise primary


class InvokeMethod:
    """Call the test function on its fixture instance."""

    def __init__(
        self, function: Callable[[Any], Any], fixture: Any, outcome: ChainOutcome
    ) -> None:
        self.function = function
        self.fixture = fixture
        self.outcome = outcome

    def evaluate(self) -> None:
        try:
            self.function(self.fixture)
        except UNREPORTABLE:
            raise
        except AssertionError as e:
            self.outcome.record(e, FailureKind.ASSERTION)
            raise
        except BaseException as e:
            self.outcome.record(e, FailureKind.ERROR)
            raise


class RunBefores:
    """Run setup hooks in order, then the next statement.

    The first failing hook aborts the rest of the setup and the next
    statement.
    """

    def __init__(
        self,
        next_statement: Statement,
        hooks: Sequence[Callable[[], Any]],
        outcome: ChainOutcome,
    ) -> None:
        self.next = next_statement
        self.hooks = tuple(hooks)
        self.outcome = outcome

    def evaluate(self) -> None:
        for hook in self.hooks:
            try:
                hook()
            except UNREPORTABLE:
                raise
            except BaseException as e:
                self.outcome.record(e, FailureKind.SETUP)
                raise
        self.next.evaluate()


class RunAfters:
    """Run the next statement, then every teardown hook.

    Teardown continues past failing hooks. The earliest failure is raised
    and later ones are suppressed under it.
    """

    def __init__(
        self,
        next_statement: Statement,
        hooks: Sequence[Callable[[], Any]],
        outcome: ChainOutcome,
    ) -> None:
        self.next = next_statement
        self.hooks = tuple(hooks)
        self.outcome = outcome

    def evaluate(self) -> None:
        errors: list[BaseException] = []
        try:
            self.next.evaluate()
        except UNREPORTABLE:
            raise
        except BaseException as e:
            errors.append(e)
        finally:
            for hook in self.hooks:
                try:
                    hook()
                except UNREPORTABLE:
                    raise
                except BaseException as e:
                    self.outcome.record(e, FailureKind.TEARDOWN)
                    errors.append(e)
        self.outcome.raise_first(errors)
class RunRules:
    """Wrap a statement in rules; the first rule given is the outermost.

    A rule that fails on its way out of an already failed statement does
    not replace that failure; it is suppressed under it.
    """

    def __init__(
        self,
        next_statement: Statement,
        rules: Sequence[TestRule],
        description: Description,
        outcome: ChainOutcome,
    ) -> None:
        self.next = next_statement
        self.rules = tuple(rules)
        self.description = description
        self.outcome = outcome

    def evaluate(self) -> None:
        statement = self.next
        for test_rule in reversed(self.rules):
            statement = _RuleStatement(test_rule, statement, self.description, self.outcome)
        statement.evaluate()


class _Watched:
    """Remember the failure of the statement a rule wraps."""

    def __init__(self, base: Statement) -> None:
        self.base = base
        self.error: BaseException | None = None

    def evaluate(self) -> None:
        try:
            self.base.evaluate()
        except BaseException as e:
            self.error = e
            raise


class _RuleStatement:
    def __init__(
        self,
        test_rule: TestRule,
        base: Statement,
        description: Description,
        outcome: ChainOutcome,
    ) -> None:
        self.rule = test_rule
        self.base = base
        self.description = description
        self.outcome = outcome

    def evaluate(self) -> None:
        inner = _Watched(self.base)
        try:
            self.rule.apply(inner, self.description).evaluate()
        except UNREPORTABLE:
            raise
        except BaseException as e:
            if inner.error is None or e is inner.error:
                raise
            self.outcome.raise_first([inner.error, e])


class ContextManagerRule:
    """Adapt a context manager to the ``TestRule`` protocol."""

    def __init__(self, manager: Any) -> None:
        self.manager = manager

    def apply(self, base: Statement, description: Description) -> Statement:
        return _WithStatement(base, self.manager)


class _WithStatement:
    def __init__(self, base: Statement, manager: Any) -> None:
        self.base = base
        self.manager = manager

    def evaluate(self) -> None:
        with self.manager:
            self.base.evaluate()


class Fail:
    """A statement that raises a failure captured earlier."""

    def __init__(self, error: BaseException) -> None:
        self.error = error

    def evaluate(self) -> None:
        raise self.error


def as_test_rule(interceptor: Any) -> TestRule:
    """
    Coerce an interceptor to a ``TestRule``.

    Raises:
        TypeError: If the object is neither a rule nor a context manager
    """
    if hasattr(interceptor, "apply"):
        return interceptor  # type: ignore[no-any-return]
    if hasattr(interceptor, "__enter__") and hasattr(interceptor, "__exit__"):
        return ContextManagerRule(interceptor)
    raise TypeError(
        f"Interceptor must define apply() or be a context manager, "
        f"got {type(interceptor).__name__}"
    )
