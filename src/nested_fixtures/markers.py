"""Decorators that mark suite methods for the engine.

Example:
    from nested_fixtures import NestedFixture, after, before, test

    class StackTest:
        @before
        def create_stack(self):
            self.stack = []

        class When_objects_have_been_pushed(NestedFixture):
            @before
            def push_objects(self):
                self.parent.stack.append("pushed first")
                self.parent.stack.append("pushed last")

            @test
            def the_object_pushed_last_is_popped_first(self):
                assert self.parent.stack.pop() == "pushed last"
"""

import contextlib
import inspect
from collections.abc import Callable
from typing import Any, TypeVar, overload

F = TypeVar("F", bound=Callable[..., Any])

TEST = "test"
IGNORE = "ignore"
BEFORE = "before"
AFTER = "after"
RULE = "rule"
BEFORE_ALL = "before_all"
AFTER_ALL = "after_all"
CLASS_RULE = "class_rule"

CLASS_LEVEL_MARKS = frozenset({BEFORE_ALL, AFTER_ALL, CLASS_RULE})

_MARKS_ATTR = "__nested_fixtures_marks__"


def unwrap(member: Any) -> Any:
    """Return the plain function behind a static or class method."""
    if isinstance(member, (staticmethod, classmethod)):
        return member.__func__
    return member


def get_marks(member: Any) -> dict[str, dict[str, Any]]:
    """Return the marks recorded on a class member (empty if none)."""
    return getattr(unwrap(member), _MARKS_ATTR, {})


def _mark(member: F, kind: str, **options: Any) -> F:
    func = unwrap(member)
    if not callable(func):
        raise TypeError(f"@{kind} can only decorate functions, not {type(member).__name__}")
    marks = func.__dict__.setdefault(_MARKS_ATTR, {})
    marks[kind] = options
    return member


def test(func: F) -> F:
    """Mark a method as a test case."""
    return _mark(func, TEST)


# Keep pytest from collecting the decorator itself.
test.__test__ = False  # type: ignore[attr-defined]


@overload
def ignore(arg: F) -> F: ...


@overload
def ignore(arg: str | None = None) -> Callable[[F], F]: ...


def ignore(arg: Any = None) -> Any:
    """
    Mark a test as ignored.

    Usable bare (``@ignore``) or with a reason (``@ignore("flaky")``).
    Ignored tests are reported but never executed.
    """
    if callable(arg):
        return _mark(arg, IGNORE, reason=None)

    def decorator(func: F) -> F:
        return _mark(func, IGNORE, reason=arg)

    return decorator


def before(func: F) -> F:
    """Mark a method to run before every test of its unit and nested units."""
    return _mark(func, BEFORE)


def after(func: F) -> F:
    """Mark a method to run after every test of its unit and nested units."""
    return _mark(func, AFTER)


def rule(func: F) -> F:
    """
    Mark a method as an interceptor factory.

    The method is called on each fresh fixture instance and must return a
    ``TestRule`` or a context manager. A generator method is treated as a
    ``contextlib.contextmanager``.
    """
    if inspect.isgeneratorfunction(func):
        func = contextlib.contextmanager(func)  # type: ignore[assignment]
    return _mark(func, RULE)


def before_all(func: F) -> F:
    """Mark a static or class method to run once before the whole suite."""
    return _mark(func, BEFORE_ALL)


def after_all(func: F) -> F:
    """Mark a static or class method to run once after the whole suite."""
    return _mark(func, AFTER_ALL)


def class_rule(func: F) -> F:
    """Mark a static or class method returning an interceptor for the whole suite."""
    if inspect.isgeneratorfunction(unwrap(func)):
        if isinstance(func, (staticmethod, classmethod)):
            func = type(func)(contextlib.contextmanager(func.__func__))  # type: ignore[assignment]
        else:
            func = contextlib.contextmanager(func)  # type: ignore[assignment]
    return _mark(func, CLASS_RULE)


class NestedFixture:
    """
    Convenience base class for nested units.

    Nested units are constructed from their parent's fixture instance;
    this base stores it as ``parent``.
    """

    def __init__(self, parent: Any) -> None:
        self.parent = parent
