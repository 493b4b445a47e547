"""Structural introspection of suite classes.

The engine never inspects classes directly; it asks an ``Introspector``.
``ClassIntrospector`` is the default implementation built on ``inspect``
and the marks recorded by ``nested_fixtures.markers``.
"""

import inspect
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .markers import AFTER, AFTER_ALL, CLASS_LEVEL_MARKS, IGNORE, get_marks

Member = tuple[str, Any]


@runtime_checkable
class Introspector(Protocol):
    """
    Protocol for discovering suite structure.

    Implementations answer questions about one class at a time and never
    instantiate it (``instantiate`` is only called at run time).
    """

    def nested_units(self, unit: type) -> list[type]:
        """Classes declared directly inside ``unit``, in declaration order."""
        ...

    def marked(self, unit: type, kind: str) -> list[Member]:
        """``(name, member)`` pairs of ``unit`` carrying the ``kind`` mark, in run order."""
        ...

    def ignore_reason(self, member: Any) -> tuple[bool, str | None]:
        """Whether a test member is ignored, and why."""
        ...

    def constructor_problems(self, unit: type, parent: type | None) -> list[str]:
        """Reasons ``unit`` cannot be built from a ``parent`` instance (or from nothing)."""
        ...

    def method_problems(self, unit: type, name: str, member: Any, kind: str) -> list[str]:
        """Reasons a marked member cannot be used as a ``kind`` hook."""
        ...

    def bind_class_level(self, unit: type, name: str) -> Callable[[], Any]:
        """Return a zero-argument callable for a class-level hook."""
        ...

    def instantiate(self, unit: type, *args: Any) -> Any:
        """Create a fixture instance."""
        ...


class ClassIntrospector:
    """Introspector for plain Python classes."""

    def nested_units(self, unit: type) -> list[type]:
        prefix = f"{unit.__qualname__}."
        return [
            value
            for name, value in vars(unit).items()
            if inspect.isclass(value) and value.__qualname__ == prefix + name
        ]

    def marked(self, unit: type, kind: str) -> list[Member]:
        # Base classes first; teardown runs subclass hooks before base hooks.
        groups: list[list[Member]] = []
        effective: dict[str, Any] = {}
        for klass in reversed(unit.__mro__):
            if klass is object:
                continue
            group: list[Member] = []
            for name, member in vars(klass).items():
                if kind in get_marks(member):
                    effective[name] = member
                    group.append((name, member))
                elif name in effective:
                    # Overridden without the mark.
                    del effective[name]
            groups.append(group)

        if kind in (AFTER, AFTER_ALL):
            groups.reverse()

        result: list[Member] = []
        seen: set[str] = set()
        for group in groups:
            for name, member in group:
                if name in seen or effective.get(name) is not member:
                    continue
                seen.add(name)
                result.append((name, member))
        return result

    def ignore_reason(self, member: Any) -> tuple[bool, str | None]:
        marks = get_marks(member)
        if IGNORE not in marks:
            return False, None
        return True, marks[IGNORE].get("reason")

    def constructor_problems(self, unit: type, parent: type | None) -> list[str]:
        signature = _signature(unit)
        params = list(signature.parameters.values())
        positional = [
            p
            for p in params
            if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        ]
        required = [p for p in positional if p.default is inspect.Parameter.empty]
        required_kw = [
            p
            for p in params
            if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
        ]
        has_varargs = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)

        if parent is None:
            if required or required_kw:
                names = ", ".join(p.name for p in required + required_kw)
                return [f"Top-level suite must be constructible with no arguments (requires {names})"]
            return []

        if not positional and not has_varargs:
            return [
                f"Nested suite must have a constructor taking the parent "
                f"{parent.__qualname__} instance as its only argument"
            ]
        if len(required) > 1 or required_kw:
            names = ", ".join(p.name for p in required + required_kw)
            return [
                f"Nested suite constructor must take exactly one argument "
                f"(the parent {parent.__qualname__} instance), but requires {names}"
            ]
        if positional:
            annotation = positional[0].annotation
            if _rejects(annotation, parent):
                return [
                    f"Nested suite constructor takes {annotation.__qualname__}, "
                    f"not the parent {parent.__qualname__}"
                ]
        return []

    def method_problems(self, unit: type, name: str, member: Any, kind: str) -> list[str]:
        problems: list[str] = []
        if kind in CLASS_LEVEL_MARKS:
            if not isinstance(member, (staticmethod, classmethod)):
                problems.append(f"@{kind} method must be a staticmethod or classmethod")
                return problems
            bound = getattr(unit, name)
            if _required_params(inspect.signature(bound)):
                problems.append(f"@{kind} method must take no arguments")
            return problems

        if isinstance(member, (staticmethod, classmethod)):
            problems.append(f"@{kind} method must be an instance method")
            return problems
        if not inspect.isfunction(member):
            problems.append(f"@{kind} member must be a function")
            return problems
        params = _required_params(inspect.signature(member))
        if not params:
            problems.append(f"@{kind} method must accept self")
        elif len(params) > 1:
            problems.append(f"@{kind} method must take no arguments besides self")
        return problems

    def bind_class_level(self, unit: type, name: str) -> Callable[[], Any]:
        return getattr(unit, name)  # type: ignore[no-any-return]

    def instantiate(self, unit: type, *args: Any) -> Any:
        return unit(*args)


def _signature(unit: type) -> inspect.Signature:
    # Fall back to unevaluated annotations when string annotations cannot be resolved.
    for kwargs in ({"eval_str": True}, {}):
        try:
            return inspect.signature(unit, **kwargs)
        except ValueError:
            break
        except (NameError, AttributeError, SyntaxError, TypeError):
            continue
    return inspect.Signature()


def _rejects(annotation: Any, parent: type) -> bool:
    if annotation is Any or not isinstance(annotation, type):
        return False
    try:
        return not issubclass(parent, annotation)
    except TypeError:
        return False


def _required_params(signature: inspect.Signature) -> list[inspect.Parameter]:
    return [
        p
        for p in signature.parameters.values()
        if p.default is inspect.Parameter.empty
        and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
