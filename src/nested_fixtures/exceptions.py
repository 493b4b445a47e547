"""Exceptions for nested-fixtures."""

from typing import Any

# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class NestedFixturesError(Exception):
    """
    Base exception for all nested-fixtures errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause. Failures raised by user test code are never wrapped.
    """

    pass


# ---------------------------------------------------------------------------
# Category Exceptions
# ---------------------------------------------------------------------------


class ConstructionError(NestedFixturesError):
    """
    Base exception for suite construction errors.

    These are detected while the suite tree is being built, before any
    fixture is instantiated or any test is run.
    """

    pass


class ExecutionError(NestedFixturesError):
    """
    Base exception for engine errors raised while running a suite.

    These indicate misuse of the engine itself, never a failing test.
    """

    pass


# ---------------------------------------------------------------------------
# Construction Exceptions
# ---------------------------------------------------------------------------


class StructuralValidationError(ConstructionError):
    """
    Raised (or collected) when a suite unit is structurally invalid.

    Validation errors are accumulated while the tree is built so that all
    problems in a suite are reported together.

    Attributes:
        unit: The class that failed validation
        reason: Human-readable description of the problem
        method: Name of the offending method, if the problem is method-level
    """

    def __init__(self, unit: type, reason: str, method: str | None = None) -> None:
        self.unit = unit
        self.reason = reason
        self.method = method
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        where = _qualname(self.unit)
        if self.method:
            where += f".{self.method}"
        return f"{where}: {self.reason}"


class InitializationError(ConstructionError):
    """
    Raised when a suite cannot be constructed.

    Wraps every StructuralValidationError found for the suite so callers
    see the complete list at once.

    Attributes:
        unit: The top-level suite class
        errors: All validation errors, in discovery order
    """

    def __init__(self, unit: type, errors: list[StructuralValidationError]) -> None:
        if not errors:
            raise ValueError("InitializationError requires at least one error")
        self.unit = unit
        self.errors = list(errors)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = [f"Suite {_qualname(self.unit)} is invalid ({len(self.errors)} error(s)):"]
        lines.extend(f"  - {e}" for e in self.errors)
        return "\n".join(lines)

    def as_dict(self) -> dict[str, Any]:
        """Serialize for machine-readable reports."""
        return {
            "error": "initialization_error",
            "suite": _qualname(self.unit),
            "errors": [
                {
                    "unit": _qualname(e.unit),
                    "method": e.method,
                    "reason": e.reason,
                }
                for e in self.errors
            ],
        }


# ---------------------------------------------------------------------------
# Configuration Exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(NestedFixturesError):
    """
    Raised when a configuration value is invalid.

    Attributes:
        setting: Name of the setting (or environment variable)
        value: The rejected value
        reason: Why it was rejected
    """

    def __init__(self, setting: str, value: str, reason: str) -> None:
        self.setting = setting
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {setting} '{value}': {reason}")


# ---------------------------------------------------------------------------
# Loading Exceptions
# ---------------------------------------------------------------------------


class SuiteLoadError(ConstructionError):
    """Raised when a ``module:Class`` target cannot be resolved."""

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot load suite '{target}': {reason}")


# ---------------------------------------------------------------------------
# Execution Exceptions
# ---------------------------------------------------------------------------


class DelegationStateError(ExecutionError, RuntimeError):
    """
    Raised when a nested level is used without its delegated state.

    A nested level must be handed both the fixture instance and the inner
    statement before it builds its block. This is a programming error in
    the engine or its caller and is never reported as a test failure.
    """

    def __init__(self, unit: type, missing: str) -> None:
        self.unit = unit
        self.missing = missing
        super().__init__(
            f"Nested level {_qualname(unit)} used without a delegated {missing}"
        )


def _qualname(unit: type) -> str:
    return f"{unit.__module__}.{unit.__qualname__}"
