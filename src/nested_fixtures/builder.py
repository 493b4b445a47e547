"""Suite tree construction.

Walks a top-level suite class and its nested classes, keeping only the
nested units that contain tests, and produces the execution tree
(``SuiteNode``) together with the report tree (``Description``).
Nothing is instantiated here.
"""

import logging

from .exceptions import StructuralValidationError
from .introspection import ClassIntrospector, Introspector
from .markers import AFTER, AFTER_ALL, BEFORE, BEFORE_ALL, CLASS_RULE, RULE, TEST
from .models import Description, SuiteNode, TestCase, qualified_name

logger = logging.getLogger(__name__)


def build_suite_tree(
    unit: type,
    introspector: Introspector | None = None,
) -> tuple[SuiteNode | None, Description | None, list[StructuralValidationError]]:
    """
    Build the execution and report trees for a top-level suite.

    Nested units without tests (directly or in their own nested units) are
    dropped. Validation problems are collected rather than raised, so a
    caller sees every problem in the suite at once.

    Args:
        unit: The top-level suite class
        introspector: Structure discovery (default: ``ClassIntrospector``)

    Returns:
        ``(root, description, errors)``. ``root`` and ``description`` are
        None when the suite contains no tests at all.
    """
    introspector = introspector or ClassIntrospector()
    errors: list[StructuralValidationError] = []
    root = _build_node(unit, None, introspector, errors)
    if root is None:
        errors.append(
            StructuralValidationError(unit, "No tests found in the suite or any nested suite")
        )
        return None, None, errors

    logger.debug(
        "Built suite tree for %s: %d test(s), %d error(s)",
        qualified_name(unit),
        root.test_count,
        len(errors),
    )
    return root, root.description, errors


def _build_node(
    unit: type,
    parent: type | None,
    introspector: Introspector,
    errors: list[StructuralValidationError],
) -> SuiteNode | None:
    # Problems of a discarded unit are not reported.
    local: list[StructuralValidationError] = []

    children: list[SuiteNode] = []
    for nested in introspector.nested_units(unit):
        child = _build_node(nested, unit, introspector, local)
        if child is None:
            logger.debug("Discarding nested unit %s: no tests", qualified_name(nested))
            continue
        children.append(child)

    tests: list[TestCase] = []
    for name, member in _checked(unit, TEST, introspector, local):
        ignored, reason = introspector.ignore_reason(member)
        tests.append(
            TestCase(
                unit=unit,
                name=name,
                function=member,
                description=Description.test(unit, name),
                ignored=ignored,
                ignore_reason=reason,
            )
        )

    if not tests and not children and not introspector.marked(unit, TEST):
        return None

    for reason in introspector.constructor_problems(unit, parent):
        local.append(StructuralValidationError(unit, reason))

    befores = [member for _, member in _checked(unit, BEFORE, introspector, local)]
    afters = [member for _, member in _checked(unit, AFTER, introspector, local)]
    rules = [member for _, member in _checked(unit, RULE, introspector, local)]

    class_level: dict[str, list] = {}
    for kind in (BEFORE_ALL, AFTER_ALL, CLASS_RULE):
        members = _checked(unit, kind, introspector, local)
        if members and parent is not None:
            for name, _ in members:
                local.append(
                    StructuralValidationError(
                        unit,
                        f"@{kind} is only supported on the top-level suite",
                        method=name,
                    )
                )
            members = []
        class_level[kind] = [introspector.bind_class_level(unit, name) for name, _ in members]

    errors.extend(local)
    description = Description.suite(
        unit,
        tuple(t.description for t in tests) + tuple(c.description for c in children),
    )
    return SuiteNode(
        unit=unit,
        description=description,
        befores=tuple(befores),
        afters=tuple(afters),
        rules=tuple(rules),
        tests=tuple(tests),
        children=tuple(children),
        before_alls=tuple(class_level[BEFORE_ALL]),
        after_alls=tuple(class_level[AFTER_ALL]),
        class_rules=tuple(class_level[CLASS_RULE]),
    )


def _checked(
    unit: type,
    kind: str,
    introspector: Introspector,
    errors: list[StructuralValidationError],
) -> list[tuple[str, object]]:
    """Marked members of ``unit`` that pass validation; problems go to ``errors``."""
    valid = []
    for name, member in introspector.marked(unit, kind):
        problems = introspector.method_problems(unit, name, member, kind)
        if problems:
            errors.extend(StructuralValidationError(unit, p, method=name) for p in problems)
            continue
        valid.append((name, member))
    return valid
