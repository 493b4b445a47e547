"""Resolve ``module:Class`` targets to suite classes."""

import importlib
import inspect

from .exceptions import SuiteLoadError


def load_suite(target: str) -> type:
    """
    Import the suite class named by ``target``.

    ``target`` is ``package.module:Class`` (``Class`` may be a dotted path
    to a nested class) or ``package.module.Class``.

    Raises:
        SuiteLoadError: If the module or class cannot be found
    """
    if ":" in target:
        module_name, _, attr_path = target.partition(":")
    else:
        module_name, _, attr_path = target.rpartition(".")
    if not module_name or not attr_path:
        raise SuiteLoadError(target, "Expected 'module:Class'")

    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as e:
        raise SuiteLoadError(target, f"Cannot import module '{module_name}' ({e})") from e

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise SuiteLoadError(target, f"'{part}' not found") from None

    if not inspect.isclass(obj):
        raise SuiteLoadError(target, f"'{attr_path}' is not a class")
    return obj
