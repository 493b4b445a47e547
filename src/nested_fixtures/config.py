"""Runtime settings.

Each setting resolves from an explicit argument, then an environment
variable, then a default.
"""

import logging
import os

from .exceptions import ConfigurationError

FILTER_ENV_VAR = "NESTED_FIXTURES_FILTER"
"""Environment variable holding the default test name filter."""

LOG_LEVEL_ENV_VAR = "NESTED_FIXTURES_LOG_LEVEL"
"""Environment variable holding the CLI log level."""

DEFAULT_LOG_LEVEL = "WARNING"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def resolve_name_filter(name_filter: str | None) -> str | None:
    """Resolve the test name filter.

    Resolution order: ``name_filter`` arg → ``NESTED_FIXTURES_FILTER`` env var → no filter.
    An empty string means no filter.
    """
    value = name_filter if name_filter is not None else os.environ.get(FILTER_ENV_VAR)
    return value or None


def resolve_log_level(level: str | None) -> int:
    """Resolve the log level to a ``logging`` constant.

    Resolution order: ``level`` arg → ``NESTED_FIXTURES_LOG_LEVEL`` env var → ``WARNING``.

    Raises:
        ConfigurationError: If the level is not a standard level name
    """
    setting = "log level" if level else LOG_LEVEL_ENV_VAR
    name = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or DEFAULT_LOG_LEVEL).upper()
    if name not in LOG_LEVELS:
        raise ConfigurationError(setting, name, f"Must be one of {', '.join(LOG_LEVELS)}")
    return int(getattr(logging, name))
