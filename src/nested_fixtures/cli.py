"""Command-line interface for running nested suites."""

import logging
import sys
from pathlib import Path

import click
import yaml

from .config import resolve_log_level, resolve_name_filter
from .exceptions import ConfigurationError, InitializationError, SuiteLoadError
from .loader import load_suite
from .models import Description
from .notification import TextListener
from .suite import NestedSuite, run_suites


@click.group()
@click.version_option(package_name="nested-fixtures")
@click.option(
    "--log-level",
    help="Log level (default: $NESTED_FIXTURES_LOG_LEVEL or WARNING)",
)
def cli(log_level: str | None) -> None:
    """nested-fixtures suite runner CLI."""
    try:
        level = resolve_log_level(log_level)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _add_rootdir(rootdir: str) -> None:
    path = str(Path(rootdir).resolve())
    if path not in sys.path:
        sys.path.insert(0, path)


def _load(target: str) -> type:
    try:
        return load_suite(target)
    except SuiteLoadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


@cli.command()
@click.argument("targets", nargs=-1, required=True)
@click.option(
    "--filter",
    "-k",
    "name_filter",
    help="Only run tests whose name contains this text (default: $NESTED_FIXTURES_FILTER)",
)
@click.option("--verbose", "-v", is_flag=True, help="Print one line per test")
@click.option(
    "--rootdir",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Directory to import suite modules from (default: current directory)",
)
def run(targets: tuple[str, ...], name_filter: str | None, verbose: bool, rootdir: str) -> None:
    """Run suites given as module:Class targets."""
    _add_rootdir(rootdir)
    units = [_load(target) for target in targets]
    result = run_suites(
        *units,
        listeners=[TextListener(verbose=verbose)],
        name_filter=resolve_name_filter(name_filter),
    )
    if not result.was_successful:
        sys.exit(1)


@cli.command()
@click.argument("target")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "yaml"]),
    default="text",
    help="Output format",
)
@click.option(
    "--rootdir",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Directory to import suite modules from (default: current directory)",
)
def describe(target: str, output_format: str, rootdir: str) -> None:
    """Print the test tree of a suite without running it."""
    _add_rootdir(rootdir)
    unit = _load(target)
    try:
        suite = NestedSuite(unit)
    except InitializationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output_format == "yaml":
        click.echo(yaml.dump(suite.description.as_dict(), default_flow_style=False, sort_keys=False))
        return
    _echo_tree(suite.description)


def _echo_tree(description: Description, depth: int = 0) -> None:
    indent = "  " * depth
    if description.is_test:
        click.echo(f"{indent}- {description.method_name}")
        return
    click.echo(f"{indent}{description.display_name} ({description.test_count} test(s))")
    for child in description.children:
        _echo_tree(child, depth + 1)


if __name__ == "__main__":
    cli()
