"""nucleoprofile CLI — top-level Click group."""

from __future__ import annotations

import click


@click.group()
@click.version_option(package_name="nucleoprofile")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs and full tracebacks on errors.")
def cli(verbose: bool) -> None:
    """nucleoprofile — outline profile segmentation for cell populations."""
    from nucleoprofile.cli import utils

    utils.verbose = verbose
    utils.configure_logging(verbose)


def _register_commands() -> None:
    """Attach the subcommands; their modules load numpy and friends lazily."""
    from nucleoprofile.cli.analyze import analyze
    from nucleoprofile.cli.rules import rules

    cli.add_command(analyze)
    cli.add_command(rules)


_register_commands()
