"""acai CLI entry point: Click group with subcommands."""

import click

from acai import __version__


@click.group()
@click.version_option(version=__version__, prog_name="acai")
def cli() -> None:
    """acai - a command-line assistant that can run local tools."""


# Import and register subcommands
from acai.cli.instruct import instruct  # noqa: E402

cli.add_command(instruct)
