"""Main CLI entry point for agentmeta"""

import click

from . import commands

__version__ = "0.1.0"


@click.group()
@click.version_option(version=__version__, prog_name="agentmeta")
def cli() -> None:
    """Watch the metadata reported by remote agents."""
    pass


cli.add_command(commands.watch)
cli.add_command(commands.show)

if __name__ == "__main__":
    cli()
