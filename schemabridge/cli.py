"""schemabridge CLI - main entry point and command registration hub."""
# ruff: noqa: E402 - commands imported after cli group definition

from pathlib import Path

import click

from schemabridge import __version__


@click.group()
@click.version_option(version=__version__, prog_name="sbridge")
@click.help_option("-h", "--help")
@click.option(
    "--log-dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Also write a rotating debug log to DIR/schemabridge.log",
)
def cli(log_dir):
    """schemabridge - relational schemas <-> annotated Python models

    \b
    QUICK START:
      sbridge generate --database-url sqlite:///app.db --all
      sbridge generate --snapshot schema.json -t user -t role
      sbridge sql models/user.py --dialect postgres

    \b
    For detailed options: sbridge <command> --help"""
    if log_dir is not None:
        from schemabridge.utils.logging import configure_file_logging

        configure_file_logging(log_dir)


from schemabridge.commands.generate import generate
from schemabridge.commands.sql import sql

cli.add_command(generate)
cli.add_command(sql)


if __name__ == "__main__":
    cli()
