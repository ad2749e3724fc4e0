"""Emit DDL from an annotated model module."""

from pathlib import Path

import click

from schemabridge.utils.error_handler import handle_exceptions


@click.command()
@handle_exceptions
@click.argument("model_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--root", default=".", help="Root directory holding .schemabridge/config.json")
@click.option(
    "--dialect",
    default=None,
    type=click.Choice(["mysql", "postgres", "sqlite"], case_sensitive=False),
    help="Target dialect (default from config: sql.dialect)",
)
@click.option("--output", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Write DDL to this file")
def sql(model_file, root, dialect, output):
    """Emit CREATE TABLE / CREATE INDEX statements for every @model class.

    The file is read statically; it is never imported. Field annotation
    problems are reported as warnings and the table is still emitted; a
    class without a table name fails on its own.

    Examples:
      sbridge sql models/user.py --dialect postgres
      sbridge sql models/user.py --dialect sqlite --output schema.sql"""
    from schemabridge.config_runtime import load_runtime_config, soft_delete_candidates
    from schemabridge.pipeline import run_sql
    from schemabridge.schema.types import Dialect
    from schemabridge.ui import print_report, print_success

    config = load_runtime_config(root)
    target = Dialect.parse(dialect or config["sql"]["dialect"])

    source = model_file.read_text(encoding="utf-8")
    report = run_sql(
        source,
        target,
        filename=str(model_file),
        candidates=soft_delete_candidates(config),
        soft_delete_overrides=config["soft_delete"]["overrides"],
    )

    ddl = report.combined_text()
    if output:
        output.write_text(ddl, encoding="utf-8")
        print_success(f"Wrote {target.value} DDL to {output}")
    elif ddl:
        click.echo(ddl, nl=False)

    print_report(report, title=f"SQL ({target.value})")
    if report.exit_code:
        click.get_current_context().exit(report.exit_code)
