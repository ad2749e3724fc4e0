"""Generate annotated model modules from a database schema."""

from pathlib import Path

import click

from schemabridge.utils.error_handler import handle_exceptions


def parse_soft_delete_overrides(values: tuple[str, ...]) -> dict[str, str]:
    """Turn repeated 'table=column' options into a mapping."""
    overrides = {}
    for value in values:
        table, sep, column = value.partition("=")
        if not sep or not table.strip() or not column.strip():
            raise click.BadParameter(
                f"expected TABLE=COLUMN, got '{value}'", param_hint="--soft-delete"
            )
        overrides[table.strip()] = column.strip()
    return overrides


@click.command()
@handle_exceptions
@click.option("--root", default=".", help="Root directory holding .schemabridge/config.json")
@click.option("--database-url", default=None, help="Live database URL (sqlite:///path.db)")
@click.option(
    "--snapshot",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON schema snapshot captured from MySQL or Postgres",
)
@click.option(
    "--dialect",
    default=None,
    type=click.Choice(["mysql", "postgres", "sqlite"], case_sensitive=False),
    help="Dialect of the snapshot (defaults to the snapshot's own)",
)
@click.option("-t", "--table", "tables", multiple=True, help="Table to generate (repeatable)")
@click.option("--all", "all_tables", is_flag=True, help="Generate every table")
@click.option("--output", default=None, type=click.Path(file_okay=False, path_type=Path), help="Output directory")
@click.option("--overwrite/--no-overwrite", default=None, help="Replace existing model files")
@click.option("--dry-run", is_flag=True, help="Print generated modules instead of writing them")
@click.option("--serialization/--no-serialization", default=None, help="Add @serializable")
@click.option("--crud/--no-crud", default=None, help="Add @crud")
@click.option("--soft-delete", "soft_delete", multiple=True, help="Soft-delete column override TABLE=COLUMN")
@click.option("--workers", default=None, type=int, help="Tables processed in parallel")
def generate(
    root, database_url, snapshot, dialect, tables, all_tables, output, overwrite,
    dry_run, serialization, crud, soft_delete, workers,
):
    """Generate one annotated model module per table.

    Reads table definitions from a live SQLite database or a JSON snapshot,
    maps every column to a dialect-neutral type, and writes a dataclass
    module per table plus an __init__.py re-exporting the classes.

    Examples:
      sbridge generate --database-url sqlite:///app.db --all
      sbridge generate --snapshot prod.json -t user --soft-delete user=removed_at
      sbridge generate --snapshot prod.json --all --dry-run

    Exit status is 1 when any table failed; the other tables are still
    generated."""
    from schemabridge.codegen.model_emitter import EmissionOptions, module_name_for, render_package_index
    from schemabridge.config_runtime import load_runtime_config, soft_delete_candidates
    from schemabridge.diagnostics import SchemaBridgeError
    from schemabridge.introspection.factory import open_introspector
    from schemabridge.pipeline import run_generate
    from schemabridge.schema.types import Dialect
    from schemabridge.ui import console, print_report, print_success, print_warning
    from schemabridge.utils.constants import MODEL_FILE_SUFFIX, PACKAGE_INDEX_FILE

    if not tables and not all_tables:
        raise click.UsageError("Select tables with --table or use --all")
    if tables and all_tables:
        raise click.UsageError("--table and --all are mutually exclusive")

    config = load_runtime_config(root)
    gen_cfg = config["generate"]

    options = EmissionOptions(
        include_serialization=gen_cfg["include_serialization"] if serialization is None else serialization,
        include_crud=gen_cfg["include_crud"] if crud is None else crud,
    )
    overrides = dict(config["soft_delete"]["overrides"])
    overrides.update(parse_soft_delete_overrides(soft_delete))

    try:
        introspector = open_introspector(
            database_url=database_url,
            snapshot=snapshot,
            dialect=Dialect.parse(dialect) if dialect else None,
        )
        report = run_generate(
            introspector,
            tables=list(tables) if tables else None,
            options=options,
            soft_delete_overrides=overrides,
            candidates=soft_delete_candidates(config),
            max_workers=workers if workers is not None else gen_cfg["max_workers"],
        )
    except SchemaBridgeError as e:
        raise click.ClickException(str(e)) from e

    if dry_run:
        for outcome in report.succeeded:
            click.echo(f"# ---- {module_name_for(outcome.table)}{MODEL_FILE_SUFFIX} ----")
            click.echo(outcome.text, nl=False)
    else:
        out_dir = output or Path(gen_cfg["output_dir"])
        replace = gen_cfg["overwrite"] if overwrite is None else overwrite
        out_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for outcome in report.succeeded:
            target = out_dir / f"{module_name_for(outcome.table)}{MODEL_FILE_SUFFIX}"
            if target.exists() and not replace:
                print_warning(f"{target} exists; use --overwrite to replace it")
            else:
                target.write_text(outcome.text, encoding="utf-8")
                written.append(target)

        specs = [o.spec for o in report.succeeded]
        if specs:
            (out_dir / PACKAGE_INDEX_FILE).write_text(render_package_index(specs), encoding="utf-8")
        console.print(f"Wrote [path]{len(written)}[/path] model files to [path]{out_dir}[/path]")

    print_report(report, title="GENERATE")
    if report.exit_code:
        click.get_current_context().exit(report.exit_code)
    print_success("All tables generated")
