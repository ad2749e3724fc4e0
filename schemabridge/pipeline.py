"""Per-table pipelines for both directions and their aggregated report.

Each table runs independently: a fatal error for one table becomes a
failed TableOutcome and the remaining tables still complete.
"""

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from schemabridge.codegen.model_emitter import EmissionOptions, emit_model
from schemabridge.codegen.sql_emitter import emit_sql
from schemabridge.diagnostics import Diagnostic, MissingTableAnnotation, SchemaBridgeError
from schemabridge.introspection.contract import Introspector
from schemabridge.parsers.model_parser import parse_models
from schemabridge.schema.builder import build_table_spec
from schemabridge.schema.soft_delete import SOFT_DELETE_CANDIDATES
from schemabridge.schema.spec import TableSpec
from schemabridge.schema.types import Dialect
from schemabridge.utils.logging import logger


class OutcomeStatus(Enum):
    """Status of one table's pipeline."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class TableOutcome:
    """Result of processing a single table."""
    table: str
    status: OutcomeStatus
    text: str | None = None
    spec: TableSpec | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "table": self.table,
            "status": self.status.value,
            "text": self.text,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class RunReport:
    """All outcomes of one run, in request order."""
    outcomes: list[TableOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[TableOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[TableOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def diagnostics(self) -> list[Diagnostic]:
        return [d for o in self.outcomes for d in o.diagnostics]

    def combined_text(self) -> str:
        """Texts of successful tables joined by a blank line."""
        return "\n".join(o.text for o in self.succeeded if o.text)

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def _log_diagnostics(diagnostics: Iterable[Diagnostic]) -> None:
    for diag in diagnostics:
        bound = logger.bind(table=diag.table, column=diag.column, code=diag.code.value)
        bound.log("ERROR" if diag.is_error else "WARNING", diag.message)


def generate_table(
    introspector: Introspector,
    table: str,
    options: EmissionOptions = EmissionOptions(),
    soft_delete_override: str | None = None,
    candidates: Iterable[str] = SOFT_DELETE_CANDIDATES,
) -> TableOutcome:
    """Introspect, build and emit one table's model module."""
    try:
        introspected = introspector.describe_table(table)
        built = build_table_spec(
            introspected,
            introspector.dialect,
            soft_delete_override=soft_delete_override,
            candidates=candidates,
        )
    except SchemaBridgeError as e:
        outcome = TableOutcome(table, OutcomeStatus.FAILED, diagnostics=[e.diagnostic])
    else:
        outcome = TableOutcome(
            table,
            OutcomeStatus.SUCCESS,
            text=emit_model(built.spec, options),
            spec=built.spec,
            diagnostics=list(built.diagnostics),
        )

    _log_diagnostics(outcome.diagnostics)
    return outcome


def run_generate(
    introspector: Introspector,
    tables: list[str] | None = None,
    options: EmissionOptions = EmissionOptions(),
    soft_delete_overrides: dict[str, str] | None = None,
    candidates: Iterable[str] = SOFT_DELETE_CANDIDATES,
    max_workers: int | None = None,
) -> RunReport:
    """Run the generate pipeline for each requested table.

    Args:
        introspector: Source of table descriptions
        tables: Table names; None means every table the introspector lists
        options: Model emission toggles
        soft_delete_overrides: table name -> soft-delete column
        candidates: Soft-delete candidate names
        max_workers: Thread count; None or 1 runs sequentially

    Returns:
        RunReport with one outcome per table, in request order
    """
    if tables is None:
        tables = introspector.list_tables()
    overrides = soft_delete_overrides or {}
    candidates = tuple(candidates)

    def process(table: str) -> TableOutcome:
        return generate_table(introspector, table, options, overrides.get(table), candidates)

    if not max_workers or max_workers <= 1 or len(tables) <= 1:
        outcomes = [process(t) for t in tables]
    else:
        by_table: dict[int, TableOutcome] = {}
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(process, t): i for i, t in enumerate(tables)}
            for future in as_completed(futures):
                by_table[futures[future]] = future.result()
        outcomes = [by_table[i] for i in range(len(tables))]

    report = RunReport(outcomes)
    logger.info(
        "Generated {ok}/{total} tables", ok=len(report.succeeded), total=len(outcomes)
    )
    return report


def run_sql(
    source: str,
    dialect: Dialect,
    filename: str = "<string>",
    candidates: Iterable[str] = SOFT_DELETE_CANDIDATES,
    soft_delete_overrides: dict[str, str] | None = None,
) -> RunReport:
    """Parse one model source unit and emit DDL for each model class."""
    try:
        results = parse_models(source, filename, candidates, soft_delete_overrides)
    except MissingTableAnnotation as e:
        outcome = TableOutcome(filename, OutcomeStatus.FAILED, diagnostics=[e.diagnostic])
        _log_diagnostics(outcome.diagnostics)
        return RunReport([outcome])

    outcomes = []
    for result in results:
        diagnostics = list(result.diagnostics)
        if result.spec is None:
            outcome = TableOutcome(result.class_name, OutcomeStatus.FAILED, diagnostics=diagnostics)
        else:
            try:
                text = emit_sql(result.spec, dialect)
            except SchemaBridgeError as e:
                diagnostics.append(e.diagnostic)
                outcome = TableOutcome(
                    result.spec.name, OutcomeStatus.FAILED, spec=result.spec, diagnostics=diagnostics
                )
            else:
                outcome = TableOutcome(
                    result.spec.name,
                    OutcomeStatus.SUCCESS,
                    text=text,
                    spec=result.spec,
                    diagnostics=diagnostics,
                )
        _log_diagnostics(outcome.diagnostics)
        outcomes.append(outcome)

    report = RunReport(outcomes)
    logger.info(
        "Emitted {dialect} DDL for {ok}/{total} models",
        dialect=dialect.value,
        ok=len(report.succeeded),
        total=len(outcomes),
    )
    return report
