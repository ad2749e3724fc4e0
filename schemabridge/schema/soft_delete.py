"""Soft-delete column detection.

The candidate names are fixed constants: logical-delete flags first, then
deletion timestamps. Runtime config may replace either list.
"""

from collections.abc import Iterable, Sequence

from schemabridge.diagnostics import (
    AmbiguousSoftDeleteColumn,
    Diagnostic,
    DiagnosticCode,
    warning,
)

SOFT_DELETE_FLAG_NAMES = ("is_del", "is_deleted", "is_delete", "deleted")
SOFT_DELETE_TIMESTAMP_NAMES = ("deleted_at", "delete_time", "deleted_time")
SOFT_DELETE_CANDIDATES = SOFT_DELETE_FLAG_NAMES + SOFT_DELETE_TIMESTAMP_NAMES


def detect_soft_delete(
    column_names: Sequence[str],
    override: str | None = None,
    candidates: Iterable[str] = SOFT_DELETE_CANDIDATES,
    table: str | None = None,
) -> tuple[str | None, list[Diagnostic]]:
    """Pick the soft-delete column for a table.

    Args:
        column_names: Column names in declaration order
        override: Column chosen by configuration; always wins when it exists
        candidates: Ordered candidate names
        table: Table name used for diagnostics

    Returns:
        (column name or None, diagnostics)

    Raises:
        AmbiguousSoftDeleteColumn: more than one column matches a candidate
    """
    if override:
        if override in column_names:
            return override, []
        diag = warning(
            DiagnosticCode.UNKNOWN_SOFT_DELETE_OVERRIDE,
            f"Configured soft-delete override '{override}' names no column; ignored",
            table=table,
        )
        return None, [diag]

    candidate_set = set(candidates)
    matches = [name for name in column_names if name in candidate_set]

    if len(matches) > 1:
        raise AmbiguousSoftDeleteColumn(
            f"Several soft-delete candidates ({', '.join(matches)}); "
            "mark one explicitly or configure an override",
            table=table,
        )

    return (matches[0] if matches else None), []
