"""Emitters: TableSpec to Python model source and to DDL."""

from .model_emitter import EmissionOptions, emit_model, render_package_index
from .sql_emitter import emit_sql, emit_sql_many

__all__ = ["EmissionOptions", "emit_model", "emit_sql", "emit_sql_many", "render_package_index"]
