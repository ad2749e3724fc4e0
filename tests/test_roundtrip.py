"""Round trips: IR -> model source -> IR -> DDL."""

import importlib.util
import sys
from dataclasses import replace

import pytest

from schemabridge.annotations import MODEL_REGISTRY, model_meta
from schemabridge.codegen.model_emitter import emit_model
from schemabridge.codegen.sql_emitter import emit_sql
from schemabridge.parsers.model_parser import parse_models
from schemabridge.schema.builder import build_table_spec
from schemabridge.schema.spec import ColumnSpec, CompositeMembership, TableSpec
from schemabridge.schema.types import Dialect, ScalarType


def without_source_types(spec):
    return replace(spec, columns=tuple(replace(c, source_type=None) for c in spec.columns))


def reparse(spec):
    [result] = parse_models(emit_model(spec), "roundtrip.py")
    assert result.ok, result.diagnostics
    return result.spec


@pytest.fixture
def wide_spec():
    """One column of every scalar type plus awkward names and indexes."""
    return TableSpec("audit entry", (
        ColumnSpec("id", ScalarType.INT32, nullable=False, is_primary_key=True, is_auto_increment=True),
        ColumnSpec("level", ScalarType.INT16, nullable=False, default="0"),
        ColumnSpec("seq", ScalarType.INT64, is_unique=True, index_name="seq_uq"),
        ColumnSpec("ok", ScalarType.BOOL, nullable=False, default="true"),
        ColumnSpec("score", ScalarType.FLOAT64, comment="it's \"weighted\""),
        ColumnSpec("class", ScalarType.TEXT, length=32, is_indexed=True, index_name="class_lookup"),
        ColumnSpec("on", ScalarType.DATE, composite_indexes=(CompositeMembership("g_day", 0),)),
        ColumnSpec("at", ScalarType.DATETIME_NAIVE, nullable=False, default="CURRENT_TIMESTAMP",
                   composite_indexes=(CompositeMembership("g_day", 1), CompositeMembership("g_at", 0))),
        ColumnSpec("seen at", ScalarType.DATETIME_WITH_ZONE, is_indexed=True),
        ColumnSpec("blob", ScalarType.BINARY),
        ColumnSpec("to_dict", ScalarType.JSON, default=""),
        ColumnSpec("ref", ScalarType.UUID, nullable=False, is_unique=True),
        ColumnSpec("deleted", ScalarType.BOOL, nullable=False, default="false", is_soft_delete=True),
    ), comment="Audit\ntrail")


class TestRoundTrip:
    """Emitting and re-parsing a model preserves the IR."""

    def test_user_table_spec(self, user_table):
        """Test the introspected user table survives a model round trip."""
        spec = build_table_spec(user_table, Dialect.MYSQL).spec
        assert reparse(spec) == without_source_types(spec)

    def test_wide_spec(self, wide_spec):
        """Test every scalar type, renamed attribute and index form survives."""
        assert reparse(wide_spec) == wide_spec

    @pytest.mark.parametrize("dialect", list(Dialect))
    def test_ddl_is_stable(self, dialect, user_table, wide_spec):
        """Test DDL from the re-parsed model equals DDL from the original IR."""
        user_spec = build_table_spec(user_table, Dialect.MYSQL).spec
        for spec in (user_spec, wide_spec):
            assert emit_sql(reparse(spec), dialect) == emit_sql(spec, dialect)

    def test_sqlite_database_round_trip(self, sqlite_db):
        """Test introspected SQLite tables produce identical SQLite DDL after a round trip."""
        from schemabridge.introspection.sqlite import SQLiteIntrospector

        introspector = SQLiteIntrospector(sqlite_db)
        for table in introspector.list_tables():
            spec = build_table_spec(introspector.describe_table(table), Dialect.SQLITE).spec
            assert emit_sql(reparse(spec), Dialect.SQLITE) == emit_sql(spec, Dialect.SQLITE)


class TestGeneratedModuleRuns:
    """The emitted module is importable Python using the runtime annotations."""

    def test_import_generated_module(self, wide_spec, tmp_path, monkeypatch):
        """Test the generated class works with crud and serializable helpers."""
        path = tmp_path / "audit_entry.py"
        path.write_text(emit_model(wide_spec), encoding="utf-8")
        module_spec = importlib.util.spec_from_file_location("audit_entry", path)
        module = importlib.util.module_from_spec(module_spec)
        monkeypatch.setitem(sys.modules, "audit_entry", module)
        module_spec.loader.exec_module(module)
        cls = module.AuditEntry

        assert model_meta(cls).table == "audit entry"
        assert MODEL_REGISTRY["audit entry"] is cls
        assert cls.table_name() == "audit entry"
        assert cls.primary_key() == "id"
        assert cls.column_names() == wide_spec.column_names()

        row = cls.from_dict({"id": 7, "class": "x", "to_dict": {"k": 1}, "deleted": True})
        assert row.class_ == "x"
        assert row.to_dict_ == {"k": 1}
        assert row.to_dict()["class"] == "x"
        assert row.to_dict()["seen at"] is None
        assert row.is_deleted()
