"""Tests for building the IR from introspection rows and soft-delete detection."""

import pytest

from schemabridge.diagnostics import AmbiguousSoftDeleteColumn, DiagnosticCode
from schemabridge.introspection.contract import (
    IntrospectedColumn,
    IntrospectedIndex,
    IntrospectedTable,
)
from schemabridge.schema.builder import build_table_spec, normalize_default
from schemabridge.schema.soft_delete import detect_soft_delete
from schemabridge.schema.spec import CompositeMembership
from schemabridge.schema.types import Dialect, ScalarType


class TestSoftDeleteDetection:
    """Candidate matching and overrides."""

    def test_single_candidate(self):
        """Test one matching column is selected."""
        assert detect_soft_delete(["id", "deleted_at"]) == ("deleted_at", [])

    def test_no_candidate(self):
        """Test tables without a candidate have no soft-delete column."""
        assert detect_soft_delete(["id", "name"]) == (None, [])

    def test_two_candidates_is_an_error(self):
        """Test ambiguity raises instead of picking the first match."""
        with pytest.raises(AmbiguousSoftDeleteColumn) as exc:
            detect_soft_delete(["is_del", "deleted_at"], table="post")
        assert exc.value.diagnostic.code == DiagnosticCode.AMBIGUOUS_SOFT_DELETE_COLUMN
        assert exc.value.diagnostic.is_error

    def test_override_wins(self):
        """Test an override resolves ambiguity."""
        assert detect_soft_delete(["is_del", "deleted_at"], override="deleted_at")[0] == "deleted_at"

    def test_missing_override_warns(self):
        """Test an override naming no column is ignored with a warning."""
        column, diags = detect_soft_delete(["id"], override="gone")
        assert column is None
        assert diags[0].code == DiagnosticCode.UNKNOWN_SOFT_DELETE_OVERRIDE
        assert "Configured" in diags[0].message
        assert not diags[0].is_error

    def test_custom_candidates(self):
        """Test configured candidate names replace the defaults."""
        assert detect_soft_delete(["removed"], candidates=["removed"])[0] == "removed"
        assert detect_soft_delete(["is_del"], candidates=["removed"])[0] is None


class TestNormalizeDefault:
    """Default literal normalisation."""

    @pytest.mark.parametrize("raw,scalar,expected", [
        (None, ScalarType.TEXT, None),
        ("NULL", ScalarType.TEXT, None),
        ("NULL::character varying", ScalarType.TEXT, None),
        ("'abc'::character varying", ScalarType.TEXT, "abc"),
        ("'it''s'", ScalarType.TEXT, "it's"),
        ("0::smallint", ScalarType.INT16, "0"),
        ("1", ScalarType.BOOL, "true"),
        ("b'0'", ScalarType.BOOL, "false"),
        ("false", ScalarType.BOOL, "false"),
        ("CURRENT_TIMESTAMP", ScalarType.DATETIME_NAIVE, "CURRENT_TIMESTAMP"),
        ("nextval('user_id_seq'::regclass)", ScalarType.INT32, None),
        ("", ScalarType.TEXT, ""),
    ])
    def test_normalize(self, raw, scalar, expected):
        """Test dialect spellings become neutral literals."""
        assert normalize_default(raw, scalar) == expected


class TestBuildTableSpec:
    """End-to-end IR building."""

    def test_bool_column(self, user_table):
        """Test tinyint(1) NOT NULL DEFAULT 1 becomes a non-null bool defaulting to true."""
        spec = build_table_spec(user_table, Dialect.MYSQL).spec
        col = spec.column("is_active")
        assert col.scalar_type == ScalarType.BOOL
        assert col.default == "true"
        assert col.nullable is False

    def test_columns_keep_order(self, user_table):
        """Test column order matches introspection order."""
        spec = build_table_spec(user_table, Dialect.MYSQL).spec
        assert spec.column_names() == [c.name for c in user_table.columns]

    def test_primary_key_and_auto_increment(self, user_table):
        """Test the primary key is auto-increment, not null and has no default."""
        spec = build_table_spec(user_table, Dialect.MYSQL).spec
        pk = spec.column("id")
        assert spec.primary_key == "id"
        assert pk.is_auto_increment
        assert pk.nullable is False
        assert pk.default is None
        assert pk.scalar_type == ScalarType.INT64

    def test_indexes(self, user_table):
        """Test single and composite indexes land on the right columns."""
        spec = build_table_spec(user_table, Dialect.MYSQL).spec
        assert spec.column("email").is_unique
        assert spec.column("email").index_name is None
        assert spec.column("created_at").is_indexed
        assert spec.column("tenant_id").composite_indexes == (CompositeMembership("idx_tenant_nick", 0),)
        assert spec.column("nickname").composite_indexes == (CompositeMembership("idx_tenant_nick", 1),)
        assert not spec.column("id").is_unique

    def test_soft_delete_and_comments(self, user_table):
        """Test the soft-delete column and comments are carried."""
        spec = build_table_spec(user_table, Dialect.MYSQL).spec
        assert spec.soft_delete == "is_del"
        assert spec.comment == "Registered users"
        assert spec.column("email").comment == "Login mail"
        assert spec.column("nickname").comment is None

    def test_defaults_and_source_type(self, user_table):
        """Test quoted defaults are unwrapped and raw types preserved."""
        spec = build_table_spec(user_table, Dialect.MYSQL).spec
        assert spec.column("nickname").default == "anon"
        assert spec.column("nickname").length == 64
        assert spec.column("id").source_type == "bigint unsigned"

    def test_ambiguous_soft_delete_is_fatal(self, ambiguous_table):
        """Test two candidates without override raise."""
        with pytest.raises(AmbiguousSoftDeleteColumn):
            build_table_spec(ambiguous_table, Dialect.MYSQL)

    def test_override_resolves_ambiguity(self, ambiguous_table):
        """Test an override picks the soft-delete column."""
        spec = build_table_spec(ambiguous_table, Dialect.MYSQL, soft_delete_override="deleted_at").spec
        assert spec.soft_delete == "deleted_at"

    def test_missing_primary_key_warns(self):
        """Test tables without a primary key still build, with a warning."""
        table = IntrospectedTable("log", (IntrospectedColumn("line", "text"),))
        result = build_table_spec(table, Dialect.POSTGRES)
        assert result.spec.primary_key is None
        assert [d.code for d in result.diagnostics] == [DiagnosticCode.MISSING_PRIMARY_KEY]

    def test_composite_primary_key_keeps_first(self):
        """Test a composite primary key collapses to its first column."""
        table = IntrospectedTable("link", (
            IntrospectedColumn("a", "int", nullable=False, is_primary_key=True),
            IntrospectedColumn("b", "int", nullable=False, is_primary_key=True),
        ), indexes=(IntrospectedIndex("link_pkey", ("a", "b"), unique=True),))
        result = build_table_spec(table, Dialect.POSTGRES)
        assert result.spec.primary_key == "a"
        assert result.diagnostics[0].code == DiagnosticCode.MISSING_PRIMARY_KEY
        assert result.spec.composite_indexes() == []

    def test_postgres_serial_and_cast_default(self):
        """Test nextval defaults mark auto-increment and casts are stripped."""
        table = IntrospectedTable("item", (
            IntrospectedColumn("id", "integer", nullable=False,
                               default="nextval('item_id_seq'::regclass)", is_primary_key=True),
            IntrospectedColumn("state", "character varying(16)", default="'new'::character varying"),
            IntrospectedColumn("at", "timestamp with time zone", default="now()"),
        ))
        spec = build_table_spec(table, Dialect.POSTGRES).spec
        assert spec.column("id").is_auto_increment
        assert spec.column("id").default is None
        assert spec.column("state").default == "new"
        assert spec.column("state").length == 16
        assert spec.column("at").scalar_type == ScalarType.DATETIME_WITH_ZONE
        assert spec.column("at").default == "now()"

    def test_unconventional_index_name_kept(self):
        """Test index names off the convention survive in index_name."""
        table = IntrospectedTable("user", (
            IntrospectedColumn("id", "int", nullable=False, is_primary_key=True),
            IntrospectedColumn("email", "varchar(100)"),
            IntrospectedColumn("name", "varchar(100)"),
        ), indexes=(
            IntrospectedIndex("email", ("email",), unique=True),
            IntrospectedIndex("ix_name", ("name",)),
        ))
        spec = build_table_spec(table, Dialect.MYSQL).spec
        assert spec.column("email").index_name == "email"
        assert spec.column("name").index_name == "ix_name"

    def test_composite_unique_degrades_with_warning(self):
        """Test a multi-column unique index becomes a plain composite index."""
        table = IntrospectedTable("m", (
            IntrospectedColumn("id", "int", nullable=False, is_primary_key=True),
            IntrospectedColumn("a", "int"),
            IntrospectedColumn("b", "int"),
        ), indexes=(IntrospectedIndex("uq_ab", ("a", "b"), unique=True),))
        result = build_table_spec(table, Dialect.MYSQL)
        assert [i.columns for i in result.spec.composite_indexes()] == [("a", "b")]
        assert DiagnosticCode.MALFORMED_FIELD_ANNOTATION in [d.code for d in result.diagnostics]

    def test_unsupported_type_recorded(self):
        """Test unknown raw types become text with a diagnostic."""
        table = IntrospectedTable("place", (
            IntrospectedColumn("id", "int", nullable=False, is_primary_key=True),
            IntrospectedColumn("shape", "geometry"),
        ))
        result = build_table_spec(table, Dialect.MYSQL)
        assert result.spec.column("shape").scalar_type == ScalarType.TEXT
        assert [d.code for d in result.diagnostics] == [DiagnosticCode.UNSUPPORTED_RAW_TYPE]
