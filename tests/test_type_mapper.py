"""Tests for raw type mapping, DDL type rendering and default literals."""

import pytest

from schemabridge.diagnostics import DiagnosticCode
from schemabridge.schema.spec import ColumnSpec
from schemabridge.schema.type_mapper import (
    BOOL_NOTE,
    ddl_type,
    format_default,
    is_function_default,
    map_raw_type,
    parse_bool_literal,
)
from schemabridge.schema.types import Dialect, ScalarType


class TestForwardMapping:
    """Raw dialect tokens to ScalarType."""

    @pytest.mark.parametrize("raw,expected", [
        ("tinyint(1)", ScalarType.BOOL),
        ("TINYINT(1)", ScalarType.BOOL),
        ("bit(1)", ScalarType.BOOL),
        ("boolean", ScalarType.BOOL),
        ("tinyint(4)", ScalarType.INT16),
        ("tinyint", ScalarType.INT16),
        ("smallint", ScalarType.INT16),
        ("int(11) unsigned", ScalarType.INT32),
        ("mediumint", ScalarType.INT32),
        ("bigint(20) unsigned zerofill", ScalarType.INT64),
        ("double precision", ScalarType.FLOAT64),
        ("decimal(10,2)", ScalarType.FLOAT64),
        ("timestamp with time zone", ScalarType.DATETIME_WITH_ZONE),
        ("timestamptz", ScalarType.DATETIME_WITH_ZONE),
        ("timestamp", ScalarType.DATETIME_NAIVE),
        ("datetime(6)", ScalarType.DATETIME_NAIVE),
        ("date", ScalarType.DATE),
        ("jsonb", ScalarType.JSON),
        ("longblob", ScalarType.BINARY),
        ("bytea", ScalarType.BINARY),
        ("uuid", ScalarType.UUID),
        ("enum('a','b')", ScalarType.TEXT),
    ])
    def test_known_tokens(self, raw, expected):
        """Test each known token maps to its scalar without diagnostics."""
        mapping = map_raw_type(raw, Dialect.MYSQL)
        assert mapping.scalar_type == expected
        assert mapping.diagnostic is None

    def test_varchar_keeps_length(self):
        """Test bounded text carries its length."""
        mapping = map_raw_type("character varying(80)", Dialect.POSTGRES)
        assert mapping.scalar_type == ScalarType.TEXT
        assert mapping.length == 80

    def test_char_has_no_length(self):
        """Test fixed char maps to unbounded text."""
        assert map_raw_type("char(36)", Dialect.MYSQL).length is None

    def test_serial_sets_auto_increment(self):
        """Test serial tokens imply auto-increment and keep their width."""
        mapping = map_raw_type("smallserial", Dialect.POSTGRES)
        assert mapping.scalar_type == ScalarType.INT16
        assert mapping.auto_increment is True

    def test_sqlite_integer_is_64_bit(self):
        """Test SQLite INTEGER widens to Int64."""
        assert map_raw_type("INTEGER", Dialect.SQLITE).scalar_type == ScalarType.INT64
        assert map_raw_type("integer", Dialect.POSTGRES).scalar_type == ScalarType.INT32

    def test_unknown_token_degrades_to_text(self):
        """Test unsupported types become text with a warning."""
        mapping = map_raw_type("geometry", Dialect.MYSQL, table="place", column="shape")
        assert mapping.scalar_type == ScalarType.TEXT
        assert mapping.diagnostic.code == DiagnosticCode.UNSUPPORTED_RAW_TYPE
        assert mapping.diagnostic.location() == "place.shape"
        assert not mapping.diagnostic.is_error


class TestReverseMapping:
    """ScalarType to DDL type tokens."""

    def test_every_pair_has_a_token(self):
        """Test the reverse table covers every scalar and dialect."""
        for dialect in Dialect:
            for scalar in ScalarType:
                assert ddl_type(ColumnSpec("c", scalar), dialect).token

    def test_bool_note_only_without_native_bool(self):
        """Test non-native bools carry the 1/0 note."""
        col = ColumnSpec("flag", ScalarType.BOOL)
        assert ddl_type(col, Dialect.MYSQL).note == BOOL_NOTE
        assert ddl_type(col, Dialect.SQLITE).note == BOOL_NOTE
        assert ddl_type(col, Dialect.POSTGRES).note is None

    def test_bounded_text(self):
        """Test text with a length renders as VARCHAR(n)."""
        col = ColumnSpec("name", ScalarType.TEXT, length=32)
        assert ddl_type(col, Dialect.POSTGRES).token == "VARCHAR(32)"

    def test_auto_increment_spellings(self):
        """Test each dialect's auto-increment form."""
        col = ColumnSpec("id", ScalarType.INT64, is_primary_key=True, is_auto_increment=True)
        assert ddl_type(col, Dialect.MYSQL).token == "BIGINT AUTO_INCREMENT"
        assert ddl_type(col, Dialect.POSTGRES).token == "BIGSERIAL"
        sqlite = ddl_type(col, Dialect.SQLITE)
        assert sqlite.token == "INTEGER PRIMARY KEY AUTOINCREMENT"
        assert sqlite.inline_primary_key is True

    def test_sqlite_ignores_non_pk_auto_increment(self):
        """Test SQLite only autoincrements the primary key."""
        col = ColumnSpec("seq", ScalarType.INT32, is_auto_increment=True)
        assert ddl_type(col, Dialect.SQLITE).token == "INTEGER"


class TestDefaults:
    """Default literal rendering."""

    def test_bool_literals(self):
        """Test bool defaults use the policy literal."""
        col = ColumnSpec("flag", ScalarType.BOOL, default="true")
        assert format_default(col, Dialect.POSTGRES) == "TRUE"
        assert format_default(col, Dialect.MYSQL) == "1"

    def test_function_defaults_are_verbatim(self):
        """Test CURRENT_TIMESTAMP and calls are not quoted."""
        col = ColumnSpec("at", ScalarType.DATETIME_NAIVE, default="CURRENT_TIMESTAMP")
        assert format_default(col, Dialect.MYSQL) == "CURRENT_TIMESTAMP"
        assert is_function_default("now()")
        assert not is_function_default("hello")

    def test_numbers_unquoted_for_numeric_columns(self):
        """Test numeric defaults on numeric columns stay bare."""
        assert format_default(ColumnSpec("n", ScalarType.INT32, default="5"), Dialect.MYSQL) == "5"
        assert format_default(ColumnSpec("s", ScalarType.TEXT, default="5"), Dialect.MYSQL) == "'5'"

    def test_strings_are_quoted_and_escaped(self):
        """Test embedded quotes are doubled."""
        col = ColumnSpec("s", ScalarType.TEXT, default="it's")
        assert format_default(col, Dialect.SQLITE) == "'it''s'"

    def test_empty_string(self):
        """Test an empty default renders as ''."""
        assert format_default(ColumnSpec("s", ScalarType.TEXT, default=""), Dialect.MYSQL) == "''"

    def test_auto_increment_has_no_default(self):
        """Test auto-increment columns never get DEFAULT."""
        col = ColumnSpec("id", ScalarType.INT32, default="0", is_auto_increment=True)
        assert format_default(col, Dialect.MYSQL) is None

    @pytest.mark.parametrize("raw,expected", [
        ("1", True), ("0", False), ("b'1'", True), ("b'0'", False),
        ("true", True), ("FALSE", False), ("maybe", None),
    ])
    def test_parse_bool_literal(self, raw, expected):
        """Test accepted bool spellings."""
        assert parse_bool_literal(raw) is expected
