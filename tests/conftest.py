"""Pytest configuration and fixtures."""
import json
import sqlite3
from pathlib import Path

import pytest

from schemabridge.introspection.contract import (
    IntrospectedColumn,
    IntrospectedIndex,
    IntrospectedTable,
)


@pytest.fixture
def user_table():
    """MySQL-flavoured description of a typical user table."""
    return IntrospectedTable(
        name="user",
        comment="Registered users",
        columns=(
            IntrospectedColumn("id", "bigint unsigned", nullable=False,
                               extra="auto_increment", is_primary_key=True),
            IntrospectedColumn("email", "varchar(255)", nullable=False, comment="Login mail"),
            IntrospectedColumn("nickname", "varchar(64)", default="'anon'"),
            IntrospectedColumn("is_active", "tinyint(1)", nullable=False, default="1"),
            IntrospectedColumn("tenant_id", "int", nullable=False),
            IntrospectedColumn("created_at", "datetime", nullable=False,
                               default="CURRENT_TIMESTAMP"),
            IntrospectedColumn("is_del", "tinyint(1)", nullable=False, default="0"),
        ),
        indexes=(
            IntrospectedIndex("PRIMARY", ("id",), unique=True),
            IntrospectedIndex("uk_user_email", ("email",), unique=True),
            IntrospectedIndex("idx_user_created_at", ("created_at",)),
            IntrospectedIndex("idx_tenant_nick", ("tenant_id", "nickname")),
        ),
    )


@pytest.fixture
def ambiguous_table():
    """Table carrying two soft-delete candidates and no override."""
    return IntrospectedTable(
        name="post",
        columns=(
            IntrospectedColumn("id", "int", nullable=False, is_primary_key=True),
            IntrospectedColumn("is_del", "tinyint(1)", nullable=False, default="0"),
            IntrospectedColumn("deleted_at", "datetime"),
        ),
    )


@pytest.fixture
def sqlite_db(tmp_path):
    """Temporary SQLite database with two tables."""
    db_path = tmp_path / "app.db"
    conn = sqlite3.connect(db_path)
    conn.executescript(
        """
        CREATE TABLE account (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email VARCHAR(120) NOT NULL UNIQUE,
            display_name TEXT DEFAULT 'guest',
            balance REAL NOT NULL DEFAULT 0,
            deleted_at DATETIME
        );
        CREATE INDEX idx_account_display_name ON account (display_name);

        CREATE TABLE tag (
            id INTEGER PRIMARY KEY,
            label TEXT NOT NULL,
            scope TEXT NOT NULL
        );
        CREATE INDEX idx_tag_scope_label ON tag (scope, label);
        """
    )
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def snapshot_file(tmp_path, user_table):
    """JSON snapshot of the user table plus a table that fails on soft delete."""
    document = {
        "dialect": "mysql",
        "tables": [
            {
                "name": "user",
                "comment": user_table.comment,
                "columns": [
                    {
                        "name": c.name,
                        "type": c.raw_type,
                        "nullable": c.nullable,
                        "default": c.default,
                        "extra": c.extra,
                        "comment": c.comment,
                        "primary_key": c.is_primary_key,
                    }
                    for c in user_table.columns
                ],
                "indexes": [
                    {"name": i.name, "columns": list(i.columns), "unique": i.unique}
                    for i in user_table.indexes
                ],
            },
            {
                "name": "post",
                "columns": [
                    {"name": "id", "type": "int", "nullable": False, "primary_key": True},
                    {"name": "is_del", "type": "tinyint(1)", "nullable": False, "default": "0"},
                    {"name": "deleted_at", "type": "datetime"},
                ],
                "indexes": [],
            },
        ],
    }
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def write_model(tmp_path):
    """Write model source to a file and return its path."""

    def _write(source: str, name: str = "models.py") -> Path:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write
