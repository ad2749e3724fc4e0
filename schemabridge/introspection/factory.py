"""Pick an introspector for a database URL or snapshot file."""

from pathlib import Path

from schemabridge.diagnostics import IntrospectionUnavailable
from schemabridge.introspection.contract import Introspector
from schemabridge.introspection.snapshot import SnapshotIntrospector
from schemabridge.introspection.sqlite import SQLiteIntrospector
from schemabridge.schema.types import Dialect


def open_introspector(
    database_url: str | None = None,
    snapshot: Path | None = None,
    dialect: Dialect | None = None,
) -> Introspector:
    """Return the introspector for exactly one of a URL or a snapshot path.

    MySQL and Postgres are only reachable through snapshots; a network URL
    for either raises IntrospectionUnavailable.
    """
    if bool(database_url) == bool(snapshot):
        raise IntrospectionUnavailable("Provide exactly one of a database URL or a snapshot")

    if snapshot:
        return SnapshotIntrospector.from_file(snapshot, dialect)

    url_dialect = Dialect.from_url(database_url)
    if url_dialect != Dialect.SQLITE:
        raise IntrospectionUnavailable(
            f"Live {url_dialect.value} introspection is not available; "
            "capture a JSON snapshot and pass --snapshot"
        )
    return SQLiteIntrospector.from_url(database_url)
