from pathlib import Path

import pytest

from dataimport.domain.records import NamedRecord, PositionalRecord
from dataimport.errors import ConfigurationError, MappingError
from dataimport.infra.db.sqlite_engine import MEMORY_DB, openDb
from dataimport.writers import AbstractWriter, SqliteTableWriter


def fetch_rows(conn, table):
    return [tuple(row) for row in conn.execute(f'SELECT * FROM "{table}" ORDER BY rowid')]


def test_writer_creates_table_and_commits(tmp_path: Path):
    db_path = tmp_path / "db" / "import.sqlite3"
    conn = openDb(str(db_path))
    try:
        writer = SqliteTableWriter(conn, "people", ["id", "full name"])
        writer.prepare()
        writer.write(NamedRecord({"id": "1", "full name": "Alice"}))
        writer.write(PositionalRecord(("2", "Bob")))
        writer.finish()
    finally:
        conn.close()

    conn = openDb(str(db_path))
    try:
        assert fetch_rows(conn, "people") == [("1", "Alice"), ("2", "Bob")]
    finally:
        conn.close()


def test_missing_fields_are_stored_as_null():
    conn = openDb(MEMORY_DB)
    writer = SqliteTableWriter(conn, "people", ["id", "name"])
    writer.prepare()
    writer.write(NamedRecord({"id": "1"}))
    writer.finish()

    assert fetch_rows(conn, "people") == [("1", None)]
    conn.close()


def test_unknown_field_raises_mapping_error_and_keeps_staged_rows():
    conn = openDb(MEMORY_DB)
    writer = SqliteTableWriter(conn, "people", ["id", "name"])
    writer.prepare()
    writer.write(NamedRecord({"id": "1", "name": "Alice"}))

    with pytest.raises(MappingError) as exc_info:
        writer.write(NamedRecord({"id": "2", "nickname": "Bobby"}))

    writer.finish()

    assert exc_info.value.details["fields"] == ["nickname"]
    assert writer.written == 1
    assert fetch_rows(conn, "people") == [("1", "Alice")]
    conn.close()


def test_positional_arity_mismatch_raises_mapping_error():
    conn = openDb(MEMORY_DB)
    writer = SqliteTableWriter(conn, "people", ["id", "name"])
    writer.prepare()

    with pytest.raises(MappingError):
        writer.write(PositionalRecord(("1",)))

    writer.finish()
    conn.close()


def test_zero_writes_still_creates_table():
    conn = openDb(MEMORY_DB)
    writer = SqliteTableWriter(conn, "people", ["id"])
    writer.prepare()
    writer.finish()

    assert fetch_rows(conn, "people") == []
    conn.close()


@pytest.mark.parametrize(
    "table, columns",
    [
        ("people; DROP TABLE x", ["id"]),
        ("", ["id"]),
        ("people", []),
        ("people", ["id", "id"]),
        ("people", ["id", ""]),
    ],
)
def test_invalid_table_definition(table, columns):
    conn = openDb(MEMORY_DB)
    try:
        with pytest.raises(ConfigurationError):
            SqliteTableWriter(conn, table, columns)
    finally:
        conn.close()


def test_abstract_writer_defaults_are_noop():
    class ListWriter(AbstractWriter):
        def __init__(self):
            self.items = []

        def write(self, record):
            self.items.append(record)

    writer = ListWriter()
    assert writer.prepare() is None
    writer.write(PositionalRecord(("a",)))
    assert writer.finish() is None
    assert writer.items == [PositionalRecord(("a",))]


def test_abstract_writer_requires_write():
    with pytest.raises(TypeError):
        AbstractWriter()
