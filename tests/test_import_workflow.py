import io
import logging

import pytest

from dataimport.domain.records import NamedRecord
from dataimport.domain.transform import CallbackConverter
from dataimport.errors import MappingError
from dataimport.infra.db.sqlite_engine import MEMORY_DB, openDb
from dataimport.infra.sources.csv_reader import CsvRecordSource
from dataimport.usecases.import_usecase import ImportWorkflow
from dataimport.writers import MemoryWriter, SqliteTableWriter

# 5 строк: заголовок + 4 строки данных, строка 3 битая
FIVE_ROWS = "id;name\n1;Alice\n2;Bob\n3\n4;Dan\n"


def make_source(text: str) -> CsvRecordSource:
    source = CsvRecordSource(io.StringIO(text, newline=""))
    source.set_header_row_number(0)
    return source


def test_end_to_end_skips_malformed_row():
    writer = MemoryWriter()
    workflow = ImportWorkflow(make_source(FIVE_ROWS), writer, converters=[CallbackConverter(lambda record: record)])

    result = workflow.process()

    assert writer.prepare_calls == 1
    assert writer.finish_calls == 1
    assert writer.records == [
        NamedRecord({"id": "1", "name": "Alice"}),
        NamedRecord({"id": "2", "name": "Bob"}),
        NamedRecord({"id": "4", "name": "Dan"}),
    ]
    assert result.rows_total == 4
    assert result.written == 3
    assert result.skipped == 1
    assert result.skipped_keys == [3]
    assert result.failed == 0


def test_skipped_rows_are_logged(caplog):
    logger = logging.getLogger("dataimport.test.workflow")
    with caplog.at_level(logging.WARNING, logger="dataimport.test.workflow"):
        ImportWorkflow(make_source(FIVE_ROWS), MemoryWriter(), logger=logger, run_id="run-1").process()

    skipped = [record for record in caplog.records if "skipped" in record.getMessage()]
    assert [(record.row, record.runId, record.component) for record in skipped] == [(3, "run-1", "import")]


def test_empty_source_still_prepares_and_finishes():
    writer = MemoryWriter()
    source = CsvRecordSource(io.StringIO("id;name\n", newline=""))
    source.set_header_row_number(0)

    result = ImportWorkflow(source, writer).process()

    assert (writer.prepare_calls, writer.finish_calls) == (1, 1)
    assert result.rows_total == 0
    assert writer.records == []


def test_converter_error_is_recorded_and_import_continues():
    def fail_on_bob(record):
        if record["name"] == "Bob":
            raise ValueError("Bob is not allowed")
        return record

    writer = MemoryWriter()
    result = ImportWorkflow(make_source(FIVE_ROWS), writer, converters=[fail_on_bob]).process()

    assert result.written == 2
    assert result.failed == 1
    assert result.failures[0].key == 2
    assert result.failures[0].code == "UNEXPECTED_ERROR"
    assert "Bob is not allowed" in result.failures[0].message
    assert writer.finish_calls == 1


def test_stop_on_error_propagates_unchanged_and_finishes():
    class Boom(Exception):
        pass

    def explode(record):
        raise Boom("stop here")

    writer = MemoryWriter()
    workflow = ImportWorkflow(make_source(FIVE_ROWS), writer, converters=[explode], stop_on_error=True)

    with pytest.raises(Boom):
        workflow.process()

    assert writer.prepare_calls == 1
    assert writer.finish_calls == 1


def test_converter_returning_none_skips_row():
    writer = MemoryWriter()
    workflow = ImportWorkflow(make_source(FIVE_ROWS), writer)
    workflow.add_converter(lambda record: None if record["id"] == "1" else record)

    result = workflow.process()

    assert result.written == 2
    assert result.skipped == 2
    assert result.skipped_keys == [1, 3]


def test_mapping_errors_with_sqlite_writer_commit_partial_batch():
    conn = openDb(MEMORY_DB)
    writer = SqliteTableWriter(conn, "people", ["id", "name"])

    def rename_dan(record):
        if record["name"] == "Dan":
            return NamedRecord({"id": record["id"], "alias": "Dan"})
        return record

    result = ImportWorkflow(make_source(FIVE_ROWS), writer, converters=[rename_dan]).process()

    assert result.written == 2
    assert result.failed == 1
    assert result.failures[0].code == MappingError("x").code
    rows = [tuple(row) for row in conn.execute("SELECT id, name FROM people ORDER BY rowid")]
    assert rows == [("1", "Alice"), ("2", "Bob")]
    conn.close()
