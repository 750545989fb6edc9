import io

import pytest

from dataimport.errors import ConfigurationError, OutOfRangeError
from dataimport.infra.sources.csv_utils import CsvControl, isBlankLine, parseNull
from dataimport.infra.sources.row_file import CsvRowFile


def make_file(text: str, control: CsvControl | None = None) -> CsvRowFile:
    return CsvRowFile(io.StringIO(text, newline=""), control)


def test_row_file_walks_rows_in_order():
    rows = make_file("a;1\n\nb;2\nc;3\n")
    seen = []
    while not rows.is_at_end():
        seen.append((rows.position, rows.read_current_row()))
        rows.advance()

    assert seen == [(0, ["a", "1"]), (1, ["b", "2"]), (2, ["c", "3"])]
    assert rows.position == 3
    assert rows.read_current_row() is None


def test_advance_at_end_does_nothing():
    rows = make_file("a\n")
    rows.advance()
    rows.advance()

    assert rows.is_at_end()
    assert rows.position == 1


def test_seek_to_row_is_strict():
    rows = make_file("a\nb\n")
    rows.seek_to_row(1)

    with pytest.raises(OutOfRangeError):
        rows.seek_to_row(2)

    assert rows.position == 1
    assert rows.read_current_row() == ["b"]


def test_reset_to_past_end_exhausts_cursor():
    rows = make_file("a\nb\n")
    rows.reset_to(5)

    assert rows.is_at_end()
    assert rows.position == 5

    rows.reset_to(0)
    assert rows.read_current_row() == ["a"]


def test_read_current_row_returns_copy():
    rows = make_file("a;b\n")
    row = rows.read_current_row()
    row.append("c")

    assert rows.read_current_row() == ["a", "b"]


def test_default_control_characters():
    control = CsvControl()
    assert (control.delimiter, control.enclosure, control.escape) == (";", '"', "\\")


def test_control_characters_must_be_distinct():
    with pytest.raises(ConfigurationError):
        CsvControl(delimiter=";", enclosure=";")


def test_blank_line_detection():
    assert isBlankLine("\n")
    assert isBlankLine("  \r\n")
    assert not isBlankLine('""\n')
    assert not isBlankLine(";\n")


def test_quoted_empty_line_keeps_its_row_number():
    rows = make_file('a\n""\n\nb\n')
    rows.seek_to_row(2)

    assert rows.read_current_row() == ["b"]
    rows.seek_to_row(1)
    assert rows.read_current_row() == [""]


def test_parse_null():
    assert parseNull(None) is None
    assert parseNull("  ") is None
    assert parseNull("NULL") is None
    assert parseNull(" x ") == "x"
