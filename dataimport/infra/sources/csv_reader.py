from __future__ import annotations

from enum import Enum
from typing import Iterator, Sequence, TextIO

from dataimport.domain.records import NamedRecord, PositionalRecord, Record
from dataimport.errors import CsvFormatError, NotFoundError, OutOfRangeError
from dataimport.infra.sources.csv_utils import (
    DEFAULT_DELIMITER,
    DEFAULT_ENCLOSURE,
    DEFAULT_ESCAPE,
    CsvControl,
)
from dataimport.infra.sources.row_file import CsvRowFile


class MismatchPolicy(str, Enum):
    """
    Назначение:
        Что делать со строкой, число полей которой не совпало с заголовком.
    """

    SKIP = "skip"
    ERROR = "error"


class CsvRecordSource:
    """
    Назначение/ответственность:
        Читает CSV построчно, с минимальным расходом памяти, и отдаёт записи:
        PositionalRecord без заголовка или NamedRecord при заданной строке заголовка.
        Поддерживает произвольный доступ (seek/get_row).

    Курсор:
        - Positioned: под курсором есть строка (valid() == True);
        - Exhausted: курсор за последней строкой; current() -> None,
          next() ничего не делает, key() равен числу строк.

    Ограничения:
        - один потребитель на источник; параллельный обход из двух мест не поддерживается,
          для параллельного чтения открывайте отдельные потоки;
        - закрывает поток тот, кто его открыл.
    """

    def __init__(
        self,
        stream: TextIO,
        delimiter: str = DEFAULT_DELIMITER,
        enclosure: str = DEFAULT_ENCLOSURE,
        escape: str = DEFAULT_ESCAPE,
        on_mismatch: MismatchPolicy | str = MismatchPolicy.SKIP,
    ) -> None:
        self.header_row_number: int | None = None
        self.column_headers: tuple[str, ...] | None = None
        self.on_mismatch = MismatchPolicy(on_mismatch)
        self.set_stream(stream, delimiter, enclosure, escape)

    def set_stream(
        self,
        stream: TextIO,
        delimiter: str = DEFAULT_DELIMITER,
        enclosure: str = DEFAULT_ENCLOSURE,
        escape: str = DEFAULT_ESCAPE,
    ) -> "CsvRecordSource":
        """
        Назначение:
            Привязывает источник к потоку и управляющим символам.

        Поведение:
            - каждый символ не из одного знака -> ConfigurationError;
            - пустые строки потока пропускаются.
        """
        self.file = CsvRowFile(stream, CsvControl(delimiter, enclosure, escape))
        return self

    def current(self) -> Record | None:
        """
        Назначение:
            Запись под курсором без сдвига курсора.

        Выходные данные:
            - None, если курсор исчерпан;
            - PositionalRecord, если заголовок не задан;
            - NamedRecord, если заголовок задан и число полей совпало;
            - None при несовпадении числа полей (политика SKIP),
              CsvFormatError при политике ERROR.
        """
        line = self.file.read_current_row()
        if line is None:
            return None

        if not self.column_headers:
            return PositionalRecord.of(line)

        if len(line) == len(self.column_headers):
            return NamedRecord.from_pairs(self.column_headers, line)

        if self.on_mismatch is MismatchPolicy.ERROR:
            raise CsvFormatError(
                f"Invalid column count at row {self.key()}: expected {len(self.column_headers)}, got {len(line)}",
                row=self.key(),
                expected=len(self.column_headers),
                got=len(line),
            )
        return None

    def next(self) -> None:
        self.file.advance()

    def valid(self) -> bool:
        return not self.file.is_at_end()

    def key(self) -> int:
        return self.file.position

    def seek(self, pointer: int) -> None:
        self.file.seek_to_row(pointer)

    def rewind(self) -> None:
        """
        Назначение:
            Возврат курсора в начало данных.

        Поведение:
            Если задан номер строки заголовка, курсор ставится сразу под ней,
            чтобы при обходе заголовок не попадал в данные.
        """
        self.file.reset_to(self._start_row())

    def get_row(self, number: int) -> Record | None:
        self.seek(number)
        return self.current()

    def get_column_headers(self) -> tuple[str, ...] | None:
        return self.column_headers

    def get_fields(self) -> tuple[str, ...] | None:
        return self.column_headers

    def set_column_headers(self, columnHeaders: Sequence[str]) -> "CsvRecordSource":
        self.column_headers = self._check_headers(columnHeaders)
        return self

    def set_header_row_number(self, rowNumber: int) -> "CsvRecordSource":
        """
        Назначение:
            Запоминает номер строки заголовка и сразу читает её.

        Поведение:
            - строки нет -> NotFoundError, заголовок и курсор не меняются;
            - после успеха курсор стоит на строке заголовка.
        """
        headers = self._read_header_row(rowNumber)
        self.header_row_number = rowNumber
        self.column_headers = headers
        return self

    def count(self) -> int:
        return self.count_rows()

    def count_rows(self) -> int:
        """
        Назначение:
            Число строк данных от начала обхода (с учётом заголовка) до конца.

        Поведение:
            Полный проход по источнику: O(n), для больших файлов дорого.
            Положение курсора (включая исчерпанное) восстанавливается.
        """
        saved = self.file.position
        rows = 0
        try:
            self.file.reset_to(self._start_row())
            while not self.file.is_at_end():
                rows += 1
                self.file.advance()
        finally:
            self.file.reset_to(saved)
        return rows

    def items(self) -> Iterator[tuple[int, Record | None]]:
        self.rewind()
        while self.valid():
            yield self.key(), self.current()
            self.next()

    def __iter__(self) -> Iterator[Record | None]:
        for _key, record in self.items():
            yield record

    # Internal helpers
    def _start_row(self) -> int:
        if self.header_row_number is None:
            return 0
        return self.header_row_number + 1

    def _read_header_row(self, rowNumber: int) -> tuple[str, ...]:
        try:
            self.file.seek_to_row(rowNumber)
        except OutOfRangeError as exc:
            raise NotFoundError(f"Header row {rowNumber} not found", row=rowNumber) from exc
        line = self.file.read_current_row() or []
        return self._check_headers(line)

    def _check_headers(self, headers: Sequence[str]) -> tuple[str, ...]:
        names = tuple(headers)
        seen: set[str] = set()
        duplicates: set[str] = set()
        for name in names:
            if name in seen:
                duplicates.add(name)
            seen.add(name)
        if duplicates:
            raise CsvFormatError(
                f"Duplicate column headers: {', '.join(sorted(duplicates))}",
                duplicates=sorted(duplicates),
            )
        return names
