from __future__ import annotations

import csv
from typing import Iterator, TextIO

from dataimport.errors import ConfigurationError, CsvFormatError, OutOfRangeError
from dataimport.infra.sources.csv_utils import CsvControl, isBlankLine


class CsvRowFile:
    """
    Назначение/ответственность:
        Позиционное устройство-курсор над текстовым CSV-потоком:
        seek_to_row / read_current_row / advance / is_at_end.

    Инварианты:
        - содержимое файла целиком в памяти не держится: хранится только текущая
          строка и список смещений (stream.tell()) начала уже встреченных строк;
        - структурно пустые строки пропускаются и не получают номера;
        - неудачный seek_to_row не меняет положение курсора.

    Ограничения:
        - поток должен поддерживать seek/tell (файл, открытый с newline="", или StringIO);
        - потоком владеет только этот объект; параллельное чтение из другого места не поддерживается.
    """

    def __init__(self, stream: TextIO, control: CsvControl | None = None) -> None:
        seekable = getattr(stream, "seekable", None)
        if seekable is None or not seekable():
            raise ConfigurationError("CSV stream must be seekable")
        self._stream = stream
        self._control = control or CsvControl()
        self._offsets: list[int] = []
        self._scanOffset = stream.tell()
        self._scanDone = False
        self._position = 0
        self._row: list[str] | None = self._fetch(0)

    @property
    def control(self) -> CsvControl:
        return self._control

    @property
    def position(self) -> int:
        return self._position

    def is_at_end(self) -> bool:
        return self._row is None

    def read_current_row(self) -> list[str] | None:
        if self._row is None:
            return None
        return list(self._row)

    def advance(self) -> None:
        """
        Назначение:
            Переход к следующей строке. На исчерпанном курсоре ничего не делает.
        """
        if self._row is None:
            return
        self._position += 1
        self._row = self._fetch(self._position)

    def seek_to_row(self, rowNumber: int) -> None:
        """
        Назначение:
            Строгое позиционирование на строку rowNumber.

        Поведение:
            - rowNumber вне [0, rows) -> OutOfRangeError, курсор остаётся на месте.
        """
        if rowNumber < 0:
            raise OutOfRangeError(f"Row {rowNumber} is out of range", row=rowNumber)
        row = self._fetch(rowNumber)
        if row is None:
            raise OutOfRangeError(f"Row {rowNumber} is out of range", row=rowNumber)
        self._position = rowNumber
        self._row = row

    def reset_to(self, rowNumber: int) -> None:
        """
        Назначение:
            Мягкое позиционирование (для rewind): позиция за концом даёт исчерпанный курсор.
        """
        if rowNumber < 0:
            raise OutOfRangeError(f"Row {rowNumber} is out of range", row=rowNumber)
        self._position = rowNumber
        self._row = self._fetch(rowNumber)

    # Internal helpers
    def _fetch(self, rowNumber: int) -> list[str] | None:
        if rowNumber < len(self._offsets):
            row, _start, _end = self._readRowFrom(self._offsets[rowNumber])
            return row

        row = None
        while len(self._offsets) <= rowNumber and not self._scanDone:
            row, start, end = self._readRowFrom(self._scanOffset)
            if row is None:
                self._scanDone = True
                return None
            self._offsets.append(start)
            self._scanOffset = end
        if len(self._offsets) > rowNumber:
            return row
        return None

    def _readRowFrom(self, offset: int) -> tuple[list[str] | None, int, int]:
        self._stream.seek(offset)
        consumed: list[str] = []
        reader = csv.reader(self._iterLines(consumed), **self._control.reader_kwargs())
        while True:
            start = self._stream.tell()
            consumed.clear()
            try:
                row = next(reader)
            except StopIteration:
                return None, start, start
            except csv.Error as exc:
                raise CsvFormatError(f"Malformed CSV near offset {start}: {exc}", offset=start) from exc
            if isBlankLine("".join(consumed)):
                continue
            return row, start, self._stream.tell()

    def _iterLines(self, consumed: list[str]) -> Iterator[str]:
        # readline, а не итерация по файлу: иначе tell() недоступен
        while True:
            line = self._stream.readline()
            if not line:
                return
            consumed.append(line)
            yield line
