from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from dataimport.domain.error_codes import ErrorCode
from dataimport.domain.ports.converters import RecordConverter
from dataimport.domain.ports.sinks import RecordWriter
from dataimport.domain.ports.sources import RecordReader
from dataimport.domain.records import Record
from dataimport.domain.transform.converters import ConverterChain
from dataimport.loggingSetup import logEvent


@dataclass
class RowFailure:
    """
    Назначение:
        Строка, на которой упал конвертер или приёмник.
    """
    key: int
    code: str
    message: str


@dataclass
class ImportResult:
    """
    Назначение:
        Итог прогона reader -> converters -> writer.

    Поля:
        rows_total: все позиции источника (включая пропущенные)
        written: успешно переданные в writer.write
        skipped: строки без записи (несовпадение колонок или отфильтрованы конвертером)
        failed: строки с ошибкой конвертера/приёмника
    """
    rows_total: int = 0
    written: int = 0
    skipped: int = 0
    failed: int = 0
    skipped_keys: list[int] = field(default_factory=list)
    failures: list[RowFailure] = field(default_factory=list)


class ImportWorkflow:
    """
    Назначение/ответственность:
        Драйвер импорта: prepare -> (current -> convert -> write)* -> finish.

    Поведение:
        - writer.prepare() и writer.finish() вызываются ровно по одному разу,
          finish() - даже если write/convert упал;
        - отсутствующая запись (None) - не ошибка: строка считается пропущенной;
        - stop_on_error=True: ошибка конвертера/приёмника пробрасывается без обёртки;
          иначе строка учитывается как failed и обход продолжается.
    """

    def __init__(
        self,
        reader: RecordReader,
        writer: RecordWriter,
        converters: Iterable[RecordConverter | Callable[[Record], Any]] = (),
        stop_on_error: bool = False,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ) -> None:
        self.reader = reader
        self.writer = writer
        self.converters = ConverterChain(converters)
        self.stop_on_error = stop_on_error
        self.logger = logger or logging.getLogger(__name__)
        self.run_id = run_id

    def add_converter(self, converter: RecordConverter | Callable[[Record], Any]) -> "ImportWorkflow":
        self.converters.add(converter)
        return self

    def process(self) -> ImportResult:
        result = ImportResult()
        self.writer.prepare()
        try:
            for key, record in self.reader.items():
                result.rows_total += 1
                if record is None:
                    self._skip(result, key, "column count does not match header")
                    continue
                try:
                    converted = self.converters.convert(record)
                    if converted is None:
                        self._skip(result, key, "filtered by converter")
                        continue
                    self.writer.write(converted)
                except Exception as exc:
                    if self.stop_on_error:
                        logEvent(self.logger, logging.ERROR, self.run_id, "import", f"Row {key} failed, stopping: {exc}", row=key)
                        raise
                    self._fail(result, key, exc)
                    continue
                result.written += 1
        finally:
            self.writer.finish()

        logEvent(
            self.logger,
            logging.INFO,
            self.run_id,
            "import",
            f"import done rows_total={result.rows_total} written={result.written} "
            f"skipped={result.skipped} failed={result.failed}",
        )
        return result

    def _skip(self, result: ImportResult, key: int, reason: str) -> None:
        result.skipped += 1
        result.skipped_keys.append(key)
        logEvent(self.logger, logging.WARNING, self.run_id, "import", f"Row {key} skipped: {reason}", row=key)

    def _fail(self, result: ImportResult, key: int, exc: Exception) -> None:
        code = ErrorCode.from_exception(exc).value
        result.failed += 1
        result.failures.append(RowFailure(key=key, code=code, message=str(exc)))
        logEvent(self.logger, logging.ERROR, self.run_id, "import", f"Row {key} failed code={code}: {exc}", row=key)
