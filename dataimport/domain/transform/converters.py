from __future__ import annotations

from typing import Any, Callable, Iterable

from dataimport.domain.ports.converters import RecordConverter
from dataimport.domain.records import NamedRecord, PositionalRecord, Record
from dataimport.errors import InvalidConverterError
from dataimport.infra.sources.csv_utils import parseNull


class CallbackConverter:
    """
    Назначение/ответственность:
        Конвертер записей поверх произвольной функции.

    Поведение:
        - невызываемый callback -> InvalidConverterError при создании;
        - ошибки callback пробрасываются как есть.
    """

    def __init__(self, callback: Callable[[Record], Record | None]) -> None:
        if not callable(callback):
            raise InvalidConverterError(f"{callback!r} must be callable")
        self.callback = callback

    def convert(self, record: Record) -> Record | None:
        return self.callback(record)


class NullValueConverter:
    """
    Назначение:
        Тримит значения и превращает пустые/NULL в None.
    """

    def convert(self, record: Record) -> Record:
        if isinstance(record, NamedRecord):
            return NamedRecord({name: parseNull(value) for name, value in record.items()})
        return PositionalRecord.of([parseNull(value) for value in record])


class ConverterChain:
    """
    Назначение/ответственность:
        Последовательное применение конвертеров в заданном порядке.
        Если конвертер вернул None, цепочка останавливается и возвращает None.
    """

    def __init__(self, converters: Iterable[RecordConverter | Callable[[Record], Any]] = ()) -> None:
        self.converters: list[RecordConverter] = []
        for converter in converters:
            self.add(converter)

    def add(self, converter: RecordConverter | Callable[[Record], Any]) -> "ConverterChain":
        if hasattr(converter, "convert"):
            self.converters.append(converter)  # type: ignore[arg-type]
        else:
            self.converters.append(CallbackConverter(converter))
        return self

    def __len__(self) -> int:
        return len(self.converters)

    def convert(self, record: Record) -> Record | None:
        current: Record | None = record
        for converter in self.converters:
            current = converter.convert(current)
            if current is None:
                return None
        return current
