from __future__ import annotations

from typing import Protocol

from dataimport.domain.records import Record


class RecordWriter(Protocol):
    """
    Назначение/ответственность:
        Приёмник записей с двухфазным жизненным циклом вокруг пачки записей.
    """

    def prepare(self) -> None:
        """
        Контракт:
            Вызывается ровно один раз до первой записи (в том числе при пустом источнике).
        """
        ...

    def write(self, record: Record) -> None:
        """
        Контракт:
            Сохраняет одну запись; MappingError, если запись не ложится на схему приёмника.
        """
        ...

    def finish(self) -> None:
        """
        Контракт:
            Вызывается ровно один раз после последней записи, в том числе после ошибки write.
        """
        ...
