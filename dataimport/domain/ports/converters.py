from __future__ import annotations

from typing import Protocol

from dataimport.domain.records import Record


class RecordConverter(Protocol):
    """
    Назначение/ответственность:
        Чистое преобразование одной записи в другую.
    """

    def convert(self, record: Record) -> Record | None:
        ...
