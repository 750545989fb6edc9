from __future__ import annotations

from dataimport.domain.records import Record
from dataimport.writers.base import AbstractWriter


class MemoryWriter(AbstractWriter):
    """
    Назначение:
        Складывает записи в список (dry-run, проверки).
    """

    def __init__(self) -> None:
        self.records: list[Record] = []
        self.prepare_calls = 0
        self.finish_calls = 0

    def prepare(self) -> None:
        self.prepare_calls += 1

    def write(self, record: Record) -> None:
        self.records.append(record)

    def finish(self) -> None:
        self.finish_calls += 1
