from __future__ import annotations

from abc import ABC, abstractmethod

from dataimport.domain.records import Record


class AbstractWriter(ABC):
    """
    Назначение/ответственность:
        Сохраняет записи в хранилище (БД, файл и т.п.).
        prepare/finish - шаблонные методы, по умолчанию ничего не делают;
        конкретные приёмники переопределяют их по необходимости.
    """

    def prepare(self) -> None:
        return None

    @abstractmethod
    def write(self, record: Record) -> None:
        ...

    def finish(self) -> None:
        return None
