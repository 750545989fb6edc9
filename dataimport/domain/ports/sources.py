from __future__ import annotations

from typing import Iterator, Protocol, Sequence

from dataimport.domain.records import Record


class RecordReader(Protocol):
    """
    Назначение/ответственность:
        Конечная, перезапускаемая последовательность записей с произвольным доступом.
    Взаимодействия:
        Используется ImportWorkflow; реализуется CsvRecordSource.
    """

    def current(self) -> Record | None:
        """
        Контракт:
            Запись под курсором; None, если курсор исчерпан или строка пропущена.
        """
        ...

    def next(self) -> None:
        ...

    def valid(self) -> bool:
        ...

    def key(self) -> int:
        ...

    def rewind(self) -> None:
        ...

    def seek(self, pointer: int) -> None:
        """
        Контракт:
            OutOfRangeError, если позиции нет; курсор при этом не двигается.
        """
        ...

    def count(self) -> int:
        ...

    def get_fields(self) -> Sequence[str] | None:
        ...

    def items(self) -> Iterator[tuple[int, Record | None]]:
        """
        Контракт:
            rewind + обход до конца: пары (key, запись или None).
        """
        ...
