from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Sequence, Union

FieldValue = Union[str, None]


@dataclass(frozen=True)
class PositionalRecord:
    """
    Назначение:
        Строка источника без заголовка: значения по позициям, как их отдал парсер.

    Инварианты:
        - values неизменяем (tuple).
    """

    values: tuple[FieldValue, ...]

    @classmethod
    def of(cls, values: Sequence[FieldValue]) -> "PositionalRecord":
        return cls(values=tuple(values))

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> FieldValue:
        return self.values[index]

    def __iter__(self) -> Iterator[FieldValue]:
        return iter(self.values)

    def as_list(self) -> list[FieldValue]:
        return list(self.values)


@dataclass(frozen=True)
class NamedRecord:
    """
    Назначение:
        Строка источника, разложенная по именам колонок заголовка.

    Инварианты:
        - порядок ключей = порядок колонок заголовка;
        - fields доступен только на чтение.
    """

    fields: Mapping[str, FieldValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def from_pairs(cls, names: Sequence[str], values: Sequence[FieldValue]) -> "NamedRecord":
        return cls(fields=dict(zip(names, values)))

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, name: str) -> FieldValue:
        return self.fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NamedRecord):
            return dict(self.fields) == dict(other.fields)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self.fields.items()))

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def keys(self):
        return self.fields.keys()

    def items(self):
        return self.fields.items()

    def as_dict(self) -> dict[str, FieldValue]:
        return dict(self.fields)


# None = отсутствующая запись (строка не совпала по числу колонок с заголовком)
Record = Union[PositionalRecord, NamedRecord]


def recordToJson(record: Record | None) -> Any:
    """
    Назначение:
        Представление записи для json.dumps (CLI/отчёты).
    """
    if record is None:
        return None
    if isinstance(record, NamedRecord):
        return record.as_dict()
    return record.as_list()
