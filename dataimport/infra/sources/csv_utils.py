from __future__ import annotations

import csv
from dataclasses import dataclass

from dataimport.errors import ConfigurationError

DEFAULT_DELIMITER = ";"
DEFAULT_ENCLOSURE = '"'
DEFAULT_ESCAPE = "\\"


@dataclass(frozen=True)
class CsvControl:
    """
    Назначение:
        Управляющие символы разбора CSV: разделитель, обрамление, экранирование.

    Инварианты:
        - каждый символ ровно один, не перевод строки;
        - все три символа различны.
    """

    delimiter: str = DEFAULT_DELIMITER
    enclosure: str = DEFAULT_ENCLOSURE
    escape: str = DEFAULT_ESCAPE

    def __post_init__(self) -> None:
        for name in ("delimiter", "enclosure", "escape"):
            value = getattr(self, name)
            if not isinstance(value, str) or len(value) != 1:
                raise ConfigurationError(
                    f"CSV {name} must be exactly one character, got {value!r}",
                    field=name,
                )
            if value in ("\r", "\n"):
                raise ConfigurationError(f"CSV {name} must not be a line break", field=name)
        if len({self.delimiter, self.enclosure, self.escape}) != 3:
            raise ConfigurationError(
                "CSV delimiter, enclosure and escape must be distinct characters",
                delimiter=self.delimiter,
                enclosure=self.enclosure,
                escape=self.escape,
            )

    def reader_kwargs(self) -> dict:
        return {
            "delimiter": self.delimiter,
            "quotechar": self.enclosure,
            "escapechar": self.escape,
            "doublequote": True,
            "quoting": csv.QUOTE_MINIMAL,
            "strict": False,
        }


def isBlankLine(rawText: str) -> bool:
    """
    Назначение:
        Структурно пустая строка файла: в сыром тексте только пробелы и перевод строки.

    Поведение:
        Решение принимается до разбора: поле в кавычках ("" или " ") пустой строкой
        не считается, это данные.
    """
    return rawText.strip() == ""


def parseNull(value: str | None) -> str | None:
    """
    Назначение:
        Преобразует пустые/NULL значения в None и тримит строки.
    """
    if value is None:
        return None
    trimmed = value.strip()
    if trimmed == "" or trimmed.lower() == "null":
        return None
    return trimmed
