from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from dataimport.domain.error_codes import ErrorCode


@dataclass
class AppError(Exception):
    """
    Унифицированная ошибка приложения.
    """

    category: str
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "details": self.details or {},
        }


class ConfigurationError(AppError):
    """
    Назначение:
        Неверная конфигурация источника/приёмника (управляющие символы, идентификаторы, поток).
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__("config", ErrorCode.CONFIGURATION_ERROR.value, message, dict(details))


class InvalidConverterError(ConfigurationError):
    """
    Назначение:
        Конвертер сконструирован из невызываемого объекта.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, **details)
        self.code = ErrorCode.INVALID_CONVERTER.value


class NotFoundError(AppError):
    """
    Назначение:
        Строка заголовка отсутствует в источнике.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__("source", ErrorCode.NOT_FOUND.value, message, dict(details))


class OutOfRangeError(AppError):
    """
    Назначение:
        Позиция seek вне диапазона [0, rows).
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__("source", ErrorCode.OUT_OF_RANGE.value, message, dict(details))


class MappingError(AppError):
    """
    Назначение:
        Приёмник не может разложить запись по своей схеме (неизвестное поле и т.п.).
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__("writer", ErrorCode.MAPPING_ERROR.value, message, dict(details))


class CsvFormatError(AppError):
    """
    Назначение:
        Ошибка критического формата CSV (количество колонок, дубли заголовков и т.п.).
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__("csv", ErrorCode.CSV_FORMAT_ERROR.value, message, dict(details))


__all__ = [
    "AppError",
    "ConfigurationError",
    "InvalidConverterError",
    "NotFoundError",
    "OutOfRangeError",
    "MappingError",
    "CsvFormatError",
]
