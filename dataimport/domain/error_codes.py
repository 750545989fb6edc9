from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов ошибок импорта.
    """

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_CONVERTER = "INVALID_CONVERTER"
    NOT_FOUND = "NOT_FOUND"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    MAPPING_ERROR = "MAPPING_ERROR"
    CSV_FORMAT_ERROR = "CSV_FORMAT_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorCode":
        """
        Назначение:
            Подбор кода по исключению (для отчётов/логов).
        """
        code = getattr(exc, "code", None)
        if isinstance(code, cls):
            return code
        if isinstance(code, str) and code in cls._value2member_map_:
            return cls(code)
        return cls.UNEXPECTED_ERROR
