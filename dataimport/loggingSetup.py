from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO

NO_ROW = "-"

LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s comp=%(component)s row=%(row)s msg=%(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

LOG_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class ImportContextFilter(logging.Filter):
    """
    Назначение:
        Дополняет LogRecord полями контекста импорта: runId, component, row.
        Без них форматтер команды падает KeyError.

    Поведение:
        - уже переданные через extra значения не трогает;
        - row по умолчанию NO_ROW: событие не относится к конкретной строке CSV.
    """

    def __init__(self, runId: str, defaultComponent: str = "core"):
        super().__init__()
        self.runId = runId
        self.defaultComponent = defaultComponent

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "runId"):
            record.runId = self.runId
        if not hasattr(record, "component"):
            record.component = self.defaultComponent
        if not hasattr(record, "row"):
            record.row = NO_ROW
        return True


def rowExtra(runId: str, component: str, row: int | None = None) -> dict:
    return {"runId": runId, "component": component, "row": NO_ROW if row is None else row}


class LineLogStream:
    """
    Назначение:
        Текстовый поток, который пишет в логгер законченные строки.
        Хвост без перевода строки копится до следующего write или flush.
    """

    def __init__(self, logger: logging.Logger, level: int, runId: str, component: str):
        self.logger = logger
        self.level = level
        self.extra = rowExtra(runId, component)
        self.pending = ""

    def write(self, s: str) -> int:
        if not s:
            return 0
        *lines, self.pending = (self.pending + s).split("\n")
        for line in lines:
            self._emit(line)
        return len(s)

    def flush(self) -> None:
        self._emit(self.pending)
        self.pending = ""

    def _emit(self, line: str) -> None:
        if line.strip():
            self.logger.log(self.level, line.rstrip(), extra=self.extra)


class TeeStream:
    """
    Назначение:
        Пишет одновременно в исходный поток (консоль) и в LineLogStream.
    """

    def __init__(self, primary: TextIO, secondary: LineLogStream):
        self.primary = primary
        self.secondary = secondary

    def write(self, s: str) -> int:
        written = self.primary.write(s)
        self.secondary.write(s)
        return written

    def flush(self) -> None:
        self.primary.flush()
        self.secondary.flush()

    def isatty(self) -> bool:
        return bool(getattr(self.primary, "isatty", lambda: False)())


@contextmanager
def teeStdStreams(logger: logging.Logger, runId: str) -> Iterator[None]:
    """
    Назначение:
        На время команды дублирует stdout (INFO) и stderr (ERROR) в лог команды.

    Поведение:
        Исходные sys.stdout/sys.stderr восстанавливаются и при исключении.
    """
    originalStdout, originalStderr = sys.stdout, sys.stderr
    sys.stdout = TeeStream(originalStdout, LineLogStream(logger, logging.INFO, runId, "stdout"))
    sys.stderr = TeeStream(originalStderr, LineLogStream(logger, logging.ERROR, runId, "stderr"))
    try:
        yield
    finally:
        sys.stdout.flush()
        sys.stderr.flush()
        sys.stdout, sys.stderr = originalStdout, originalStderr


def mapLogLevel(levelName: str) -> int:
    """ERROR|WARN|WARNING|INFO|DEBUG -> уровень logging."""
    level = LOG_LEVELS.get((levelName or "").strip().upper())
    if level is None:
        raise ValueError(f"Unsupported log level: {levelName}")
    return level


def commandLogPath(logDir: str, commandName: str, runId: str) -> Path:
    return Path(logDir) / f"{commandName}_{runId}.log"


def createCommandLogger(commandName: str, logDir: str, runId: str, logLevel: str) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Логгер одной команды (import/count/show) с собственным файлом в logDir.

    Поведение:
        - имя логгера dataimport.<command>.<runId>, без propagate;
        - повторный вызов с тем же runId заменяет хендлеры, а не дублирует их.

    Выходные данные:
        (logger, logFilePath)
    """
    logPath = commandLogPath(logDir, commandName, runId)
    logPath.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(f"dataimport.{commandName}.{runId}")
    closeCommandLogger(logger)
    logger.propagate = False

    level = mapLogLevel(logLevel)
    logger.setLevel(level)

    fileHandler = logging.FileHandler(logPath, encoding="utf-8")
    fileHandler.setLevel(level)
    fileHandler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    fileHandler.addFilter(ImportContextFilter(runId=runId))
    logger.addHandler(fileHandler)

    return logger, str(logPath)


def closeCommandLogger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def logEvent(
    logger: logging.Logger,
    level: int,
    runId: str,
    component: str,
    message: str,
    row: int | None = None,
) -> None:
    """
    Назначение:
        Единая запись событий. row - номер строки CSV, если событие про строку.
    """
    logger.log(level, message, extra=rowExtra(runId, component, row))
