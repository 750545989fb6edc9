from __future__ import annotations

import json
import time
from dataclasses import dataclass, asdict, field
from datetime import datetime
from pathlib import Path
from typing import Any


def nowIso() -> str:
    return datetime.now().astimezone().isoformat()


@dataclass
class ReportMeta:
    """
    Назначение:
        Метаданные отчёта запуска команды.

    Поля:
        run_id: str
        command: str
        started_at: str
        finished_at: str | None
        duration_ms: int | None
        csv_path: str | None
        table: str | None
        log_file: str | None
        report_dir: str | None
        config_sources: list[str]
        items_limit: int | None
        items_truncated: bool
    """
    run_id: str
    command: str
    started_at: str
    finished_at: str | None = None
    duration_ms: int | None = None
    csv_path: str | None = None
    table: str | None = None
    log_file: str | None = None
    report_dir: str | None = None
    config_sources: list[str] = field(default_factory=list)
    items_limit: int | None = None
    items_truncated: bool = False


@dataclass
class ReportSummary:
    """
    Назначение:
        Сводные счётчики импорта.
    """
    rows_total: int = 0
    written: int = 0
    skipped: int = 0
    failed: int = 0


@dataclass
class Report:
    """
    Назначение:
        Корневой объект отчёта.

    Поля:
        meta: ReportMeta
        summary: ReportSummary
        items: list[dict]
            Пропущенные и упавшие строки (не больше meta.items_limit).
    """
    meta: ReportMeta
    summary: ReportSummary
    items: list[dict]

    def add_item(self, item: dict) -> None:
        limit = self.meta.items_limit
        if limit is not None and len(self.items) >= limit:
            self.meta.items_truncated = True
            return
        self.items.append(item)


def createEmptyReport(runId: str, command: str, configSources: list[str]) -> Report:
    """
    Назначение:
        Создаёт пустой отчёт-скелет для команды.
    """
    meta = ReportMeta(
        run_id=runId,
        command=command,
        started_at=nowIso(),
        config_sources=configSources or [],
    )
    return Report(meta=meta, summary=ReportSummary(), items=[])


def finalizeReport(report: Report, startedMonotonic: float, logFile: str | None, reportDir: str) -> None:
    """
    Назначение:
        Финализирует отчёт: время завершения, длительность (по time.monotonic), пути.
    """
    report.meta.finished_at = nowIso()
    report.meta.duration_ms = int((time.monotonic() - startedMonotonic) * 1000)
    report.meta.log_file = logFile
    report.meta.report_dir = reportDir


def writeReportJson(report: Report, reportDir: str, fileBaseName: str) -> str:
    """
    Назначение:
        Записывает report.json на диск.

    Входные данные:
        report: Report
        reportDir: str
        fileBaseName: str
            Например: "report_import_<runId>"

    Выходные данные:
        str
            Полный путь к созданному файлу.
    """
    Path(reportDir).mkdir(parents=True, exist_ok=True)
    reportPath = str(Path(reportDir) / f"{fileBaseName}.json")

    data: dict[str, Any] = {
        "meta": asdict(report.meta),
        "summary": asdict(report.summary),
        "items": report.items,
    }

    with open(reportPath, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return reportPath
