from __future__ import annotations

import json
import logging
import sqlite3
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Sequence, TextIO

import typer

from .config import Settings, load_settings
from .domain.records import recordToJson
from .domain.transform.converters import NullValueConverter
from .errors import AppError
from .infra.db.sqlite_engine import openDb
from .infra.sources.csv_reader import CsvRecordSource
from .loggingSetup import closeCommandLogger, createCommandLogger, logEvent, teeStdStreams
from .reporter import createEmptyReport, finalizeReport, writeReportJson
from .usecases.import_usecase import ImportWorkflow
from .writers import MemoryWriter, SqliteTableWriter

app = typer.Typer(no_args_is_help=True, add_completion=False)

def ensureDir(path: str) -> None:
    """
    Назначение:
        Создаёт каталог, если он отсутствует.
    """
    Path(path).mkdir(parents=True, exist_ok=True)

def requireCsv(csvPath: str | None) -> None:
    """
    Назначение:
        Базовая проверка наличия CSV-файла.

    Поведение:
        - Если csvPath не задан или файл не существует: завершает процесс с exit code 2.
    """
    if not csvPath:
        typer.echo("ERROR: --csv is required", err=True)
        raise typer.Exit(code=2)

    p = Path(csvPath)
    if not p.exists() or not p.is_file():
        typer.echo(f"ERROR: CSV file not found: {csvPath}", err=True)
        raise typer.Exit(code=2)

def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Печатает сводку параметров запуска.
    """
    typer.echo(
        f"run_id={runId} command={command} "
        f"delimiter={settings.delimiter!r} enclosure={settings.enclosure!r} escape={settings.escape!r} "
        f"header_row={settings.header_row} sources={sources}"
    )

def openSource(stream: TextIO, settings: Settings) -> CsvRecordSource:
    """
    Назначение:
        Создаёт CsvRecordSource по настройкам и, если задан, читает заголовок.
    """
    source = CsvRecordSource(
        stream,
        delimiter=settings.delimiter,
        enclosure=settings.enclosure,
        escape=settings.escape,
        on_mismatch=settings.on_mismatch,
    )
    if settings.header_row is not None:
        source.set_header_row_number(settings.header_row)
    return source

def newRunId() -> str:
    """
    Назначение:
        run_id вида <YYYYMMDDTHHMMSS>-<8 hex>: лог- и report-файлы сортируются по времени запуска.
    """
    return f"{datetime.now():%Y%m%dT%H%M%S}-{uuid.uuid4().hex[:8]}"

def columnNames(headers: Sequence[str]) -> list[str]:
    """
    Назначение:
        Имена колонок таблицы по заголовку CSV.

    Поведение:
        - пустая ячейка заголовка (например, лишний разделитель в конце) -> col_<индекс>.
    """
    return [name if name.strip() else f"col_{idx}" for idx, name in enumerate(headers)]

def importColumns(source: CsvRecordSource) -> list[str]:
    """
    Назначение:
        Колонки целевой таблицы для import.

    Поведение:
        - есть заголовок: его имена; пустые заменяются на col_<индекс> и в самом источнике,
          чтобы ключи NamedRecord совпали с колонками;
        - заголовка нет: col_0..col_<n-1> по первой строке данных;
        - в файле нет строк -> [].
    """
    headers = source.get_fields()
    if headers:
        columns = columnNames(headers)
        if columns != list(headers):
            source.set_column_headers(columns)
        return columns
    source.rewind()
    first = source.current()
    return [f"col_{idx}" for idx in range(len(first))] if first is not None else []

def runWithReport(
    ctx: typer.Context,
    commandName: str,
    csvPath: str | None,
    requiresCsv: bool,
    runner,
) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - создаёт report.json skeleton
        - валидирует обязательные входы (CSV)
        - перенаправляет stdout/stderr в лог (tee)
        - гарантирует запись отчёта в finally
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    report = createEmptyReport(runId=runId, command=commandName, configSources=sources)
    report.meta.csv_path = csvPath
    report.meta.items_limit = settings.report_items_limit

    exitCode: int | None = None

    try:
        with teeStdStreams(logger, runId):
            logEvent(logger, logging.INFO, runId, "core", "Command started")
            printRunHeader(runId, commandName, settings, sources)

            if requiresCsv:
                try:
                    requireCsv(csvPath)
                except typer.Exit:
                    logEvent(logger, logging.ERROR, runId, "csv", "CSV is missing or not accessible")
                    typer.echo("ERROR: invalid or missing CSV (see logs/report)", err=True)
                    exitCode = 2
                    return

            exitCode = runner(logger, report)

    finally:
        finalizeReport(
            report=report,
            startedMonotonic=startMonotonic,
            logFile=logFilePath,
            reportDir=settings.report_dir,
        )
        reportPath = writeReportJson(report, settings.report_dir, f"report_{commandName}_{runId}")
        logEvent(logger, logging.INFO, runId, "report", f"Report written: {reportPath}")
        closeCommandLogger(logger)

        if exitCode is not None:
            raise typer.Exit(code=exitCode)


def runImportCommand(
    ctx: typer.Context,
    csvPath: str | None,
    table: str,
    dbPath: str | None,
    stopOnError: bool | None,
    dryRun: bool,
    nullValues: bool,
) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]
    stop_on_error = stopOnError if stopOnError is not None else settings.stop_on_error
    db_path = dbPath or settings.db_path

    def execute(logger, report) -> int:
        report.meta.table = table
        conn: sqlite3.Connection | None = None
        try:
            with open(csvPath, "r", encoding=settings.encoding, newline="") as f:
                source = openSource(f, settings)
                columns = importColumns(source)

                if dryRun:
                    writer = MemoryWriter()
                elif not columns:
                    logEvent(logger, logging.WARNING, runId, "import", "CSV has no rows, nothing to import")
                    typer.echo("import done rows_total=0 written=0 skipped=0 failed=0")
                    return 0
                else:
                    conn = openDb(db_path)
                    writer = SqliteTableWriter(conn, table, columns)

                workflow = ImportWorkflow(
                    reader=source,
                    writer=writer,
                    stop_on_error=stop_on_error,
                    logger=logger,
                    run_id=runId,
                )
                if nullValues:
                    workflow.add_converter(NullValueConverter())

                try:
                    result = workflow.process()
                except Exception as exc:
                    if not stop_on_error:
                        raise
                    logEvent(logger, logging.ERROR, runId, "import", f"Import stopped on first error: {exc}")
                    typer.echo(f"ERROR: import stopped: {exc}", err=True)
                    report.add_item({"status": "failed", "message": str(exc)})
                    return 1
        except AppError as exc:
            logEvent(logger, logging.ERROR, runId, "import", f"Import failed code={exc.code}: {exc}")
            typer.echo(f"ERROR: {exc}", err=True)
            return 2
        except (OSError, UnicodeDecodeError, sqlite3.Error) as exc:
            logEvent(logger, logging.ERROR, runId, "import", f"Import failed: {exc}")
            typer.echo(f"ERROR: import failed: {exc}", err=True)
            return 2
        finally:
            if conn is not None:
                conn.close()

        report.summary.rows_total = result.rows_total
        report.summary.written = result.written
        report.summary.skipped = result.skipped
        report.summary.failed = result.failed
        for key in result.skipped_keys:
            report.add_item({"row": key, "status": "skipped"})
        for failure in result.failures:
            report.add_item({"row": failure.key, "status": "failed", "code": failure.code, "message": failure.message})

        typer.echo(
            f"import done rows_total={result.rows_total} written={result.written} "
            f"skipped={result.skipped} failed={result.failed}"
        )
        return 1 if result.failed > 0 else 0

    runWithReport(
        ctx=ctx,
        commandName="import",
        csvPath=csvPath,
        requiresCsv=True,
        runner=execute,
    )


def runCountCommand(ctx: typer.Context, csvPath: str | None) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger, report) -> int:
        try:
            with open(csvPath, "r", encoding=settings.encoding, newline="") as f:
                source = openSource(f, settings)
                rows = source.count()
                headers = source.get_column_headers()
        except AppError as exc:
            logEvent(logger, logging.ERROR, runId, "csv", f"Count failed code={exc.code}: {exc}")
            typer.echo(f"ERROR: {exc}", err=True)
            return 2
        except (OSError, UnicodeDecodeError) as exc:
            logEvent(logger, logging.ERROR, runId, "csv", f"CSV read error: {exc}")
            typer.echo(f"ERROR: CSV read error: {exc}", err=True)
            return 2

        report.summary.rows_total = rows
        typer.echo(f"rows={rows}")
        if headers:
            typer.echo(f"headers={json.dumps(list(headers), ensure_ascii=False)}")
        return 0

    runWithReport(
        ctx=ctx,
        commandName="count",
        csvPath=csvPath,
        requiresCsv=True,
        runner=execute,
    )


def runShowCommand(ctx: typer.Context, csvPath: str | None, rowNumber: int) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger, report) -> int:
        try:
            with open(csvPath, "r", encoding=settings.encoding, newline="") as f:
                source = openSource(f, settings)
                record = source.get_row(rowNumber)
        except AppError as exc:
            logEvent(logger, logging.ERROR, runId, "csv", f"Show failed code={exc.code}: {exc}")
            typer.echo(f"ERROR: {exc}", err=True)
            return 2
        except (OSError, UnicodeDecodeError) as exc:
            logEvent(logger, logging.ERROR, runId, "csv", f"CSV read error: {exc}")
            typer.echo(f"ERROR: CSV read error: {exc}", err=True)
            return 2

        if record is None:
            logEvent(logger, logging.WARNING, runId, "csv", f"Row {rowNumber} has no record (column count mismatch)", row=rowNumber)
        typer.echo(json.dumps(recordToJson(record), ensure_ascii=False))
        return 0

    runWithReport(
        ctx=ctx,
        commandName="show",
        csvPath=csvPath,
        requiresCsv=True,
        runner=execute,
    )

@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier. If omitted, generated from the start time."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    reportDir: str | None = typer.Option(None, "--report-dir", help="Directory for reports."),
    delimiter: str | None = typer.Option(None, "--delimiter", help="CSV field delimiter (one character)"),
    enclosure: str | None = typer.Option(None, "--enclosure", help="CSV field enclosure (one character)"),
    escape: str | None = typer.Option(None, "--escape", help="CSV escape character (one character)"),
    headerRow: str | None = typer.Option(None, "--header-row", help="Row number with column names, or 'none'"),
    noHeader: bool = typer.Option(False, "--no-header", help="CSV has no header row (same as --header-row none)"),
    encoding: str | None = typer.Option(None, "--encoding", help="CSV file encoding"),
    onMismatch: str | None = typer.Option(
        None,
        "--on-mismatch",
        help="Policy for rows whose column count differs from header: skip|error",
        case_sensitive=False,
    ),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - создаёт каталоги log/report
        - сохраняет всё в ctx.obj для подкоманд
    """
    if not runId:
        runId = newRunId()
    if noHeader:
        if headerRow is not None:
            typer.echo("ERROR: --no-header conflicts with --header-row", err=True)
            raise typer.Exit(code=2)
        headerRow = "none"

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "report_dir": reportDir,
        "delimiter": delimiter,
        "enclosure": enclosure,
        "escape": escape,
        "header_row": headerRow,
        "encoding": encoding,
        "on_mismatch": onMismatch,
    }
    try:
        loaded = load_settings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    ensureDir(loaded.settings.log_dir)
    ensureDir(loaded.settings.report_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }

@app.command("import")
def importCsv(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to input CSV"),
    table: str = typer.Option(..., "--table", help="Target SQLite table"),
    db: str | None = typer.Option(None, "--db", help="Path to SQLite database"),
    stopOnError: bool | None = typer.Option(
        None,
        "--stop-on-error/--no-stop-on-error",
        help="Abort on the first failing row",
        show_default=True,
    ),
    dryRun: bool = typer.Option(False, "--dry-run", help="Read and convert rows without writing to the database"),
    nullValues: bool = typer.Option(False, "--null-values", help="Trim values and store empty/NULL as SQL NULL"),
):
    runImportCommand(ctx, csv, table, db, stopOnError, dryRun, nullValues)

@app.command("count")
def countRows(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to input CSV"),
):
    runCountCommand(ctx, csv)

@app.command("show")
def showRow(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to input CSV"),
    row: int = typer.Option(..., "--row", help="Row number (zero-based, blank lines not counted)"),
):
    runShowCommand(ctx, csv, row)
