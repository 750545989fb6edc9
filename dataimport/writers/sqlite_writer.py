from __future__ import annotations

import re
import sqlite3
from typing import Sequence

from dataimport.domain.records import NamedRecord, PositionalRecord, Record
from dataimport.errors import ConfigurationError, MappingError
from dataimport.infra.db.sqlite_engine import SqliteEngine, quoteIdentifier
from dataimport.writers.base import AbstractWriter

TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SqliteTableWriter(AbstractWriter):
    """
    Назначение/ответственность:
        Записывает записи в таблицу SQLite (колонки TEXT).

    Жизненный цикл:
        - prepare(): CREATE TABLE IF NOT EXISTS + BEGIN;
        - write(): NamedRecord раскладывается по именам колонок, PositionalRecord - по позициям;
        - finish(): commit всего, что успели записать (в том числе после ошибки write).

    Ошибки:
        - недопустимое имя таблицы/колонок -> ConfigurationError;
        - неизвестное поле или неверное число значений -> MappingError.
    """

    def __init__(self, conn: sqlite3.Connection, table: str, columns: Sequence[str], create_table: bool = True) -> None:
        if not TABLE_NAME_RE.match(table or ""):
            raise ConfigurationError(f"Invalid table name: {table!r}", table=table)
        names = list(columns)
        if not names:
            raise ConfigurationError("Writer requires at least one column", table=table)
        if any(not name for name in names):
            raise ConfigurationError("Column names must not be empty", table=table)
        if len(set(names)) != len(names):
            raise ConfigurationError("Column names must be unique", table=table)

        self.engine = SqliteEngine(conn)
        self.table = table
        self.columns = names
        self.create_table = create_table
        self.written = 0
        self._insertSql = "INSERT INTO {table} ({cols}) VALUES ({params})".format(
            table=quoteIdentifier(table),
            cols=", ".join(quoteIdentifier(c) for c in names),
            params=", ".join("?" for _ in names),
        )

    def prepare(self) -> None:
        if self.create_table:
            self.engine.execute(
                "CREATE TABLE IF NOT EXISTS {table} ({cols})".format(
                    table=quoteIdentifier(self.table),
                    cols=", ".join(f"{quoteIdentifier(c)} TEXT" for c in self.columns),
                )
            )
        self.engine.begin()

    def write(self, record: Record) -> None:
        self.engine.execute(self._insertSql, tuple(self._map(record)))
        self.written += 1

    def finish(self) -> None:
        self.engine.commit()

    def _map(self, record: Record) -> list:
        if isinstance(record, NamedRecord):
            unknown = [name for name in record.keys() if name not in self.columns]
            if unknown:
                raise MappingError(
                    f"Unknown field(s) for table {self.table}: {', '.join(unknown)}",
                    table=self.table,
                    fields=unknown,
                )
            return [record.get(column) for column in self.columns]
        if isinstance(record, PositionalRecord):
            if len(record) != len(self.columns):
                raise MappingError(
                    f"Expected {len(self.columns)} values for table {self.table}, got {len(record)}",
                    table=self.table,
                )
            return record.as_list()
        raise MappingError(f"Unsupported record type: {type(record).__name__}", table=self.table)
