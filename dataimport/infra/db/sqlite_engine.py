from __future__ import annotations

import sqlite3
from pathlib import Path

MEMORY_DB = ":memory:"


def openDb(dbPath: str) -> sqlite3.Connection:
    """
    Открывает/создаёт SQLite БД с нужными PRAGMA/timeout.
    """
    if dbPath != MEMORY_DB:
        Path(dbPath).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(dbPath, timeout=5.0)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute("PRAGMA busy_timeout = 5000")
    return conn


def quoteIdentifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SqliteEngine:
    """
    Назначение/ответственность:
        Тонкая обёртка над sqlite3.Connection с единым API для SQL-операций.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def execute(self, sql: str, params: tuple | dict | None = None) -> sqlite3.Cursor:
        if params is None:
            return self.conn.execute(sql)
        return self.conn.execute(sql, params)

    def begin(self) -> None:
        if not self.conn.in_transaction:
            self.conn.execute("BEGIN")

    def commit(self) -> None:
        self.conn.commit()
