from dataimport.writers.base import AbstractWriter
from dataimport.writers.memory_writer import MemoryWriter
from dataimport.writers.sqlite_writer import SqliteTableWriter

__all__ = [
    "AbstractWriter",
    "MemoryWriter",
    "SqliteTableWriter",
]
