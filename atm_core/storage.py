"""
Storage Backend Module

Key-value document storage for the teller's session cache. Records are JSON
dictionaries grouped in named tables. An in-memory backend serves tests and
throwaway sessions; SQLite keeps the cache across restarts.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Any, Union
from datetime import datetime, timezone
from pathlib import Path
import sqlite3
import json
import re
import threading


_TABLE_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def _check_table(table: str) -> str:
    if not _TABLE_NAME.match(table):
        raise ValueError(f"Invalid table name: {table!r}")
    return table


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save a record to storage"""

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record from storage"""

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()

    def _table(self, table: str) -> Dict[str, Dict[str, Any]]:
        return self._data.setdefault(_check_table(table), {})

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            # Round-trip through JSON so callers cannot mutate stored records
            self._table(table)[record_id] = json.loads(json.dumps(data, default=str))

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._table(table).get(record_id)
            return json.loads(json.dumps(record)) if record is not None else None

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection: Optional[sqlite3.Connection] = sqlite3.connect(
            self.db_path, check_same_thread=False
        )
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._known_tables = set()

    def _conn(self) -> sqlite3.Connection:
        if self._connection is None:
            raise sqlite3.ProgrammingError("Storage is closed")
        return self._connection

    def _ensure_table(self, table: str) -> str:
        table = _check_table(table)
        if table not in self._known_tables:
            conn = self._conn()
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
            self._known_tables.add(table)
        return table

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            table = self._ensure_table(table)
            conn = self._conn()
            conn.execute(
                f"INSERT OR REPLACE INTO {table} (id, data, updated_at) VALUES (?, ?, ?)",
                (record_id, json.dumps(data, default=str), datetime.now(timezone.utc).isoformat())
            )
            conn.commit()

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            table = self._ensure_table(table)
            row = self._conn().execute(
                f"SELECT data FROM {table} WHERE id = ?", (record_id,)
            ).fetchone()
            return json.loads(row['data']) if row else None

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None


def create_storage(path: str) -> StorageInterface:
    """Pick a backend for the configured session store path"""
    if not path or path == ":memory:":
        return InMemoryStorage()
    return SQLiteStorage(path)
