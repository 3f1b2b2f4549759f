"""
Local Storage Module

Provides the string key/value store that backs persisted client state (the
serialized session and the chosen language). Ships an in-memory
implementation for tests and a SQLite implementation for persistence.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union
from datetime import datetime, timezone
import sqlite3
import threading
from pathlib import Path

from .config import GestureTransferConfig, get_config


# Storage keys
AUTH_KEY = "auth"
LANGUAGE_KEY = "language"


class LocalStorage(ABC):
    """Abstract interface for key/value storage backends"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value or None"""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one"""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> bool:
        """Remove a key; returns True if it existed"""
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        """List stored keys"""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every key"""
        pass

    def close(self) -> None:
        """Close storage connection (default no-op)"""
        pass

    def __contains__(self, key: str) -> bool:
        return self.get_item(key) is not None


class InMemoryLocalStorage(LocalStorage):
    """In-memory storage implementation for testing"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("Local storage values must be strings")
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def clear(self) -> None:
        with self._lock:
            self._data = {}


class SQLiteLocalStorage(LocalStorage):
    """SQLite storage implementation for persistence"""

    TABLE = "local_storage"

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()

        with self._lock:
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
            self._connection.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.TABLE} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._connection.commit()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            cursor = self._connection.execute(
                f"SELECT value FROM {self.TABLE} WHERE key = ?", (key,)
            )
            row = cursor.fetchone()
            return row['value'] if row else None

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("Local storage values must be strings")
        with self._lock:
            self._connection.execute(f"""
                INSERT OR REPLACE INTO {self.TABLE} (key, value, updated_at)
                VALUES (?, ?, ?)
            """, (key, value, datetime.now(timezone.utc).isoformat()))
            self._connection.commit()

    def remove_item(self, key: str) -> bool:
        with self._lock:
            cursor = self._connection.execute(
                f"DELETE FROM {self.TABLE} WHERE key = ?", (key,)
            )
            self._connection.commit()
            return cursor.rowcount > 0

    def keys(self) -> List[str]:
        with self._lock:
            cursor = self._connection.execute(
                f"SELECT key FROM {self.TABLE} ORDER BY key"
            )
            return [row['key'] for row in cursor.fetchall()]

    def clear(self) -> None:
        with self._lock:
            self._connection.execute(f"DELETE FROM {self.TABLE}")
            self._connection.commit()

    def close(self) -> None:
        with self._lock:
            self._connection.close()


def create_storage(settings: Optional[GestureTransferConfig] = None) -> LocalStorage:
    """Build the storage backend selected in configuration"""
    settings = settings or get_config()
    backend = settings.storage_backend.lower()
    if backend == "sqlite":
        return SQLiteLocalStorage(settings.storage_path)
    if backend == "memory":
        return InMemoryLocalStorage()
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
