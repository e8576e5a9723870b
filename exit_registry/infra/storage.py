"""SQLite connection management with schema guarantees."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict

from ..errors import StoreInitError


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees.

    One connection is shared by every store on the same path, so each
    connection comes with one lock that all of those stores hold around a
    whole execute + commit/rollback sequence.
    """

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._connection_locks: Dict[Path, Lock] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        with self._lock:
            if path not in self._connections:
                try:
                    path.parent.mkdir(parents=True, exist_ok=True)
                    conn = sqlite3.connect(path, check_same_thread=False)
                    conn.row_factory = sqlite3.Row
                    self._ensure_schema(conn)
                except (OSError, sqlite3.Error) as exc:
                    raise StoreInitError(f"Unable to open database {path}: {exc}") from exc
                self._connections[path] = conn
                self._connection_locks[path] = Lock()
            return self._connections[path]

    def lock_for(self, path: Path) -> Lock:
        """Return the transaction lock of the connection for ``path``."""

        self.connect(path)
        with self._lock:
            return self._connection_locks[path]

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS exit_nodes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                ip_address TEXT NOT NULL UNIQUE,
                country TEXT NOT NULL,
                timestamp TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS allowlist (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                ip_address TEXT NOT NULL UNIQUE
            )
            """
        )
        conn.commit()

    def reset(self, path: Path) -> None:
        with self._lock:
            if path in self._connections:
                self._connections[path].close()
                del self._connections[path]
                del self._connection_locks[path]
        if path.exists():
            path.unlink()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()
            self._connection_locks.clear()


__all__ = ["SQLiteManager"]
