"""Durable set of addresses excluded from query results."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Protocol

from ..errors import StoreError
from ..infra.storage import SQLiteManager
from ..models import AllowEntry


class AllowStore(Protocol):
    """Entries unique on address; ``entries`` is ordered by ``id``."""

    def add(self, address: str) -> bool: ...

    def remove(self, address: str) -> bool: ...

    def entries(self) -> list[AllowEntry]: ...

    def addresses(self) -> set[str]: ...


class SQLiteAllowStore:
    """AllowStore backed by the ``allowlist`` table."""

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self._conn = self.manager.connect(db_path)
        self._lock = self.manager.lock_for(db_path)

    def add(self, address: str) -> bool:
        """Insert ``address``; return False when it was already present."""

        with self._lock:
            try:
                cur = self._conn.execute(
                    "INSERT OR IGNORE INTO allowlist(ip_address) VALUES (?)", (address,)
                )
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise StoreError(f"Failed to allow-list {address}: {exc}") from exc
            return cur.rowcount > 0

    def remove(self, address: str) -> bool:
        """Delete ``address``; return False when it was absent."""

        with self._lock:
            try:
                cur = self._conn.execute("DELETE FROM allowlist WHERE ip_address = ?", (address,))
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise StoreError(f"Failed to remove {address}: {exc}") from exc
            return cur.rowcount > 0

    def entries(self) -> list[AllowEntry]:
        with self._lock:
            rows = self._conn.execute("SELECT id, ip_address FROM allowlist ORDER BY id").fetchall()
        return [AllowEntry(id=row["id"], address=row["ip_address"]) for row in rows]

    def addresses(self) -> set[str]:
        with self._lock:
            rows = self._conn.execute("SELECT ip_address FROM allowlist").fetchall()
        return {row["ip_address"] for row in rows}


class InMemoryAllowStore:
    """Process-local AllowStore used by tests and dry runs."""

    def __init__(self) -> None:
        self._entries: dict[str, AllowEntry] = {}
        self._next_id = 1
        self._lock = Lock()

    def add(self, address: str) -> bool:
        with self._lock:
            if address in self._entries:
                return False
            self._entries[address] = AllowEntry(id=self._next_id, address=address)
            self._next_id += 1
            return True

    def remove(self, address: str) -> bool:
        with self._lock:
            return self._entries.pop(address, None) is not None

    def entries(self) -> list[AllowEntry]:
        with self._lock:
            return sorted(self._entries.values(), key=lambda entry: entry.id)

    def addresses(self) -> set[str]:
        with self._lock:
            return set(self._entries)


__all__ = ["AllowStore", "InMemoryAllowStore", "SQLiteAllowStore"]
