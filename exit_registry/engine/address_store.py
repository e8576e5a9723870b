"""Durable keyed store of ingested exit-node address records."""

from __future__ import annotations

import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Collection, Protocol

from ..errors import DuplicateAddressError, StoreError
from ..infra.storage import SQLiteManager
from ..models import AddressRecord, QueryFilter, from_storage, normalise_utc, to_storage


class AddressStore(Protocol):
    """Records unique on address, returned in ascending ``id`` order."""

    def exists(self, address: str) -> bool: ...

    def create(self, address: str, country_code: str, ingested_at: datetime) -> AddressRecord: ...

    def find(self, criteria: QueryFilter, exclude: Collection[str] = ()) -> list[AddressRecord]: ...


class SQLiteAddressStore:
    """AddressStore backed by the ``exit_nodes`` table."""

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self._conn = self.manager.connect(db_path)
        self._lock = self.manager.lock_for(db_path)

    def exists(self, address: str) -> bool:
        with self._lock:
            cur = self._conn.execute("SELECT 1 FROM exit_nodes WHERE ip_address = ?", (address,))
            return cur.fetchone() is not None

    def create(self, address: str, country_code: str, ingested_at: datetime) -> AddressRecord:
        ingested_at = normalise_utc(ingested_at)
        with self._lock:
            try:
                cur = self._conn.execute(
                    "INSERT INTO exit_nodes(ip_address, country, timestamp) VALUES (?, ?, ?)",
                    (address, country_code, to_storage(ingested_at)),
                )
                self._conn.commit()
            except sqlite3.IntegrityError as exc:
                self._conn.rollback()
                raise DuplicateAddressError(address) from exc
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise StoreError(f"Failed to store {address}: {exc}") from exc
        return AddressRecord(
            id=int(cur.lastrowid),
            address=address,
            country_code=country_code,
            ingested_at=ingested_at,
        )

    def find(self, criteria: QueryFilter, exclude: Collection[str] = ()) -> list[AddressRecord]:
        clauses: list[str] = []
        params: list[object] = []
        if exclude:
            placeholders = ", ".join("?" for _ in exclude)
            clauses.append(f"ip_address NOT IN ({placeholders})")
            params.extend(exclude)
        if criteria.country is not None:
            clauses.append("country = ?")
            params.append(criteria.country)
        if criteria.start_time is not None:
            clauses.append("timestamp > ?")
            params.append(to_storage(criteria.start_time))
        if criteria.end_time is not None:
            clauses.append("timestamp < ?")
            params.append(to_storage(criteria.end_time))
        sql = "SELECT id, ip_address, country, timestamp FROM exit_nodes"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY id"
        if criteria.limit is not None:
            sql += " LIMIT ?"
            params.append(min(criteria.limit, sys.maxsize))
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [
            AddressRecord(
                id=row["id"],
                address=row["ip_address"],
                country_code=row["country"],
                ingested_at=from_storage(row["timestamp"]),
            )
            for row in rows
        ]


class InMemoryAddressStore:
    """Process-local AddressStore used by tests and dry runs."""

    def __init__(self) -> None:
        self._records: dict[str, AddressRecord] = {}
        self._next_id = 1
        self._lock = Lock()

    def exists(self, address: str) -> bool:
        with self._lock:
            return address in self._records

    def create(self, address: str, country_code: str, ingested_at: datetime) -> AddressRecord:
        with self._lock:
            if address in self._records:
                raise DuplicateAddressError(address)
            record = AddressRecord(
                id=self._next_id,
                address=address,
                country_code=country_code,
                ingested_at=normalise_utc(ingested_at),
            )
            self._records[address] = record
            self._next_id += 1
            return record

    def find(self, criteria: QueryFilter, exclude: Collection[str] = ()) -> list[AddressRecord]:
        excluded = set(exclude)
        with self._lock:
            records = sorted(self._records.values(), key=lambda record: record.id)
        matched = [r for r in records if r.address not in excluded and criteria.matches(r)]
        if criteria.limit is not None:
            return matched[: criteria.limit]
        return matched


__all__ = ["AddressStore", "InMemoryAddressStore", "SQLiteAddressStore"]
