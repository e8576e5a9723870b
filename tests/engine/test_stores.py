from __future__ import annotations

from datetime import datetime, timezone
from threading import Thread

import pytest

from exit_registry.engine import SQLiteAddressStore, SQLiteAllowStore
from exit_registry.errors import DuplicateAddressError
from exit_registry.infra import SQLiteManager
from exit_registry.models import QueryFilter

T1 = datetime(2024, 2, 12, 0, 0, tzinfo=timezone.utc)
T2 = datetime(2024, 2, 12, 0, 0, 0, 500, tzinfo=timezone.utc)


def test_sqlite_address_store_enforces_unique_address(sqlite_manager, db_path) -> None:
    store = SQLiteAddressStore(sqlite_manager, db_path)
    created = store.create("1.2.3.4", "US", T1)
    assert created.id == 1
    assert store.exists("1.2.3.4")
    with pytest.raises(DuplicateAddressError):
        store.create("1.2.3.4", "FR", T2)
    records = store.find(QueryFilter())
    assert [(r.address, r.country_code) for r in records] == [("1.2.3.4", "US")]


def test_sqlite_address_store_roundtrips_timestamps(sqlite_manager, db_path) -> None:
    store = SQLiteAddressStore(sqlite_manager, db_path)
    store.create("a", "US", T1)
    store.create("b", "US", T2)
    assert [r.ingested_at for r in store.find(QueryFilter())] == [T1, T2]
    # Sub-second ordering survives the text representation.
    assert [r.address for r in store.find(QueryFilter(start_time=T1))] == ["b"]
    assert [r.address for r in store.find(QueryFilter(end_time=T2))] == ["a"]


def test_sqlite_address_store_filters_and_excludes(sqlite_manager, db_path) -> None:
    store = SQLiteAddressStore(sqlite_manager, db_path)
    store.create("a", "US", T1)
    store.create("b", "FR", T1)
    store.create("c", "US", T2)
    assert [r.address for r in store.find(QueryFilter(country="US"), exclude={"c"})] == ["a"]
    assert [r.address for r in store.find(QueryFilter(limit=2))] == ["a", "b"]


def test_sqlite_allow_store_is_idempotent(sqlite_manager, db_path) -> None:
    store = SQLiteAllowStore(sqlite_manager, db_path)
    assert store.add("1.1.1.1") is True
    assert store.add("1.1.1.1") is False
    assert store.remove("2.2.2.2") is False
    assert [e.address for e in store.entries()] == ["1.1.1.1"]
    assert store.remove("1.1.1.1") is True
    assert store.addresses() == set()


def test_sqlite_stores_survive_reopen(db_path) -> None:
    first = SQLiteManager()
    SQLiteAddressStore(first, db_path).create("a", "US", T1)
    SQLiteAllowStore(first, db_path).add("b")
    first.close_all()

    second = SQLiteManager()
    assert SQLiteAddressStore(second, db_path).exists("a")
    assert SQLiteAllowStore(second, db_path).addresses() == {"b"}
    second.close_all()


def test_in_memory_address_store_rejects_duplicates(address_store) -> None:
    address_store.create("a", "US", T1)
    with pytest.raises(DuplicateAddressError):
        address_store.create("a", "US", T2)


def test_sqlite_stores_share_one_transaction_lock(sqlite_manager, db_path) -> None:
    addresses = SQLiteAddressStore(sqlite_manager, db_path)
    allow = SQLiteAllowStore(sqlite_manager, db_path)
    assert addresses._lock is allow._lock
    assert addresses._lock is sqlite_manager.lock_for(db_path)


def test_duplicate_rollback_never_discards_allowlist_writes(sqlite_manager, db_path) -> None:
    addresses = SQLiteAddressStore(sqlite_manager, db_path)
    allow = SQLiteAllowStore(sqlite_manager, db_path)
    addresses.create("1.2.3.4", "US", T1)

    def _duplicate_creates() -> None:
        for _ in range(300):
            with pytest.raises(DuplicateAddressError):
                addresses.create("1.2.3.4", "US", T2)

    def _allow_adds() -> None:
        for index in range(300):
            assert allow.add(f"10.0.{index // 256}.{index % 256}") is True

    workers = [Thread(target=_duplicate_creates), Thread(target=_allow_adds)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert len(allow.addresses()) == 300
    reopened = SQLiteManager()
    try:
        assert len(SQLiteAllowStore(reopened, db_path).addresses()) == 300
    finally:
        reopened.close_all()
