from __future__ import annotations

import pytest

from exit_registry.errors import StoreInitError
from exit_registry.infra import SQLiteManager


def test_sqlite_manager_initialises_schema(sqlite_manager, db_path) -> None:
    conn = sqlite_manager.connect(db_path)
    nodes = {row["name"] for row in conn.execute("PRAGMA table_info(exit_nodes)").fetchall()}
    allow = {row["name"] for row in conn.execute("PRAGMA table_info(allowlist)").fetchall()}
    assert {"id", "ip_address", "country", "timestamp"}.issubset(nodes)
    assert {"id", "ip_address"}.issubset(allow)


def test_sqlite_manager_reuses_connections(sqlite_manager, db_path) -> None:
    assert sqlite_manager.connect(db_path) is sqlite_manager.connect(db_path)


def test_sqlite_manager_reset(sqlite_manager, db_path) -> None:
    conn = sqlite_manager.connect(db_path)
    conn.execute("INSERT INTO allowlist(ip_address) VALUES ('1.1.1.1')")
    conn.commit()
    sqlite_manager.reset(db_path)
    assert not db_path.exists()
    conn = sqlite_manager.connect(db_path)
    assert conn.execute("SELECT count(*) FROM allowlist").fetchone()[0] == 0


def test_sqlite_manager_raises_store_init_error(tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")
    with pytest.raises(StoreInitError):
        SQLiteManager().connect(blocker / "exit_nodes.db")
