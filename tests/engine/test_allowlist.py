from __future__ import annotations

from exit_registry.engine import AllowlistManager


def test_add_is_idempotent(allow_store) -> None:
    manager = AllowlistManager(allow_store)
    assert manager.add(["1.2.3.4"]) == 1
    assert manager.add(["1.2.3.4"]) == 0
    assert manager.list() == ["1.2.3.4"]


def test_add_tolerates_duplicates_within_one_request(allow_store) -> None:
    manager = AllowlistManager(allow_store)
    manager.add(["1.1.1.1", "2.2.2.2", "1.1.1.1"])
    assert manager.list() == ["1.1.1.1", "2.2.2.2"]


def test_remove_absent_address_is_a_noop(allow_store) -> None:
    manager = AllowlistManager(allow_store)
    manager.add(["1.1.1.1"])
    assert manager.remove(["9.9.9.9"]) == 0
    assert manager.list() == ["1.1.1.1"]


def test_remove_deletes_present_addresses(allow_store) -> None:
    manager = AllowlistManager(allow_store)
    manager.add(["1.1.1.1", "2.2.2.2", "3.3.3.3"])
    assert manager.remove(["2.2.2.2", "4.4.4.4"]) == 1
    assert manager.list() == ["1.1.1.1", "3.3.3.3"]


def test_list_empty(allow_store) -> None:
    assert AllowlistManager(allow_store).list() == []
