"""Shared fixtures: in-memory stores, scripted upstreams and temp config."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

import pytest

from exit_registry.config import ConfigLocator, ConfigRepository
from exit_registry.engine import InMemoryAddressStore, InMemoryAllowStore
from exit_registry.errors import TransportError
from exit_registry.infra import SQLiteManager


class ScriptedFetcher:
    """SourceFetcher returning queued responses; an exception entry is raised."""

    def __init__(self, *responses: list[str] | Exception) -> None:
        self.responses = list(responses)
        self.calls = 0

    def fetch(self) -> list[str]:
        self.calls += 1
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return list(response)


class ScriptedLookup:
    """EnrichmentClient answering from a mapping; missing addresses fail."""

    def __init__(self, countries: dict[str, str]) -> None:
        self.countries = countries
        self.calls: list[str] = []

    def lookup(self, address: str) -> str:
        self.calls.append(address)
        if address not in self.countries:
            raise TransportError(f"https://lookup.test/{address}", "Country lookup failed")
        return self.countries[address]


@pytest.fixture
def address_store() -> InMemoryAddressStore:
    return InMemoryAddressStore()


@pytest.fixture
def allow_store() -> InMemoryAllowStore:
    return InMemoryAllowStore()


@pytest.fixture
def fixed_clock() -> Callable[..., Callable[[], datetime]]:
    def _builder(*moments: datetime) -> Callable[[], datetime]:
        queue = list(moments) or [datetime(2024, 2, 12, 10, 0, tzinfo=timezone.utc)]

        def _clock() -> datetime:
            return queue.pop(0) if len(queue) > 1 else queue[0]

        return _clock

    return _builder


@pytest.fixture
def scripted_fetcher() -> Callable[..., ScriptedFetcher]:
    return ScriptedFetcher


@pytest.fixture
def scripted_lookup() -> Callable[[dict[str, str]], ScriptedLookup]:
    return ScriptedLookup


@pytest.fixture
def sqlite_manager() -> Iterable[SQLiteManager]:
    manager = SQLiteManager()
    yield manager
    manager.close_all()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "exit_nodes.db"


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("EXIT_REGISTRY_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository
