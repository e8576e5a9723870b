"""Idempotent allow-list mutations."""

from __future__ import annotations

from typing import Iterable

import structlog

from ..logging_conf import component_logger
from .allow_store import AllowStore


class AllowlistManager:
    """Add, remove and list allow-listed addresses.

    Adding a present address and removing an absent one are both no-ops.
    """

    def __init__(self, store: AllowStore, logger: structlog.BoundLogger | None = None) -> None:
        self.store = store
        self.logger = logger or component_logger("allowlist")

    def add(self, addresses: Iterable[str]) -> int:
        added = 0
        for address in addresses:
            if self.store.add(address):
                added += 1
        self.logger.info("allowlist_added", added=added)
        return added

    def remove(self, addresses: Iterable[str]) -> int:
        removed = 0
        for address in addresses:
            if self.store.remove(address):
                removed += 1
        self.logger.info("allowlist_removed", removed=removed)
        return removed

    def list(self) -> list[str]:
        return [entry.address for entry in self.store.entries()]


__all__ = ["AllowlistManager"]
