"""Ingestion cycle: fetch → dedup against store → enrich → persist."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from ..errors import DuplicateAddressError, StoreError, TransportError
from ..logging_conf import component_logger
from ..models import IngestionSummary, format_rfc3339, utc_now
from .address_store import AddressStore
from .enrichment import EnrichmentClient
from .fetcher import SourceFetcher


class IngestionPipeline:
    """Harvest the upstream feed into the address store.

    Every record created by one :meth:`run_once` call shares a single
    snapshot timestamp taken before the first address is processed.
    Existing records are never updated.
    """

    def __init__(
        self,
        fetcher: SourceFetcher,
        enrichment: EnrichmentClient,
        store: AddressStore,
        clock: Callable[[], datetime] = utc_now,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.enrichment = enrichment
        self.store = store
        self.clock = clock
        self.logger = logger or component_logger("pipeline")

    def run_once(self) -> IngestionSummary:
        try:
            addresses = self.fetcher.fetch()
        except TransportError as exc:
            self.logger.error("fetch_failed", url=exc.url, status=exc.status_code, error=str(exc))
            summary = IngestionSummary(ingested_at=self.clock(), aborted=True)
            self.logger.info("ingestion_completed", **summary.as_dict())
            return summary

        summary = IngestionSummary(ingested_at=self.clock(), fetched=len(addresses))
        for address in addresses:
            self._ingest_address(address, summary)
        self.logger.info("ingestion_completed", **summary.as_dict())
        return summary

    def _ingest_address(self, address: str, summary: IngestionSummary) -> None:
        # Re-checked per item so a repeated line in one feed is only stored once.
        if self.store.exists(address):
            summary.skipped += 1
            return
        try:
            country = self.enrichment.lookup(address).strip()
        except TransportError as exc:
            self.logger.warning("enrichment_failed", address=address, error=str(exc))
            summary.failed += 1
            return
        try:
            record = self.store.create(address, country, summary.ingested_at)
        except DuplicateAddressError:
            self.logger.info("record_exists", address=address)
            summary.skipped += 1
            return
        except StoreError as exc:
            self.logger.error("record_create_failed", address=address, error=str(exc))
            summary.failed += 1
            return
        summary.created += 1
        self.logger.debug(
            "record_created",
            address=record.address,
            country=record.country_code,
            ingested_at=format_rfc3339(record.ingested_at),
        )


__all__ = ["IngestionPipeline"]
