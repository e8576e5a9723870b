"""Country lookup for exit-node addresses."""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from ..config import EnrichmentConfig
from ..errors import TransportError
from ..logging_conf import component_logger


class EnrichmentClient(Protocol):
    def lookup(self, address: str) -> str: ...


class CountryLookupClient:
    """Resolve an address to a country code through an HTTP lookup service.

    The raw response body is returned untouched; callers trim it.
    """

    def __init__(
        self,
        config: EnrichmentConfig,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or component_logger("enrichment")
        self._client = client or httpx.Client(follow_redirects=True, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def lookup(self, address: str) -> str:
        url = self.config.url_template.format(address=address)
        params = {"token": self.config.token} if self.config.token else None
        try:
            response = self._client.get(url, params=params, timeout=self.config.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(url, f"Country lookup failed: {exc}") from exc
        if not response.is_success:
            raise TransportError(url, "Unexpected lookup status", status_code=response.status_code)
        return response.text


__all__ = ["CountryLookupClient", "EnrichmentClient"]
