"""HTTP retrieval of the upstream exit-node feed."""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from ..config import FeedConfig
from ..errors import TransportError
from ..logging_conf import component_logger


class SourceFetcher(Protocol):
    def fetch(self) -> list[str]: ...


def parse_feed(text: str) -> list[str]:
    """Split a plaintext feed into addresses, dropping blank lines.

    Duplicates are preserved; the pipeline checks every line against the store.
    """

    return [line.strip() for line in text.splitlines() if line.strip()]


class FeedFetcher:
    """Download the plaintext feed and return one address per line."""

    def __init__(
        self,
        config: FeedConfig,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or component_logger("fetcher")
        self._client = client or httpx.Client(follow_redirects=True, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def fetch(self) -> list[str]:
        url = self.config.url
        try:
            response = self._client.get(url, timeout=self.config.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(url, f"Feed request failed: {exc}") from exc
        if not response.is_success:
            raise TransportError(url, "Unexpected feed status", status_code=response.status_code)
        addresses = parse_feed(response.text)
        self.logger.debug("feed_fetched", url=url, lines=len(addresses))
        return addresses


__all__ = ["FeedFetcher", "SourceFetcher", "parse_feed"]
