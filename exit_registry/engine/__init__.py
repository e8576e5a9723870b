"""Engine components: stores, upstream clients, ingestion and queries."""

from .address_store import AddressStore, InMemoryAddressStore, SQLiteAddressStore
from .allow_store import AllowStore, InMemoryAllowStore, SQLiteAllowStore
from .allowlist import AllowlistManager
from .enrichment import CountryLookupClient, EnrichmentClient
from .fetcher import FeedFetcher, SourceFetcher, parse_feed
from .pipeline import IngestionPipeline
from .query import QueryEngine, parse_query_params

__all__ = [
    "AddressStore",
    "AllowStore",
    "AllowlistManager",
    "CountryLookupClient",
    "EnrichmentClient",
    "FeedFetcher",
    "InMemoryAddressStore",
    "InMemoryAllowStore",
    "IngestionPipeline",
    "QueryEngine",
    "SQLiteAddressStore",
    "SQLiteAllowStore",
    "SourceFetcher",
    "parse_feed",
    "parse_query_params",
]
