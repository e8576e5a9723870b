"""Allow-list aware, filtered and paginated reads of stored address records."""

from __future__ import annotations

import re
import sys

from ..errors import ValidationError
from ..models import AddressRecord, QueryFilter, parse_rfc3339
from .address_store import AddressStore
from .allow_store import AllowStore

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


def _blank(value: str | None) -> bool:
    return value is None or value == ""


def parse_count(value: str) -> int:
    text = value.strip()
    if not _INTEGER_PATTERN.match(text):
        raise ValidationError("count", "Invalid pagination parameter")
    count = int(text)
    if count < 0:
        raise ValidationError("count", "Invalid pagination parameter")
    # Beyond the largest SQLite integer every record is returned anyway.
    return min(count, sys.maxsize)


def parse_query_params(
    country: str | None = None,
    starttime: str | None = None,
    endtime: str | None = None,
    count: str | None = None,
) -> QueryFilter:
    """Build a :class:`QueryFilter` from raw request strings.

    Empty strings count as absent. Every parameter is validated before the
    filter is returned, so a malformed value never yields a partial filter.

    Raises:
        ValidationError: for a non-RFC3339 time bound or a non-integer or
            negative count.
    """

    start_time = None if _blank(starttime) else parse_rfc3339(starttime, "starttime")
    end_time = None if _blank(endtime) else parse_rfc3339(endtime, "endtime")
    limit = None if _blank(count) else parse_count(count)
    return QueryFilter(
        country=None if _blank(country) else country,
        start_time=start_time,
        end_time=end_time,
        limit=limit,
    )


class QueryEngine:
    """Serve address records minus every currently allow-listed address.

    Results are ordered by ascending record id (ingestion order), so a
    ``limit`` always returns the same prefix for unchanged data.
    """

    def __init__(self, address_store: AddressStore, allow_store: AllowStore) -> None:
        self.address_store = address_store
        self.allow_store = allow_store

    def query(self, criteria: QueryFilter | None = None) -> list[AddressRecord]:
        criteria = criteria or QueryFilter()
        if criteria.limit == 0:
            return []
        excluded = self.allow_store.addresses()
        return self.address_store.find(criteria, exclude=excluded)


__all__ = ["QueryEngine", "parse_count", "parse_query_params"]
