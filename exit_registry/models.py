"""Value types shared by the ingestion pipeline, stores and query engine."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .errors import ValidationError

# RFC3339 date-time: full date, "T", full time with mandatory offset.
_RFC3339_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)
_STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalise_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are assumed UTC)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_rfc3339(value: str, field: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware UTC datetime.

    Raises:
        ValidationError: when ``value`` is not a valid RFC3339 date-time.
    """

    text = value.strip()
    if not _RFC3339_PATTERN.match(text):
        raise ValidationError(field, f"Invalid {field} format")
    normalized = text.upper()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        return normalise_utc(datetime.fromisoformat(normalized))
    except (ValueError, OverflowError) as exc:
        # OverflowError: offset pushes the value outside the datetime range.
        raise ValidationError(field, f"Invalid {field} format") from exc


def format_rfc3339(value: datetime) -> str:
    return normalise_utc(value).isoformat().replace("+00:00", "Z")


def to_storage(value: datetime) -> str:
    """Fixed-width UTC text so lexical order equals chronological order."""

    return normalise_utc(value).strftime(_STORAGE_FORMAT)


def from_storage(value: str) -> datetime:
    return normalise_utc(datetime.fromisoformat(value))


@dataclass(frozen=True, slots=True)
class AddressRecord:
    """An ingested exit-node address with its country and ingestion time."""

    id: int
    address: str
    country_code: str
    ingested_at: datetime


@dataclass(frozen=True, slots=True)
class AllowEntry:
    """An address suppressed from every served result."""

    id: int
    address: str


@dataclass(frozen=True, slots=True)
class QueryFilter:
    """Optional restrictions applied by :class:`~exit_registry.engine.query.QueryEngine`.

    Both time bounds are exclusive. ``limit`` truncates the ordered result.
    """

    country: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValidationError("count", "Invalid pagination parameter")

    def matches(self, record: AddressRecord) -> bool:
        if self.country is not None and record.country_code != self.country:
            return False
        if self.start_time is not None and not record.ingested_at > self.start_time:
            return False
        if self.end_time is not None and not record.ingested_at < self.end_time:
            return False
        return True


@dataclass(slots=True)
class IngestionSummary:
    """Counters describing one ingestion cycle."""

    ingested_at: datetime
    fetched: int = 0
    created: int = 0
    skipped: int = 0
    failed: int = 0
    aborted: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "ingested_at": format_rfc3339(self.ingested_at),
            "fetched": self.fetched,
            "created": self.created,
            "skipped": self.skipped,
            "failed": self.failed,
            "aborted": self.aborted,
        }


__all__ = [
    "AddressRecord",
    "AllowEntry",
    "IngestionSummary",
    "QueryFilter",
    "format_rfc3339",
    "from_storage",
    "normalise_utc",
    "parse_rfc3339",
    "to_storage",
    "utc_now",
]
