"""Request and response schemas for the HTTP adapter."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..models import AddressRecord, format_rfc3339


class AllowlistRequest(BaseModel):
    ip_addresses: list[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class AllowlistResponse(BaseModel):
    allowlist: list[str]


class ExitNodeOut(BaseModel):
    id: int
    ip_address: str
    country: str
    timestamp: str

    @classmethod
    def from_record(cls, record: AddressRecord) -> "ExitNodeOut":
        return cls(
            id=record.id,
            ip_address=record.address,
            country=record.country_code,
            timestamp=format_rfc3339(record.ingested_at),
        )


class ExitNodesResponse(BaseModel):
    tor_exit_nodes: list[ExitNodeOut]


__all__ = [
    "AllowlistRequest",
    "AllowlistResponse",
    "ErrorResponse",
    "ExitNodeOut",
    "ExitNodesResponse",
    "MessageResponse",
]
