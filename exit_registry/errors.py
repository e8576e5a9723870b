"""Error taxonomy for exit-registry."""

from __future__ import annotations


class ExitRegistryError(Exception):
    """Base class for every error raised by this package."""


class TransportError(ExitRegistryError):
    """Upstream feed or enrichment call failed (network, timeout, non-2xx)."""

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} ({self.status_code}): {self.url}"
        return f"{self.message}: {self.url}"


class ValidationError(ExitRegistryError):
    """Caller supplied a malformed query parameter."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class NotFoundError(ExitRegistryError):
    """Requested address is absent from a store."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Address not found: {address}")
        self.address = address


class StoreError(ExitRegistryError):
    """Persistent store rejected a read or write."""


class DuplicateAddressError(StoreError):
    """An address record with the same address already exists."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Address already stored: {address}")
        self.address = address


class StoreInitError(StoreError):
    """Database could not be opened or its schema created."""


__all__ = [
    "DuplicateAddressError",
    "ExitRegistryError",
    "NotFoundError",
    "StoreError",
    "StoreInitError",
    "TransportError",
    "ValidationError",
]
