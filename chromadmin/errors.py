"""Errors raised by the collection access layer.

Route handlers map these to HTTP status codes; the access layer itself never
recovers from them.
"""

from __future__ import annotations


class ChromAdminError(Exception):
    """Base class for access-layer failures."""


class CollectionNotFound(ChromAdminError):
    """Raised when a collection name is absent from a fresh list response."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Collection '{name}' not found")


class RecordNotFound(ChromAdminError):
    """Raised when an id-scoped get returns zero records."""

    def __init__(self, record_id: str | None = None):
        self.record_id = record_id
        super().__init__("RecordNotFound")


class QueryError(ChromAdminError):
    """Backend-reported error carried in a query or get response body."""


class InvalidDimension(QueryError):
    """Query embedding does not match the collection's dimensionality."""


class TransportError(ChromAdminError):
    """Non-2xx HTTP response from the legacy API (after redirect resolution)."""

    def __init__(self, status_code: int, body: str, url: str = ""):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"Failed to fetch {url} with status {status_code}: {body}")


def query_error(message: str) -> QueryError:
    """Classify a backend error message into the matching QueryError subclass."""
    if "InvalidDimension" in message:
        return InvalidDimension(message)
    return QueryError(message)
