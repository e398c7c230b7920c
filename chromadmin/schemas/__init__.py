"""Pydantic models for connections, records and collections."""

from chromadmin.schemas.models import (
    ApiVersion,
    Auth,
    AuthType,
    CollectionInfo,
    Connection,
    OperationResult,
    Record,
    RenameResult,
)

__all__ = [
    "ApiVersion",
    "Auth",
    "AuthType",
    "CollectionInfo",
    "Connection",
    "OperationResult",
    "Record",
    "RenameResult",
]
