"""Version-agnostic collection access interface (Protocol) for chromadmin."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from chromadmin.schemas.models import (
    CollectionInfo,
    Connection,
    OperationResult,
    Record,
    RenameResult,
)


@runtime_checkable
class CollectionBackend(Protocol):
    """
    Protocol that both HttpV1Backend and ChromaV2Backend implement.

    Every method takes the caller's ``Connection`` and a collection *name*;
    how the name is addressed on the wire is the implementation's concern.
    ``where`` is an opaque backend filter passed through verbatim.
    """

    async def list_collections(self, connection: Connection) -> list[CollectionInfo]:
        ...

    async def fetch_records(
        self,
        connection: Connection,
        collection_name: str,
        page: int,
        where: dict[str, Any] | None = None,
    ) -> list[Record]:
        """One page of records with documents and metadata (never embeddings)."""
        ...

    async def fetch_record_detail(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> Record:
        """One record including its embedding. Raises RecordNotFound."""
        ...

    async def count_records(
        self,
        connection: Connection,
        collection_name: str,
        where: dict[str, Any] | None = None,
    ) -> int:
        ...

    async def query_records(
        self, connection: Connection, collection_name: str, query_embedding: list[float]
    ) -> list[Record]:
        """Nearest neighbours of a single vector, each with a distance."""
        ...

    async def query_records_by_id(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> list[Record]:
        """Exact id lookup returning one record at distance 0. Raises RecordNotFound."""
        ...

    async def delete_record(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> OperationResult:
        ...

    async def delete_collection(
        self, connection: Connection, collection_name: str
    ) -> OperationResult:
        ...

    async def rename_collection(
        self, connection: Connection, old_name: str, new_name: str
    ) -> RenameResult:
        """Copy every record into a new collection, then drop the old one."""
        ...
