"""Collection access across both Chroma API generations (v1 raw HTTP, v2 chromadb client)."""

from __future__ import annotations

from typing import Any

import httpx

from chromadmin.config import Settings, get_settings
from chromadmin.schemas.models import (
    ApiVersion,
    CollectionInfo,
    Connection,
    OperationResult,
    Record,
    RenameResult,
)
from chromadmin.store.base import CollectionBackend
from chromadmin.store.cache import CollectionIdCache
from chromadmin.store.v1_http import HttpV1Backend
from chromadmin.store.v2_client import ChromaV2Backend, ClientFactory


class CollectionStore:
    """
    Single call surface for route handlers and the CLI.

    Holds the process-wide ``CollectionIdCache`` and one backend per API
    version; each method forwards its arguments unchanged to the backend
    selected by ``api_version`` (v1 when omitted). No validation or error
    translation happens here.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: CollectionIdCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client_factory: ClientFactory | None = None,
    ):
        settings = settings or get_settings()
        self.cache = cache or CollectionIdCache(ttl_seconds=settings.chromadmin_cache_ttl_seconds)
        self._backends: dict[ApiVersion, CollectionBackend] = {
            ApiVersion.V1: HttpV1Backend(self.cache, settings, transport=transport),
            ApiVersion.V2: ChromaV2Backend(self.cache, settings, client_factory=client_factory),
        }

    def backend(self, api_version: ApiVersion | str = ApiVersion.V1) -> CollectionBackend:
        return self._backends[ApiVersion(api_version)]

    def close(self) -> None:
        """Drop every cached resolution."""
        self.cache.clear()

    async def fetch_collections(
        self, connection: Connection, api_version: ApiVersion | str = ApiVersion.V1
    ) -> list[CollectionInfo]:
        return await self.backend(api_version).list_collections(connection)

    async def fetch_records(
        self,
        connection: Connection,
        collection_name: str,
        page: int,
        where: dict[str, Any] | None = None,
        api_version: ApiVersion | str = ApiVersion.V1,
    ) -> list[Record]:
        return await self.backend(api_version).fetch_records(connection, collection_name, page, where)

    async def fetch_record_detail(
        self,
        connection: Connection,
        collection_name: str,
        record_id: str,
        api_version: ApiVersion | str = ApiVersion.V1,
    ) -> Record:
        return await self.backend(api_version).fetch_record_detail(connection, collection_name, record_id)

    async def count_records(
        self,
        connection: Connection,
        collection_name: str,
        where: dict[str, Any] | None = None,
        api_version: ApiVersion | str = ApiVersion.V1,
    ) -> int:
        return await self.backend(api_version).count_records(connection, collection_name, where)

    async def query_records(
        self,
        connection: Connection,
        collection_name: str,
        query_embedding: list[float],
        api_version: ApiVersion | str = ApiVersion.V1,
    ) -> list[Record]:
        return await self.backend(api_version).query_records(connection, collection_name, query_embedding)

    async def query_records_by_id(
        self,
        connection: Connection,
        collection_name: str,
        record_id: str,
        api_version: ApiVersion | str = ApiVersion.V1,
    ) -> list[Record]:
        return await self.backend(api_version).query_records_by_id(connection, collection_name, record_id)

    async def delete_record(
        self,
        connection: Connection,
        collection_name: str,
        record_id: str,
        api_version: ApiVersion | str = ApiVersion.V1,
    ) -> OperationResult:
        return await self.backend(api_version).delete_record(connection, collection_name, record_id)

    async def delete_collection(
        self,
        connection: Connection,
        collection_name: str,
        api_version: ApiVersion | str = ApiVersion.V1,
    ) -> OperationResult:
        return await self.backend(api_version).delete_collection(connection, collection_name)

    async def rename_collection(
        self,
        connection: Connection,
        old_name: str,
        new_name: str,
        api_version: ApiVersion | str = ApiVersion.V1,
    ) -> RenameResult:
        return await self.backend(api_version).rename_collection(connection, old_name, new_name)


def get_collection_store(settings: Settings | None = None) -> CollectionStore:
    """Factory that builds a store (and its cache) from the configured settings."""
    return CollectionStore(settings=settings or get_settings())


__all__ = [
    "ChromaV2Backend",
    "CollectionBackend",
    "CollectionIdCache",
    "CollectionStore",
    "HttpV1Backend",
    "get_collection_store",
]
