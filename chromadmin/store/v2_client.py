"""Current (v2) Chroma API through the chromadb async HTTP client, addressed by name."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import chromadb
import httpx
from chromadb.config import Settings as ChromaSettings

from chromadmin.config import Settings, get_settings
from chromadmin.errors import RecordNotFound, query_error
from chromadmin.schemas.models import (
    AuthType,
    CollectionInfo,
    Connection,
    OperationResult,
    Record,
    RenameResult,
)
from chromadmin.store.cache import CollectionIdCache

logger = logging.getLogger(__name__)

_LIST_INCLUDE = ["documents", "metadatas"]
_DETAIL_INCLUDE = ["documents", "metadatas", "embeddings"]
_QUERY_INCLUDE = ["documents", "embeddings", "metadatas", "distances"]

ClientFactory = Callable[[Connection], Awaitable[Any]]


def _chroma_settings(connection: Connection) -> ChromaSettings:
    auth = connection.auth
    if auth.auth_type == AuthType.TOKEN and auth.token:
        return ChromaSettings(
            anonymized_telemetry=False,
            chroma_client_auth_provider="chromadb.auth.token_authn.TokenAuthClientProvider",
            chroma_client_auth_credentials=auth.token,
        )
    if auth.auth_type == AuthType.BASIC and auth.username:
        return ChromaSettings(
            anonymized_telemetry=False,
            chroma_client_auth_provider="chromadb.auth.basic_authn.BasicAuthClientProvider",
            chroma_client_auth_credentials=f"{auth.username}:{auth.password}",
        )
    return ChromaSettings(anonymized_telemetry=False)


async def connect(connection: Connection) -> Any:
    """
    Open a chromadb AsyncHttpClient scoped to the connection's tenant and database.

    The full base URL is passed as the host so a reverse-proxy path prefix
    survives; without an explicit port the scheme's default is used, as on v1.
    """
    url = httpx.URL(connection.base_url)
    ssl = url.scheme == "https"
    return await chromadb.AsyncHttpClient(
        host=connection.base_url,
        port=url.port or (443 if ssl else 80),
        ssl=ssl,
        tenant=connection.tenant,
        database=connection.database,
        settings=_chroma_settings(connection),
    )


def _vector(values: Any) -> list[float] | None:
    """Embeddings come back as lists or numpy arrays depending on the client build."""
    if values is None:
        return None
    return [float(v) for v in values]


def _at(values: Any, index: int) -> Any:
    if values is None or index >= len(values):
        return None
    return values[index]


def _raise_on_error(result: Any) -> None:
    if isinstance(result, dict) and result.get("error") is not None:
        raise query_error(str(result["error"]))


class ChromaV2Backend:
    """
    Same operations as HttpV1Backend, but the chromadb client addresses
    collections by name, so no id resolution is needed. The shared cache is
    only touched to forget a renamed collection.
    """

    def __init__(
        self,
        cache: CollectionIdCache,
        settings: Settings | None = None,
        client_factory: ClientFactory | None = None,
    ):
        settings = settings or get_settings()
        self._cache = cache
        self._page_size = settings.chromadmin_page_size
        self._query_k = settings.chromadmin_query_results
        self._connect = client_factory or connect

    async def _collection(self, connection: Connection, name: str) -> Any:
        client = await self._connect(connection)
        return await client.get_collection(name=name)

    # ── public API (matches CollectionBackend protocol) ──────────────────

    async def list_collections(self, connection: Connection) -> list[CollectionInfo]:
        client = await self._connect(connection)
        out: list[CollectionInfo] = []
        for c in await client.list_collections():
            if isinstance(c, str):
                out.append(CollectionInfo(name=c))
            else:
                out.append(CollectionInfo(name=c.name, id=str(c.id), metadata=c.metadata))
        return out

    async def fetch_records(
        self,
        connection: Connection,
        collection_name: str,
        page: int,
        where: dict[str, Any] | None = None,
    ) -> list[Record]:
        collection = await self._collection(connection, collection_name)
        result = await collection.get(
            where=where or None,
            limit=self._page_size,
            offset=(page - 1) * self._page_size,
            include=_LIST_INCLUDE,
        )
        documents = result.get("documents")
        metadatas = result.get("metadatas")
        return [
            Record(id=record_id, document=_at(documents, i), metadata=_at(metadatas, i))
            for i, record_id in enumerate(result["ids"])
        ]

    async def fetch_record_detail(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> Record:
        collection = await self._collection(connection, collection_name)
        result = await collection.get(ids=[record_id], include=_DETAIL_INCLUDE)
        if not result["ids"]:
            raise RecordNotFound(record_id)
        return Record(
            id=result["ids"][0],
            document=_at(result.get("documents"), 0),
            metadata=_at(result.get("metadatas"), 0),
            embedding=_vector(_at(result.get("embeddings"), 0)),
        )

    async def count_records(
        self,
        connection: Connection,
        collection_name: str,
        where: dict[str, Any] | None = None,
    ) -> int:
        collection = await self._collection(connection, collection_name)
        if not where:
            return await collection.count()
        result = await collection.get(where=where, include=[])
        return len(result["ids"])

    async def query_records(
        self, connection: Connection, collection_name: str, query_embedding: list[float]
    ) -> list[Record]:
        collection = await self._collection(connection, collection_name)
        result = await collection.query(
            query_embeddings=[query_embedding],
            n_results=self._query_k,
            include=_QUERY_INCLUDE,
        )
        _raise_on_error(result)

        documents = _at(result.get("documents"), 0)
        metadatas = _at(result.get("metadatas"), 0)
        embeddings = _at(result.get("embeddings"), 0)
        distances = _at(result.get("distances"), 0)
        return [
            Record(
                id=record_id,
                document=_at(documents, i),
                metadata=_at(metadatas, i),
                embedding=_vector(_at(embeddings, i)),
                distance=_at(distances, i),
            )
            for i, record_id in enumerate(result["ids"][0])
        ]

    async def query_records_by_id(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> list[Record]:
        collection = await self._collection(connection, collection_name)
        result = await collection.get(ids=[record_id], include=_DETAIL_INCLUDE)
        _raise_on_error(result)
        if not result["ids"]:
            raise RecordNotFound(record_id)
        return [
            Record(
                id=result["ids"][0],
                document=_at(result.get("documents"), 0),
                metadata=_at(result.get("metadatas"), 0),
                embedding=_vector(_at(result.get("embeddings"), 0)),
                distance=0.0,
            )
        ]

    async def delete_record(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> OperationResult:
        collection = await self._collection(connection, collection_name)
        await collection.delete(ids=[record_id])
        return OperationResult(success=True)

    async def delete_collection(
        self, connection: Connection, collection_name: str
    ) -> OperationResult:
        client = await self._connect(connection)
        await client.delete_collection(name=collection_name)
        logger.info("Deleted collection '%s' (%s)", collection_name, connection.base_url)
        return OperationResult(success=True)

    async def rename_collection(
        self, connection: Connection, old_name: str, new_name: str
    ) -> RenameResult:
        client = await self._connect(connection)
        old = await client.get_collection(name=old_name)
        records = await old.get(include=_DETAIL_INCLUDE)
        logger.info("Renaming '%s' -> '%s': copying %d records", old_name, new_name, len(records["ids"]))

        new = await client.create_collection(name=new_name)
        try:
            if records["ids"]:
                embeddings = records.get("embeddings")
                await new.add(
                    ids=records["ids"],
                    documents=records.get("documents"),
                    embeddings=None if embeddings is None else [_vector(e) for e in embeddings],
                    metadatas=records.get("metadatas"),
                )
            await client.delete_collection(name=old_name)
        except Exception:
            logger.warning(
                "Rename '%s' -> '%s' failed after creating the new collection; both may now exist",
                old_name,
                new_name,
            )
            raise

        self._cache.forget(connection, old_name)
        return RenameResult(success=True, new_name=new_name)
