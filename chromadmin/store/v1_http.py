"""Legacy (v1) Chroma REST API: raw HTTP calls addressed by collection id."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from chromadmin.config import Settings, get_settings
from chromadmin.errors import RecordNotFound, TransportError, query_error
from chromadmin.schemas.models import (
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


def _at(values: list[Any] | None, index: int) -> Any:
    if values is None or index >= len(values):
        return None
    return values[index]


class HttpV1Backend:
    """
    Talks to ``<url>/api/v1`` with httpx. Every per-collection operation except
    list/create/delete needs the collection's backend id, resolved through the
    shared ``CollectionIdCache``.

    Redirects are not followed by httpx: a 3xx with a Location header is
    re-issued once with the original method, headers and body, since default
    redirect handling turns a POST behind a reverse proxy into a GET.
    """

    def __init__(
        self,
        cache: CollectionIdCache,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        self._cache = cache
        self._page_size = settings.chromadmin_page_size
        self._query_k = settings.chromadmin_query_results
        self._timeout = settings.chromadmin_request_timeout
        self._transport = transport

    # ── transport ────────────────────────────────────────────────────────

    @staticmethod
    def _headers(connection: Connection) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        authorization = connection.auth.authorization_header()
        if authorization:
            headers["Authorization"] = authorization
        return headers

    async def _request(
        self,
        connection: Connection,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        url = f"{connection.base_url}/api/v1{path}"
        headers = self._headers(connection)
        content = json.dumps(body) if body is not None else None

        async with httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=False,
            timeout=self._timeout,
        ) as client:
            resp = await client.request(method, url, headers=headers, content=content, params=params)
            location = resp.headers.get("location")
            if 300 <= resp.status_code < 400 and location:
                target = resp.request.url.join(location)
                logger.debug("Following %s redirect %s -> %s", resp.status_code, resp.request.url, target)
                resp = await client.request(method, target, headers=headers, content=content)

        if not resp.is_success:
            raise TransportError(resp.status_code, resp.text, str(resp.request.url))
        return resp.json()

    def _scope(self, connection: Connection) -> dict[str, str]:
        return {"tenant": connection.tenant, "database": connection.database}

    async def _list_raw(self, connection: Connection) -> list[CollectionInfo]:
        data = await self._request(connection, "GET", "/collections", params=self._scope(connection))
        return [
            CollectionInfo(name=c["name"], id=c["id"], metadata=c.get("metadata"))
            for c in data
        ]

    async def _collection_id(self, connection: Connection, name: str) -> str:
        return await self._cache.resolve(connection, name, self._list_raw)

    async def _get(self, connection: Connection, collection_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request(connection, "POST", f"/collections/{collection_id}/get", body=body)

    # ── public API (matches CollectionBackend protocol) ──────────────────

    async def list_collections(self, connection: Connection) -> list[CollectionInfo]:
        collections = await self._list_raw(connection)
        self._cache.remember_all(connection, collections)
        return collections

    async def fetch_records(
        self,
        connection: Connection,
        collection_name: str,
        page: int,
        where: dict[str, Any] | None = None,
    ) -> list[Record]:
        collection_id = await self._collection_id(connection, collection_name)
        body: dict[str, Any] = {
            "limit": self._page_size,
            "offset": (page - 1) * self._page_size,
            "include": _LIST_INCLUDE,
        }
        if where:
            body["where"] = where
        data = await self._get(connection, collection_id, body)
        return [
            Record(
                id=record_id,
                document=_at(data.get("documents"), i),
                metadata=_at(data.get("metadatas"), i),
            )
            for i, record_id in enumerate(data["ids"])
        ]

    async def fetch_record_detail(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> Record:
        collection_id = await self._collection_id(connection, collection_name)
        data = await self._get(
            connection, collection_id, {"ids": [record_id], "include": _DETAIL_INCLUDE}
        )
        if not data["ids"]:
            raise RecordNotFound(record_id)
        return Record(
            id=data["ids"][0],
            document=_at(data.get("documents"), 0),
            metadata=_at(data.get("metadatas"), 0),
            embedding=_at(data.get("embeddings"), 0),
        )

    async def count_records(
        self,
        connection: Connection,
        collection_name: str,
        where: dict[str, Any] | None = None,
    ) -> int:
        collection_id = await self._collection_id(connection, collection_name)
        if not where:
            return await self._request(connection, "GET", f"/collections/{collection_id}/count")
        data = await self._get(connection, collection_id, {"where": where, "include": []})
        return len(data["ids"])

    async def query_records(
        self, connection: Connection, collection_name: str, query_embedding: list[float]
    ) -> list[Record]:
        collection_id = await self._collection_id(connection, collection_name)
        data = await self._request(
            connection,
            "POST",
            f"/collections/{collection_id}/query",
            body={
                # the wire format is batch-oriented; one query -> one-element batch
                "query_embeddings": [query_embedding],
                "n_results": self._query_k,
                "include": _QUERY_INCLUDE,
            },
        )
        if data.get("error"):
            raise query_error(data["error"])

        documents = _at(data.get("documents"), 0)
        metadatas = _at(data.get("metadatas"), 0)
        embeddings = _at(data.get("embeddings"), 0)
        distances = _at(data.get("distances"), 0)
        return [
            Record(
                id=record_id,
                document=_at(documents, i),
                metadata=_at(metadatas, i),
                embedding=_at(embeddings, i),
                distance=_at(distances, i),
            )
            for i, record_id in enumerate(data["ids"][0])
        ]

    async def query_records_by_id(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> list[Record]:
        collection_id = await self._collection_id(connection, collection_name)
        data = await self._get(
            connection, collection_id, {"ids": [record_id], "include": _DETAIL_INCLUDE}
        )
        if data.get("error"):
            raise query_error(data["error"])
        if not data["ids"]:
            raise RecordNotFound(record_id)
        return [
            Record(
                id=data["ids"][0],
                document=_at(data.get("documents"), 0),
                metadata=_at(data.get("metadatas"), 0),
                embedding=_at(data.get("embeddings"), 0),
                distance=0.0,
            )
        ]

    async def delete_record(
        self, connection: Connection, collection_name: str, record_id: str
    ) -> OperationResult:
        collection_id = await self._collection_id(connection, collection_name)
        await self._request(
            connection, "POST", f"/collections/{collection_id}/delete", body={"ids": [record_id]}
        )
        return OperationResult(success=True)

    async def delete_collection(
        self, connection: Connection, collection_name: str
    ) -> OperationResult:
        await self._request(
            connection, "DELETE", f"/collections/{collection_name}", params=self._scope(connection)
        )
        logger.info("Deleted collection '%s' (%s)", collection_name, connection.base_url)
        return OperationResult(success=True)

    async def rename_collection(
        self, connection: Connection, old_name: str, new_name: str
    ) -> RenameResult:
        old_id = await self._collection_id(connection, old_name)
        records = await self._get(connection, old_id, {"include": _DETAIL_INCLUDE})
        logger.info("Renaming '%s' -> '%s': copying %d records", old_name, new_name, len(records["ids"]))

        created = await self._request(
            connection, "POST", "/collections", body={"name": new_name}, params=self._scope(connection)
        )
        new_id = created.get("id") if isinstance(created, dict) else None
        try:
            if not new_id:
                self._cache.forget(connection, new_name)
                new_id = await self._collection_id(connection, new_name)
            if records["ids"]:
                await self._request(
                    connection,
                    "POST",
                    f"/collections/{new_id}/add",
                    body={
                        "ids": records["ids"],
                        "documents": records.get("documents"),
                        "embeddings": records.get("embeddings"),
                        "metadatas": records.get("metadatas"),
                    },
                )
            await self.delete_collection(connection, old_name)
        except Exception:
            logger.warning(
                "Rename '%s' -> '%s' failed after creating the new collection; both may now exist",
                old_name,
                new_name,
            )
            raise

        self._cache.forget(connection, old_name)
        return RenameResult(success=True, new_name=new_name)
