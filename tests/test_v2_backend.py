"""Tests for the v2 backend against an in-memory stand-in for the chromadb async client."""

from typing import Any

import chromadb
import pytest

from chromadmin.errors import InvalidDimension, RecordNotFound
from chromadmin.schemas.models import ApiVersion, Auth, AuthType, Connection
from chromadmin.store import CollectionStore
from chromadmin.store.v2_client import _chroma_settings, connect


class FakeCollection:
    def __init__(self, name: str, rows: dict[str, dict[str, Any]] | None = None):
        self.name = name
        self.id = f"uuid-{name}"
        self.metadata = {}
        self.rows = dict(rows or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.query_result: dict[str, Any] | None = None
        self.fail_add = False

    async def get(self, ids=None, where=None, limit=None, offset=None, include=None):
        self.calls.append(("get", {"ids": ids, "where": where, "limit": limit, "offset": offset, "include": include}))
        keys = [k for k in self.rows if ids is None or k in ids]
        if where:
            keys = [k for k in keys if all(self.rows[k]["metadata"].get(f) == v for f, v in where.items())]
        keys = keys[offset or 0:]
        if limit is not None:
            keys = keys[:limit]
        include = include or []
        return {
            "ids": keys,
            "documents": [self.rows[k]["document"] for k in keys] if "documents" in include else None,
            "metadatas": [self.rows[k]["metadata"] for k in keys] if "metadatas" in include else None,
            "embeddings": [tuple(self.rows[k]["embedding"]) for k in keys] if "embeddings" in include else None,
        }

    async def count(self):
        self.calls.append(("count", {}))
        return len(self.rows)

    async def query(self, query_embeddings, n_results, include):
        self.calls.append(("query", {"query_embeddings": query_embeddings, "n_results": n_results, "include": include}))
        return self.query_result

    async def add(self, ids, documents=None, embeddings=None, metadatas=None):
        self.calls.append(("add", {"ids": ids, "documents": documents, "embeddings": embeddings, "metadatas": metadatas}))
        if self.fail_add:
            raise RuntimeError("add rejected")
        for i, record_id in enumerate(ids):
            self.rows[record_id] = {
                "document": documents[i] if documents else None,
                "metadata": metadatas[i] if metadatas else None,
                "embedding": embeddings[i] if embeddings else None,
            }

    async def delete(self, ids):
        self.calls.append(("delete", {"ids": ids}))
        for record_id in ids:
            self.rows.pop(record_id, None)


class FakeClient:
    def __init__(self, *collections: FakeCollection, bare_names: bool = False):
        self.collections = {c.name: c for c in collections}
        self.bare_names = bare_names
        self.calls: list[tuple[str, str]] = []
        self.next_add_fails = False

    async def list_collections(self):
        self.calls.append(("list_collections", ""))
        if self.bare_names:
            return list(self.collections)
        return list(self.collections.values())

    async def get_collection(self, name):
        self.calls.append(("get_collection", name))
        if name not in self.collections:
            raise ValueError(f"Collection {name} does not exist.")
        return self.collections[name]

    async def create_collection(self, name):
        self.calls.append(("create_collection", name))
        collection = FakeCollection(name)
        collection.fail_add = self.next_add_fails
        self.collections[name] = collection
        return collection

    async def delete_collection(self, name):
        self.calls.append(("delete_collection", name))
        del self.collections[name]


def _rows(n: int) -> dict[str, dict[str, Any]]:
    return {
        f"r{i}": {"document": f"doc {i}", "metadata": {"n": i, "kind": "even" if i % 2 == 0 else "odd"}, "embedding": [float(i), 0.5]}
        for i in range(n)
    }


@pytest.fixture
def docs():
    return FakeCollection("docs", _rows(45))


@pytest.fixture
def client(docs):
    return FakeClient(docs, FakeCollection("images"))


@pytest.fixture
def v2_store(settings, cache, client):
    async def factory(connection):
        return client

    return CollectionStore(settings=settings, cache=cache, client_factory=factory)


@pytest.fixture
def conn():
    return Connection(url="https://chroma.example.com")


@pytest.mark.asyncio
async def test_list_collections_accepts_objects_and_bare_names(v2_store, client, conn):
    collections = await v2_store.fetch_collections(conn, ApiVersion.V2)
    assert [(c.name, c.id) for c in collections] == [("docs", "uuid-docs"), ("images", "uuid-images")]

    client.bare_names = True
    collections = await v2_store.fetch_collections(conn, "v2")
    assert [(c.name, c.id) for c in collections] == [("docs", None), ("images", None)]


@pytest.mark.asyncio
async def test_fetch_records_pages_by_name(v2_store, client, docs, conn):
    records = await v2_store.fetch_records(conn, "docs", 3, api_version="v2")

    assert [r.id for r in records] == [f"r{i}" for i in range(40, 45)]
    _, args = docs.calls[-1]
    assert args["limit"] == 20
    assert args["offset"] == 40
    assert args["include"] == ["documents", "metadatas"]
    assert args["where"] is None
    assert ("get_collection", "docs") in client.calls
    assert "embedding" not in records[0].model_dump(exclude_unset=True)


@pytest.mark.asyncio
async def test_fetch_records_with_filter(v2_store, docs, conn):
    records = await v2_store.fetch_records(conn, "docs", 1, {"kind": "odd"}, api_version="v2")

    assert len(records) == 20
    assert all(r.metadata["kind"] == "odd" for r in records)
    assert docs.calls[-1][1]["where"] == {"kind": "odd"}


@pytest.mark.asyncio
async def test_record_detail_normalizes_embedding(v2_store, docs, conn):
    record = await v2_store.fetch_record_detail(conn, "docs", "r7", "v2")

    assert record.embedding == [7.0, 0.5]
    assert record.document == "doc 7"
    assert docs.calls[-1][1]["include"] == ["documents", "metadatas", "embeddings"]


@pytest.mark.asyncio
async def test_record_detail_not_found(v2_store, conn):
    with pytest.raises(RecordNotFound):
        await v2_store.fetch_record_detail(conn, "docs", "nope", "v2")


@pytest.mark.asyncio
async def test_count_with_and_without_filter(v2_store, docs, conn):
    assert await v2_store.count_records(conn, "docs", api_version="v2") == 45
    assert docs.calls[-1][0] == "count"

    assert await v2_store.count_records(conn, "docs", {"kind": "even"}, "v2") == 23
    assert docs.calls[-1] == ("get", {"ids": None, "where": {"kind": "even"}, "limit": None, "offset": None, "include": []})


@pytest.mark.asyncio
async def test_query_records(v2_store, docs, conn):
    docs.query_result = {
        "ids": [["r1", "r2"]],
        "documents": [["doc 1", "doc 2"]],
        "metadatas": [[{"n": 1}, {"n": 2}]],
        "embeddings": [[(1.0, 0.5), (2.0, 0.5)]],
        "distances": [[0.1, 0.2]],
    }

    records = await v2_store.query_records(conn, "docs", [1.0, 0.5], "v2")

    assert [(r.id, r.distance) for r in records] == [("r1", 0.1), ("r2", 0.2)]
    assert records[0].embedding == [1.0, 0.5]
    _, args = docs.calls[-1]
    assert args["query_embeddings"] == [[1.0, 0.5]]
    assert args["n_results"] == 10
    assert args["include"] == ["documents", "embeddings", "metadatas", "distances"]


@pytest.mark.asyncio
async def test_query_error_field(v2_store, docs, conn):
    docs.query_result = {"error": "InvalidDimension: expected 2, got 3"}

    with pytest.raises(InvalidDimension):
        await v2_store.query_records(conn, "docs", [1.0, 2.0, 3.0], "v2")


@pytest.mark.asyncio
async def test_query_by_id(v2_store, conn):
    records = await v2_store.query_records_by_id(conn, "docs", "r3", "v2")

    assert len(records) == 1
    assert records[0].distance == 0.0
    assert records[0].embedding == [3.0, 0.5]

    with pytest.raises(RecordNotFound):
        await v2_store.query_records_by_id(conn, "docs", "missing", "v2")


@pytest.mark.asyncio
async def test_delete_record_and_collection(v2_store, client, docs, conn):
    result = await v2_store.delete_record(conn, "docs", "r0", "v2")
    assert result.success
    assert "r0" not in docs.rows

    result = await v2_store.delete_collection(conn, "images", "v2")
    assert result.success
    assert "images" not in client.collections


def test_chroma_settings_carry_credentials():
    token = _chroma_settings(Connection(url="http://h", auth=Auth(auth_type=AuthType.TOKEN, token="tok")))
    assert token.chroma_client_auth_credentials == "tok"
    assert token.chroma_client_auth_provider.endswith("TokenAuthClientProvider")

    basic = _chroma_settings(
        Connection(url="http://h", auth=Auth(auth_type=AuthType.BASIC, username="u", password="p"))
    )
    assert basic.chroma_client_auth_credentials == "u:p"

    anonymous = _chroma_settings(Connection(url="http://h"))
    assert anonymous.chroma_client_auth_provider is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url,host,port,ssl",
    [
        ("http://chroma.example.com", "http://chroma.example.com", 80, False),
        ("https://chroma.example.com/", "https://chroma.example.com", 443, True),
        ("http://localhost:8000", "http://localhost:8000", 8000, False),
        ("http://proxy.example.com/chroma", "http://proxy.example.com/chroma", 80, False),
    ],
)
async def test_connect_reads_url_like_the_v1_transport(monkeypatch, url, host, port, ssl):
    seen = {}

    async def fake_client(**kwargs):
        seen.update(kwargs)
        return "client"

    monkeypatch.setattr(chromadb, "AsyncHttpClient", fake_client)

    assert await connect(Connection(url=url, tenant="t1", database="db1")) == "client"
    assert seen["host"] == host
    assert seen["port"] == port
    assert seen["ssl"] is ssl
    assert seen["tenant"] == "t1"
    assert seen["database"] == "db1"
