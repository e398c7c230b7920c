"""Time-bounded cache of collection name -> backend id resolutions."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from chromadmin.errors import CollectionNotFound
from chromadmin.schemas.models import CollectionInfo, Connection

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30.0

CacheKey = tuple[str, str, str, str]  # (url, tenant, database, collection name)
ListCollections = Callable[[Connection], Awaitable[list[CollectionInfo]]]


@dataclass(frozen=True)
class CacheEntry:
    collection_id: str
    resolved_at: float


class CollectionIdCache:
    """
    Maps (url, tenant, database, name) to the backend id of that collection.

    Entries are fresh while ``now - resolved_at < ttl``. A miss triggers one
    list call whose every collection is cached, so switching between sibling
    collections costs no further lookups until the TTL runs out.

    Entries are replaced or deleted, never mutated, and each write is a single
    dict assignment. Concurrent misses for the same name are *not* coalesced:
    each caller issues its own list call and the last writer wins with an
    equally valid entry. Nothing is evicted besides TTL expiry, so the map grows
    with the number of distinct names seen.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @staticmethod
    def _key(connection: Connection, name: str) -> CacheKey:
        return (*connection.cache_key, name)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, connection: Connection, name: str) -> str | None:
        """Return the cached id if present and fresh, else None."""
        entry = self._entries.get(self._key(connection, name))
        if entry is None:
            return None
        if self._clock() - entry.resolved_at >= self._ttl:
            return None
        return entry.collection_id

    def remember_all(self, connection: Connection, collections: Iterable[CollectionInfo]) -> None:
        """Cache every collection of a list response under its own name."""
        now = self._clock()
        for c in collections:
            if c.id is None:
                continue
            self._entries[self._key(connection, c.name)] = CacheEntry(c.id, now)

    def forget(self, connection: Connection, name: str) -> None:
        self._entries.pop(self._key(connection, name), None)

    def clear(self) -> None:
        self._entries.clear()

    async def resolve(
        self,
        connection: Connection,
        name: str,
        list_collections: ListCollections,
    ) -> str:
        """
        Return the backend id for *name*.

        On a miss or stale entry, awaits ``list_collections`` once, caches the
        whole response and looks *name* up in it. Raises CollectionNotFound if
        the fresh list does not contain it.
        """
        cached = self.lookup(connection, name)
        if cached is not None:
            logger.debug("Collection id cache hit: %s -> %s", name, cached)
            return cached

        logger.debug("Collection id cache miss: %s (%s)", name, connection.base_url)
        collections = await list_collections(connection)
        self.remember_all(connection, collections)
        for c in collections:
            if c.name == name and c.id is not None:
                return c.id
        raise CollectionNotFound(name)
