"""
Memory storage backends.

Handles:
- Per-user record storage
- Vector search restricted to one user
- Content-hash lookup for deduplication
"""

import asyncio
from typing import Any, Protocol

import numpy as np
from qdrant_client import QdrantClient as QdrantClientBase
from qdrant_client.http import models
from qdrant_client.http.exceptions import UnexpectedResponse

from advanced_memory.core.exceptions import ConfigurationError, MemoryStoreError
from advanced_memory.core.logging import LoggerMixin
from advanced_memory.core.types import MemoryRecord
from advanced_memory.vector.index import InMemoryVectorIndex


class MemoryStore(Protocol):
    """Storage interface used by the memory service."""

    async def initialize(self) -> None: ...

    async def cleanup(self) -> None: ...

    async def upsert(self, record: MemoryRecord, vector: np.ndarray) -> None: ...

    async def get(self, memory_id: str) -> MemoryRecord | None: ...

    async def list_user(self, user_id: str) -> list[MemoryRecord]: ...

    async def find_by_hash(self, user_id: str, content_hash: str) -> MemoryRecord | None: ...

    async def search(
        self,
        user_id: str,
        vector: np.ndarray,
        limit: int,
    ) -> list[tuple[MemoryRecord, float]]: ...

    async def delete(self, memory_id: str) -> bool: ...

    async def delete_user(self, user_id: str) -> int: ...


class InMemoryMemoryStore(LoggerMixin):
    """Process-local store backed by a numpy vector index."""

    def __init__(self, dimension: int) -> None:
        self.dimension = dimension
        self._records: dict[str, MemoryRecord] = {}
        self._user_index: dict[str, set[str]] = {}
        self._vectors = InMemoryVectorIndex(dimension)
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        return None

    async def cleanup(self) -> None:
        return None

    async def upsert(self, record: MemoryRecord, vector: np.ndarray) -> None:
        async with self._lock:
            self._records[record.id] = record.model_copy(deep=True)
            self._user_index.setdefault(record.user_id, set()).add(record.id)
            self._vectors.add([record.id], np.atleast_2d(vector))

    async def get(self, memory_id: str) -> MemoryRecord | None:
        record = self._records.get(memory_id)
        return record.model_copy(deep=True) if record else None

    async def list_user(self, user_id: str) -> list[MemoryRecord]:
        records = [self._records[i] for i in self._user_index.get(user_id, ())]
        records.sort(key=lambda r: r.created_at)
        return [r.model_copy(deep=True) for r in records]

    async def find_by_hash(self, user_id: str, content_hash: str) -> MemoryRecord | None:
        for memory_id in self._user_index.get(user_id, ()):
            record = self._records[memory_id]
            if record.hash == content_hash:
                return record.model_copy(deep=True)
        return None

    async def search(
        self,
        user_id: str,
        vector: np.ndarray,
        limit: int,
    ) -> list[tuple[MemoryRecord, float]]:
        ids = self._user_index.get(user_id)
        if not ids:
            return []

        scores = self._vectors.similarities(vector, ids)
        ranked = sorted(
            ((self._records[i], s) for i, s in scores.items()),
            key=lambda item: (item[1], item[0].updated_at),
            reverse=True,
        )
        return [(r.model_copy(deep=True), s) for r, s in ranked[:limit]]

    async def delete(self, memory_id: str) -> bool:
        async with self._lock:
            record = self._records.pop(memory_id, None)
            if record is None:
                return False
            self._user_index.get(record.user_id, set()).discard(memory_id)
            self._vectors.remove(memory_id)
            return True

    async def delete_user(self, user_id: str) -> int:
        async with self._lock:
            ids = self._user_index.pop(user_id, set())
            for memory_id in ids:
                self._records.pop(memory_id, None)
                self._vectors.remove(memory_id)
            return len(ids)


class QdrantMemoryStore(LoggerMixin):
    """
    Qdrant-backed store.

    One collection holds every user's memories; searches filter on the
    indexed `user_id` payload field.
    """

    def __init__(
        self,
        dimension: int,
        host: str = "localhost",
        port: int = 6333,
        collection: str = "memories",
        **config: Any,
    ) -> None:
        """
        Initialize Qdrant store.

        Args:
            dimension: Embedding dimension
            host: Qdrant server host
            port: HTTP port
            collection: Collection name
            **config: Extra keyword arguments for the Qdrant client
        """
        self.dimension = dimension
        self.host = host
        self.port = port
        self.collection = collection
        self.config = config

        self._client: QdrantClientBase | None = None
        self._initialized = False

    async def initialize(self) -> None:
        """Connect and create the collection if needed."""
        if self._initialized:
            return

        try:
            self._client = QdrantClientBase(host=self.host, port=self.port, **self.config)
            existing = [c.name for c in self._client.get_collections().collections]
            if self.collection not in existing:
                self._client.create_collection(
                    collection_name=self.collection,
                    vectors_config=models.VectorParams(
                        size=self.dimension,
                        distance=models.Distance.COSINE,
                    ),
                )
                for field_name in ("user_id", "hash"):
                    self._client.create_payload_index(
                        collection_name=self.collection,
                        field_name=field_name,
                        field_schema=models.PayloadSchemaType.KEYWORD,
                    )
                self.logger.info("Created collection", collection=self.collection)
        except UnexpectedResponse as e:
            if "already exists" not in str(e):
                raise MemoryStoreError(
                    f"Failed to create collection {self.collection}: {e}",
                    operation="initialize",
                    cause=e,
                )
        except Exception as e:
            raise MemoryStoreError(
                f"Failed to initialize Qdrant: {e}",
                operation="initialize",
                cause=e,
            )

        self._initialized = True
        self.logger.info("Qdrant memory store initialized", host=self.host, port=self.port)

    async def cleanup(self) -> None:
        if self._client:
            self._client.close()
            self._client = None
        self._initialized = False

    def _require_client(self) -> QdrantClientBase:
        if not self._initialized or self._client is None:
            raise MemoryStoreError("Qdrant store not initialized")
        return self._client

    @staticmethod
    def _user_filter(user_id: str, content_hash: str | None = None) -> models.Filter:
        conditions = [
            models.FieldCondition(key="user_id", match=models.MatchValue(value=user_id))
        ]
        if content_hash:
            conditions.append(
                models.FieldCondition(key="hash", match=models.MatchValue(value=content_hash))
            )
        return models.Filter(must=conditions)

    async def upsert(self, record: MemoryRecord, vector: np.ndarray) -> None:
        client = self._require_client()
        try:
            client.upsert(
                collection_name=self.collection,
                points=[
                    models.PointStruct(
                        id=record.id,
                        vector=np.asarray(vector, dtype=np.float32).tolist(),
                        payload=record.model_dump(mode="json"),
                    )
                ],
            )
        except Exception as e:
            raise MemoryStoreError(
                f"Failed to upsert memory: {e}",
                user_id=record.user_id,
                operation="upsert",
                cause=e,
            )

    async def get(self, memory_id: str) -> MemoryRecord | None:
        client = self._require_client()
        try:
            points = client.retrieve(
                collection_name=self.collection,
                ids=[memory_id],
                with_payload=True,
            )
        except Exception as e:
            raise MemoryStoreError(f"Failed to get memory: {e}", operation="get", cause=e)
        return MemoryRecord.model_validate(points[0].payload) if points else None

    async def _scroll(self, query_filter: models.Filter, limit: int | None = None) -> list[MemoryRecord]:
        client = self._require_client()
        records: list[MemoryRecord] = []
        offset = None
        while True:
            points, offset = client.scroll(
                collection_name=self.collection,
                scroll_filter=query_filter,
                limit=256 if limit is None else limit,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            records.extend(MemoryRecord.model_validate(p.payload) for p in points)
            if offset is None or (limit is not None and len(records) >= limit):
                return records

    async def list_user(self, user_id: str) -> list[MemoryRecord]:
        try:
            records = await self._scroll(self._user_filter(user_id))
        except MemoryStoreError:
            raise
        except Exception as e:
            raise MemoryStoreError(
                f"Failed to list memories: {e}",
                user_id=user_id,
                operation="list",
                cause=e,
            )
        records.sort(key=lambda r: r.created_at)
        return records

    async def find_by_hash(self, user_id: str, content_hash: str) -> MemoryRecord | None:
        try:
            records = await self._scroll(self._user_filter(user_id, content_hash), limit=1)
        except MemoryStoreError:
            raise
        except Exception as e:
            raise MemoryStoreError(
                f"Failed to look up memory hash: {e}",
                user_id=user_id,
                operation="find_by_hash",
                cause=e,
            )
        return records[0] if records else None

    async def search(
        self,
        user_id: str,
        vector: np.ndarray,
        limit: int,
    ) -> list[tuple[MemoryRecord, float]]:
        client = self._require_client()
        try:
            response = client.query_points(
                collection_name=self.collection,
                query=np.asarray(vector, dtype=np.float32).tolist(),
                query_filter=self._user_filter(user_id),
                limit=limit,
                with_payload=True,
            )
        except Exception as e:
            raise MemoryStoreError(
                f"Memory search failed: {e}",
                user_id=user_id,
                operation="search",
                cause=e,
            )
        return [
            (MemoryRecord.model_validate(point.payload), float(point.score))
            for point in response.points
        ]

    async def delete(self, memory_id: str) -> bool:
        if await self.get(memory_id) is None:
            return False
        client = self._require_client()
        try:
            client.delete(
                collection_name=self.collection,
                points_selector=models.PointIdsList(points=[memory_id]),
            )
        except Exception as e:
            raise MemoryStoreError(f"Failed to delete memory: {e}", operation="delete", cause=e)
        return True

    async def delete_user(self, user_id: str) -> int:
        client = self._require_client()
        query_filter = self._user_filter(user_id)
        try:
            count = client.count(
                collection_name=self.collection,
                count_filter=query_filter,
                exact=True,
            ).count
            if count:
                client.delete(
                    collection_name=self.collection,
                    points_selector=models.FilterSelector(filter=query_filter),
                )
        except Exception as e:
            raise MemoryStoreError(
                f"Failed to delete user memories: {e}",
                user_id=user_id,
                operation="delete_user",
                cause=e,
            )
        return count


def create_store(
    backend: str,
    dimension: int,
    host: str = "localhost",
    port: int = 6333,
    collection: str = "memories",
) -> MemoryStore:
    """Build the configured memory store."""
    if backend == "memory":
        return InMemoryMemoryStore(dimension)
    if backend == "qdrant":
        return QdrantMemoryStore(dimension, host=host, port=port, collection=collection)
    raise ConfigurationError(
        f"Unknown memory backend: {backend}",
        details={"backend": backend},
    )
