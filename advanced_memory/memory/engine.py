"""
Mem0-style agentic memory.

Each user has a private set of memories. Adding a memory that already
exists (same normalized content) refreshes it; adding one that is nearly
identical to an existing memory updates that memory in place.
"""

import asyncio
import copy
import time
from typing import Any

from advanced_memory.core.exceptions import AdvancedMemoryError, MemoryStoreError, ValidationError
from advanced_memory.core.logging import LoggerMixin, log_operation
from advanced_memory.core.text import content_hash
from advanced_memory.core.types import (
    MemoryEvent,
    MemoryHistoryEntry,
    MemoryRecord,
    MemoryResult,
    utc_now,
)
from advanced_memory.memory.service import MemoryService
from advanced_memory.memory.store import InMemoryMemoryStore, MemoryStore
from advanced_memory.vector.embeddings import TextEmbedder


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} cannot be empty", field=field, value=value)
    return value.strip()


class Mem0MemoryService(MemoryService, LoggerMixin):
    """MemoryService over a pluggable MemoryStore."""

    def __init__(
        self,
        embedder: TextEmbedder,
        store: MemoryStore | None = None,
        dedup_threshold: float = 0.95,
        default_limit: int = 5,
    ) -> None:
        """
        Initialize the memory service.

        Args:
            embedder: Text embedder for memory content and queries
            store: Memory store (default: in-process store)
            dedup_threshold: Cosine similarity at which a new memory
                updates an existing one instead of being added
            default_limit: Result limit used when none is given
        """
        self.embedder = embedder
        self.store = store or InMemoryMemoryStore(embedder.dimension)
        self.dedup_threshold = dedup_threshold
        self.default_limit = default_limit

        self._history: dict[str, list[MemoryHistoryEntry]] = {}
        self._lock = asyncio.Lock()
        self._initialized = False

    async def initialize(self) -> None:
        if self._initialized:
            return
        await self.embedder.initialize()
        await self.store.initialize()
        self._initialized = True

    async def cleanup(self) -> None:
        await self.store.cleanup()
        self._initialized = False

    def _record_event(
        self,
        memory_id: str,
        event: MemoryEvent,
        old_content: str | None = None,
        new_content: str | None = None,
    ) -> None:
        self._history.setdefault(memory_id, []).append(
            MemoryHistoryEntry(
                memory_id=memory_id,
                event=event,
                old_content=old_content,
                new_content=new_content,
            )
        )

    # =========================================================================
    # MemoryService
    # =========================================================================

    async def add_memory(
        self,
        user_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        await self.add(user_id, content, metadata)

    async def add(
        self,
        user_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> MemoryRecord:
        """
        Add a memory for a user.

        Returns:
            The stored record (new, refreshed or updated)
        """
        user_id = _require_text(user_id, "user_id")
        content = _require_text(content, "content")
        if metadata is not None and not isinstance(metadata, dict):
            raise ValidationError("metadata must be a mapping", field="metadata")
        metadata = copy.deepcopy(metadata or {})

        if not self._initialized:
            await self.initialize()

        start_time = time.time()
        try:
            async with self._lock:
                record, event = await self._add(user_id, content, metadata)
        except AdvancedMemoryError:
            log_operation(
                "add_memory",
                success=False,
                duration_ms=(time.time() - start_time) * 1000,
                user_id=user_id,
            )
            raise
        except Exception as e:
            log_operation(
                "add_memory",
                success=False,
                duration_ms=(time.time() - start_time) * 1000,
                user_id=user_id,
                error=str(e),
            )
            raise MemoryStoreError(
                f"Failed to add memory: {e}",
                user_id=user_id,
                operation="add",
                cause=e,
            )

        log_operation(
            "add_memory",
            success=True,
            duration_ms=(time.time() - start_time) * 1000,
            user_id=user_id,
            memory_id=record.id,
            action=event,
        )
        return record

    async def _add(
        self,
        user_id: str,
        content: str,
        metadata: dict[str, Any],
    ) -> tuple[MemoryRecord, str]:
        digest = content_hash(content)
        vector = await self.embedder.embed_single(content)

        existing = await self.store.find_by_hash(user_id, digest)
        if existing is not None:
            existing.metadata.update(metadata)
            existing.updated_at = utc_now()
            await self.store.upsert(existing, vector)
            return existing, "NOOP"

        matches = await self.store.search(user_id, vector, 1)
        if matches and matches[0][1] >= self.dedup_threshold:
            record, _ = matches[0]
            old_content = record.content
            record.content = content
            record.hash = digest
            record.metadata.update(metadata)
            record.updated_at = utc_now()
            await self.store.upsert(record, vector)
            self._record_event(record.id, MemoryEvent.UPDATE, old_content, content)
            return record, MemoryEvent.UPDATE.value

        record = MemoryRecord(user_id=user_id, content=content, metadata=metadata, hash=digest)
        await self.store.upsert(record, vector)
        self._record_event(record.id, MemoryEvent.ADD, None, content)
        return record, MemoryEvent.ADD.value

    async def search(
        self,
        user_id: str,
        query: str,
        limit: int | None = None,
    ) -> list[MemoryResult]:
        """
        Search a user's memories by semantic similarity.

        Args:
            user_id: Owning user
            query: Search query
            limit: Maximum number of results

        Returns:
            Results sorted by score, most recently updated first on ties
        """
        user_id = _require_text(user_id, "user_id")
        query = _require_text(query, "query")
        limit = self.default_limit if limit is None else limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError("limit must be a positive integer", field="limit", value=limit)

        if not self._initialized:
            await self.initialize()

        start_time = time.time()
        try:
            vector = await self.embedder.embed_single(query)
            matches = await self.store.search(user_id, vector, limit)
        except AdvancedMemoryError:
            log_operation(
                "search_memory",
                success=False,
                duration_ms=(time.time() - start_time) * 1000,
                user_id=user_id,
            )
            raise
        except Exception as e:
            log_operation(
                "search_memory",
                success=False,
                duration_ms=(time.time() - start_time) * 1000,
                user_id=user_id,
                error=str(e),
            )
            raise MemoryStoreError(
                f"Failed to search memories: {e}",
                user_id=user_id,
                operation="search",
                cause=e,
            )

        matches.sort(key=lambda item: (item[1], item[0].updated_at), reverse=True)
        results = [record.to_result(score) for record, score in matches[:limit]]

        log_operation(
            "search_memory",
            success=True,
            duration_ms=(time.time() - start_time) * 1000,
            user_id=user_id,
            results=len(results),
        )
        return results

    # =========================================================================
    # Management
    # =========================================================================

    async def get_all(self, user_id: str) -> list[MemoryRecord]:
        """All memories of a user, oldest first."""
        user_id = _require_text(user_id, "user_id")
        if not self._initialized:
            await self.initialize()
        return await self.store.list_user(user_id)

    async def get(self, memory_id: str) -> MemoryRecord | None:
        memory_id = _require_text(memory_id, "memory_id")
        if not self._initialized:
            await self.initialize()
        return await self.store.get(memory_id)

    async def delete(self, memory_id: str) -> bool:
        """Delete one memory. Returns False if it does not exist."""
        memory_id = _require_text(memory_id, "memory_id")
        if not self._initialized:
            await self.initialize()

        async with self._lock:
            record = await self.store.get(memory_id)
            if record is None:
                return False
            await self.store.delete(memory_id)
            self._record_event(memory_id, MemoryEvent.DELETE, record.content, None)

        self.logger.info("Memory deleted", memory_id=memory_id, user_id=record.user_id)
        return True

    async def delete_all(self, user_id: str) -> int:
        """Delete every memory of a user. Returns the number deleted."""
        user_id = _require_text(user_id, "user_id")
        if not self._initialized:
            await self.initialize()

        async with self._lock:
            records = await self.store.list_user(user_id)
            deleted = await self.store.delete_user(user_id)
            for record in records:
                self._record_event(record.id, MemoryEvent.DELETE, record.content, None)

        self.logger.info("User memories deleted", user_id=user_id, count=deleted)
        return deleted

    def history(self, memory_id: str) -> list[MemoryHistoryEntry]:
        """ADD, UPDATE and DELETE events of one memory, oldest first."""
        return [entry.model_copy() for entry in self._history.get(memory_id, [])]
