"""
Per-user agentic memory (Mem0 semantics).

Components:
- MemoryService contract
- Mem0MemoryService with ADD/UPDATE deduplication
- In-process and Qdrant memory stores
"""

from advanced_memory.memory.engine import Mem0MemoryService
from advanced_memory.memory.service import MemoryService
from advanced_memory.memory.store import (
    InMemoryMemoryStore,
    MemoryStore,
    QdrantMemoryStore,
    create_store,
)

__all__ = [
    "InMemoryMemoryStore",
    "Mem0MemoryService",
    "MemoryService",
    "MemoryStore",
    "QdrantMemoryStore",
    "create_store",
]
