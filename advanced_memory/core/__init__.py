"""Core module with types, exceptions, and logging utilities."""

from advanced_memory.core.exceptions import (
    AdvancedMemoryError,
    ConfigurationError,
    EmbeddingError,
    GraphError,
    IndexingError,
    LLMError,
    MemoryStoreError,
    ValidationError,
    VerificationError,
)
from advanced_memory.core.logging import get_logger, setup_logging
from advanced_memory.core.types import (
    BaseResponse,
    Community,
    Entity,
    EntityType,
    MemoryEvent,
    MemoryHistoryEntry,
    MemoryRecord,
    MemoryResult,
    Relation,
    RelationType,
    SearchType,
    TextUnit,
    VerificationResult,
)

__all__ = [
    # Exceptions
    "AdvancedMemoryError",
    "ConfigurationError",
    "EmbeddingError",
    "GraphError",
    "IndexingError",
    "LLMError",
    "MemoryStoreError",
    "ValidationError",
    "VerificationError",
    # Logging
    "get_logger",
    "setup_logging",
    # Types
    "BaseResponse",
    "Community",
    "Entity",
    "EntityType",
    "MemoryEvent",
    "MemoryHistoryEntry",
    "MemoryRecord",
    "MemoryResult",
    "Relation",
    "RelationType",
    "SearchType",
    "TextUnit",
    "VerificationResult",
]
