"""Memory service contract."""

from abc import ABC, abstractmethod
from typing import Any

from advanced_memory.core.types import MemoryResult


class MemoryService(ABC):
    """Service for Mem0 agentic memory operations."""

    @abstractmethod
    async def search(self, user_id: str, query: str, limit: int = 5) -> list[MemoryResult]:
        """
        Search the user's memory for relevant information.

        Args:
            user_id: The unique identifier for the user
            query: The search query
            limit: The maximum number of results to return

        Returns:
            The search results, most relevant first
        """

    @abstractmethod
    async def add_memory(
        self,
        user_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Add a new memory for the specified user.

        Args:
            user_id: The unique identifier for the user
            content: The memory content to store
            metadata: Optional metadata for the memory
        """
