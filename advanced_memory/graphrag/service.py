"""GraphRAG service contract."""

from abc import ABC, abstractmethod
from collections.abc import Iterable


class GraphRAGService(ABC):
    """Service for GraphRAG knowledge graph operations."""

    @abstractmethod
    async def query(
        self,
        query: str,
        search_type: str,
        user_context: str | None = None,
    ) -> str:
        """
        Query the knowledge graph using the specified search type.

        Args:
            query: The natural language query
            search_type: The type of search to perform ("global" or "local")
            user_context: Optional user context for personalization

        Returns:
            The search results
        """

    @abstractmethod
    async def index_documents(self, documents: Iterable[str]) -> None:
        """
        Index documents into the knowledge graph.

        Args:
            documents: The documents to index
        """
