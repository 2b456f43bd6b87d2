"""
GraphRAG engine.

Orchestrates the indexing pipeline:
1. Chunking documents into text units
2. Entity extraction and co-occurrence graph building
3. Community detection and community reports
4. Embedding units, entities and reports

and answers local and global queries over the result.
"""

import asyncio
import time
from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from advanced_memory.core.exceptions import (
    AdvancedMemoryError,
    IndexingError,
    LLMError,
    ValidationError,
)
from advanced_memory.core.logging import LoggerMixin, log_operation
from advanced_memory.core.text import content_hash
from advanced_memory.core.types import Community, SearchType
from advanced_memory.graphrag.chunker import TextChunker
from advanced_memory.graphrag.extraction import EntityExtractor, PatternEntityExtractor
from advanced_memory.graphrag.knowledge_graph import KnowledgeGraph
from advanced_memory.graphrag.search import GlobalSearch, LocalSearch, SearchContext
from advanced_memory.graphrag.service import GraphRAGService
from advanced_memory.llm.ollama_client import OllamaClient
from advanced_memory.vector.embeddings import TextEmbedder
from advanced_memory.vector.index import InMemoryVectorIndex

EMPTY_GRAPH_ANSWER = "No indexed knowledge is available yet. Index documents before querying."
NO_CONTEXT_ANSWER = "No relevant information was found in the knowledge graph."


class GraphRAGEngine(GraphRAGService, LoggerMixin):
    """
    Local-first GraphRAG implementation.

    Indexing is incremental: each call merges new documents into the
    existing graph and recomputes communities. Documents already indexed
    (same normalized content) are skipped.
    """

    SYSTEM_PROMPT = (
        "You are a knowledge assistant answering questions from a knowledge graph. "
        "Answer only from the provided context. If the context does not contain "
        "the answer, say so. Cite sources as [n] when you use them."
    )

    REPORT_PROMPT = """Write a concise report (at most 150 words) describing the community below:
its main entities, how they relate, and the key facts about them.

{summary}

Report:"""

    def __init__(
        self,
        embedder: TextEmbedder,
        extractor: EntityExtractor | None = None,
        llm: OllamaClient | None = None,
        chunk_size: int = 300,
        chunk_overlap: int = 50,
        graph_hop_limit: int = 1,
        local_top_k_entities: int = 10,
        local_top_k_units: int = 5,
        global_top_k_communities: int = 5,
        community_resolution: float = 1.0,
        **config: Any,
    ) -> None:
        """
        Initialize the engine.

        Args:
            embedder: Text embedder for units, entities and reports
            extractor: Entity extractor (default: pattern rules)
            llm: Optional Ollama client for reports and answers
            chunk_size: Words per text unit
            chunk_overlap: Words shared by consecutive units
            graph_hop_limit: Neighbourhood depth for local search
            local_top_k_entities: Entities kept by local search
            local_top_k_units: Text units kept by local search
            global_top_k_communities: Community reports kept by global search
            community_resolution: Louvain resolution
            **config: Additional configuration
        """
        self.embedder = embedder
        self.extractor = extractor or PatternEntityExtractor()
        self.llm = llm
        self.chunker = TextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        self.community_resolution = community_resolution
        self.config = config

        self.graph = KnowledgeGraph()
        self.unit_index = InMemoryVectorIndex(embedder.dimension)
        self.entity_index = InMemoryVectorIndex(embedder.dimension)
        self.community_index = InMemoryVectorIndex(embedder.dimension)

        self.local_search = LocalSearch(
            graph=self.graph,
            entity_index=self.entity_index,
            unit_index=self.unit_index,
            top_k_entities=local_top_k_entities,
            top_k_units=local_top_k_units,
            hops=graph_hop_limit,
        )
        self.global_search = GlobalSearch(
            graph=self.graph,
            community_index=self.community_index,
            top_k_communities=global_top_k_communities,
        )

        self._lock = asyncio.Lock()
        self._initialized = False

    async def initialize(self) -> None:
        if self._initialized:
            return
        await self.embedder.initialize()
        await self.extractor.initialize()
        self._initialized = True

    async def cleanup(self) -> None:
        await self.extractor.cleanup()
        self._initialized = False

    # =========================================================================
    # Indexing
    # =========================================================================

    async def index_documents(self, documents: Iterable[str]) -> None:
        """
        Index documents into the knowledge graph.

        Args:
            documents: Raw document texts

        Raises:
            ValidationError: If no non-blank document is given
            IndexingError: If any pipeline stage fails
        """
        await self.index(documents)

    async def index(self, documents: Iterable[str]) -> int:
        """
        Index documents and report how many were new.

        A failed call leaves the graph and the vector indexes as they were
        before it, so the same documents can be retried.

        Returns:
            Number of documents added; blank and already indexed ones are not counted
        """
        if isinstance(documents, str):
            raise ValidationError(
                "documents must be an iterable of strings, not a single string",
                field="documents",
            )

        docs = list(documents)
        for doc in docs:
            if not isinstance(doc, str):
                raise ValidationError(
                    "Every document must be a string",
                    field="documents",
                    value=type(doc).__name__,
                )
        docs = [doc for doc in docs if doc.strip()]
        if not docs:
            raise ValidationError("No documents to index", field="documents")

        if not self._initialized:
            await self.initialize()

        start_time = time.time()
        async with self._lock:
            checkpoint = self._checkpoint()
            try:
                indexed = await self._index(docs)
            except AdvancedMemoryError:
                self._restore(checkpoint)
                log_operation(
                    "index_documents",
                    success=False,
                    duration_ms=(time.time() - start_time) * 1000,
                    documents=len(docs),
                )
                raise
            except Exception as e:
                self._restore(checkpoint)
                log_operation(
                    "index_documents",
                    success=False,
                    duration_ms=(time.time() - start_time) * 1000,
                    documents=len(docs),
                    error=str(e),
                )
                raise IndexingError(
                    f"Indexing failed: {e}",
                    document_count=len(docs),
                    cause=e,
                )

        log_operation(
            "index_documents",
            success=True,
            duration_ms=(time.time() - start_time) * 1000,
            documents=len(docs),
            indexed=indexed,
            graph=self.graph.stats(),
        )
        return indexed

    async def _index(self, docs: list[str]) -> int:
        new_units = []

        for doc in docs:
            doc_hash = content_hash(doc)
            if self.graph.has_document(doc_hash):
                self.logger.debug("Skipping already indexed document", hash=doc_hash)
                continue

            document_id = str(uuid4())
            self.graph.add_document(document_id, doc_hash)

            for unit in self.chunker.chunk(doc, document_id):
                entities = await self.extractor.extract(unit.content)
                self.graph.add_unit(unit, entities)
                new_units.append(unit)

        if not new_units:
            self.logger.info("No new documents to index")
            return 0

        unit_vectors = await self.embedder.embed([u.content for u in new_units])
        self.unit_index.add([u.id for u in new_units], unit_vectors)

        entities = self.graph.entities
        if entities:
            entity_vectors = await self.embedder.embed(
                [f"{e.name}. {e.description}" for e in entities]
            )
            self.entity_index.add([e.id for e in entities], entity_vectors)

        communities = self.graph.detect_communities(self.community_resolution)
        if self.llm is not None:
            await self._write_reports(communities)

        self.community_index.clear()
        if communities:
            report_vectors = await self.embedder.embed(
                [f"{c.title}\n{c.summary}" for c in communities]
            )
            self.community_index.add([c.id for c in communities], report_vectors)

        return len({u.document_id for u in new_units})

    def _checkpoint(self) -> tuple[Any, ...]:
        return (
            self.graph.snapshot(),
            self.unit_index.snapshot(),
            self.entity_index.snapshot(),
            self.community_index.snapshot(),
        )

    def _restore(self, checkpoint: tuple[Any, ...]) -> None:
        graph, units, entities, communities = checkpoint
        self.graph.restore(graph)
        self.unit_index.restore(units)
        self.entity_index.restore(entities)
        self.community_index.restore(communities)
        self.logger.warning("Indexing rolled back", graph=self.graph.stats())

    async def _write_reports(self, communities: list[Community]) -> None:
        """Replace extractive summaries with LLM reports where the LLM succeeds."""
        for community in communities:
            try:
                report = await self.llm.generate(
                    self.REPORT_PROMPT.format(summary=community.summary),
                    max_tokens=300,
                )
            except LLMError as e:
                self.logger.warning(
                    "Community report generation failed; keeping extractive summary",
                    community=community.id,
                    error=str(e),
                )
                continue
            if report.strip():
                community.summary = report.strip()

    # =========================================================================
    # Query
    # =========================================================================

    async def query(
        self,
        query: str,
        search_type: str,
        user_context: str | None = None,
    ) -> str:
        """
        Query the knowledge graph.

        Args:
            query: Natural language query
            search_type: "local" or "global" (case-insensitive)
            user_context: Optional user context for personalization

        Returns:
            The answer, or the retrieved context when no LLM is configured
        """
        if not query or not query.strip():
            raise ValidationError("Query cannot be empty", field="query")
        mode = SearchType.parse(search_type)

        if not self._initialized:
            await self.initialize()

        start_time = time.time()
        search_text = query if not user_context else f"{query}\n{user_context}"

        async with self._lock:
            if self.graph.is_empty:
                return EMPTY_GRAPH_ANSWER

            query_vector = await self.embedder.embed_single(search_text)
            if mode == SearchType.LOCAL:
                context = self.local_search.search(search_text, query_vector)
            else:
                context = self.global_search.search(search_text, query_vector)
            rendered = context.render(self.graph)

        answer = await self._answer(query, user_context, context, rendered)

        log_operation(
            "query",
            success=True,
            duration_ms=(time.time() - start_time) * 1000,
            search_type=mode.value,
            query_length=len(query),
            entities=len(context.entities),
            units=len(context.units),
            communities=len(context.communities),
        )
        return answer

    async def _answer(
        self,
        query: str,
        user_context: str | None,
        context: SearchContext,
        rendered: str,
    ) -> str:
        if context.is_empty:
            return NO_CONTEXT_ANSWER

        if self.llm is not None:
            prompt = f"Context:\n{rendered}\n\n"
            if user_context:
                prompt += f"User context:\n{user_context}\n\n"
            prompt += f"Question: {query}"
            try:
                answer = await self.llm.chat(
                    [
                        {"role": "system", "content": self.SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ]
                )
                if answer.strip():
                    return answer.strip()
            except LLMError as e:
                self.logger.warning("Answer generation failed; returning context", error=str(e))

        header = f"{context.search_type.value.capitalize()} search results for: {query}"
        if user_context:
            header += f"\nUser context: {user_context}"
        return f"{header}\n\n{rendered}"

    def stats(self) -> dict[str, Any]:
        """Counts of indexed documents, units, entities, relations and communities."""
        return self.graph.stats()
