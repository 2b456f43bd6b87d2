"""
FastAPI dependencies for dependency injection.

Manages singleton instances of services and provides
them to route handlers.
"""

from fastapi import Depends

from advanced_memory.core.exceptions import LLMError
from advanced_memory.core.logging import get_logger, setup_logging
from advanced_memory.graphrag.engine import GraphRAGEngine
from advanced_memory.graphrag.extraction import create_extractor
from advanced_memory.graphrag.service import GraphRAGService
from advanced_memory.llm.ollama_client import OllamaClient
from advanced_memory.memory.engine import Mem0MemoryService
from advanced_memory.memory.service import MemoryService
from advanced_memory.memory.store import create_store
from advanced_memory.vector.embeddings import TextEmbedder, create_embedder
from advanced_memory.verification.engine import GroundingVerifier
from advanced_memory.verification.service import VerificationService
from config.settings import Settings, get_settings

logger = get_logger(__name__)


class ServiceContainer:
    """
    Container for all service instances.

    Implements the Service Locator pattern for centralized
    dependency management.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._initialized = False

        # Service instances (lazy initialized)
        self._ollama_client: OllamaClient | None = None
        self._embedder: TextEmbedder | None = None
        self._graphrag: GraphRAGEngine | None = None
        self._memory: Mem0MemoryService | None = None
        self._verifier: GroundingVerifier | None = None

    async def initialize(self) -> None:
        """Initialize all services."""
        if self._initialized:
            return

        setup_logging(
            level=self.settings.log_level,
            json_format=self.settings.is_production,
        )

        # Initialize services in order
        await self._init_ollama()
        await self._init_embeddings()
        await self._init_graphrag()
        await self._init_memory()
        await self._init_verification()

        self._initialized = True

    async def cleanup(self) -> None:
        """Cleanup all services."""
        if self._graphrag:
            await self._graphrag.cleanup()
        if self._memory:
            await self._memory.cleanup()
        if self._embedder:
            await self._embedder.cleanup()
        if self._ollama_client:
            await self._ollama_client.cleanup()

        self._initialized = False

    async def _init_ollama(self) -> None:
        """Initialize Ollama client when the LLM is enabled."""
        if not self.settings.llm_enabled:
            return

        client = OllamaClient(
            host=self.settings.ollama_host,
            model=self.settings.ollama_model,
            timeout=self.settings.ollama_timeout,
        )
        try:
            await client.initialize()
        except LLMError as e:
            logger.warning("Ollama unavailable; continuing without LLM", error=str(e))
            return
        self._ollama_client = client

    async def _init_embeddings(self) -> None:
        """Initialize the text embedder."""
        self._embedder = create_embedder(
            backend=self.settings.embedding_backend,
            model_name=self.settings.text_embedding_model,
            dimension=self.settings.embedding_dimension,
            device=self.settings.embedding_device,
            batch_size=self.settings.embedding_batch_size,
        )
        await self._embedder.initialize()

    async def _init_graphrag(self) -> None:
        """Initialize the GraphRAG engine."""
        if self.settings.entity_extractor == "spacy":
            extractor = create_extractor("spacy", model_name=self.settings.spacy_model)
        else:
            extractor = create_extractor("pattern")

        self._graphrag = GraphRAGEngine(
            embedder=self._embedder,
            extractor=extractor,
            llm=self._ollama_client,
            chunk_size=self.settings.chunk_size,
            chunk_overlap=self.settings.chunk_overlap,
            graph_hop_limit=self.settings.graph_hop_limit,
            local_top_k_entities=self.settings.local_top_k_entities,
            local_top_k_units=self.settings.local_top_k_units,
            global_top_k_communities=self.settings.global_top_k_communities,
            community_resolution=self.settings.community_resolution,
        )
        await self._graphrag.initialize()

    async def _init_memory(self) -> None:
        """Initialize the memory service and its store."""
        store = create_store(
            backend=self.settings.memory_backend,
            dimension=self._embedder.dimension,
            host=self.settings.qdrant_host,
            port=self.settings.qdrant_port,
            collection=self.settings.qdrant_collection_memories,
        )
        self._memory = Mem0MemoryService(
            embedder=self._embedder,
            store=store,
            dedup_threshold=self.settings.memory_dedup_threshold,
            default_limit=self.settings.memory_default_limit,
        )
        await self._memory.initialize()

    async def _init_verification(self) -> None:
        """Initialize the verifier and load trusted sources."""
        self._verifier = GroundingVerifier(
            embedder=self._embedder,
            llm=self._ollama_client,
            threshold=self.settings.verification_threshold,
            trusted_sources_path=self.settings.trusted_sources_path,
        )
        await self._verifier.initialize()

    # Properties for accessing services
    @property
    def ollama(self) -> OllamaClient | None:
        return self._ollama_client

    @property
    def embedder(self) -> TextEmbedder:
        return self._embedder

    @property
    def graphrag(self) -> GraphRAGEngine:
        return self._graphrag

    @property
    def memory(self) -> Mem0MemoryService:
        return self._memory

    @property
    def verifier(self) -> GroundingVerifier:
        return self._verifier


# Global container instance
_container: ServiceContainer | None = None


async def get_container() -> ServiceContainer:
    """Get initialized service container."""
    global _container
    if _container is None:
        settings = get_settings()
        _container = ServiceContainer(settings)
        await _container.initialize()
    return _container


async def shutdown_container() -> None:
    """Clean up and drop the global container."""
    global _container
    if _container is not None:
        await _container.cleanup()
        _container = None


# FastAPI dependencies
async def get_graphrag(
    container: ServiceContainer = Depends(get_container),
) -> GraphRAGService:
    """Get GraphRAG service dependency."""
    return container.graphrag


async def get_memory(
    container: ServiceContainer = Depends(get_container),
) -> MemoryService:
    """Get memory service dependency."""
    return container.memory


async def get_verifier(
    container: ServiceContainer = Depends(get_container),
) -> VerificationService:
    """Get verification service dependency."""
    return container.verifier
