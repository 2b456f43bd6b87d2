"""
FastAPI routes for the Advanced Memory API.

Endpoints:
- /health - Health check
- /graphrag/query, /graphrag/index - Knowledge graph
- /memory/add, /memory/search - Per-user memory
- /verification/verify, /verification/confidence - Fact verification

Service errors propagate to the application's AdvancedMemoryError handler.
"""

import time

from fastapi import APIRouter, Depends

from advanced_memory import __version__
from advanced_memory.api.dependencies import (
    ServiceContainer,
    get_container,
    get_graphrag,
    get_memory,
    get_verifier,
)
from advanced_memory.api.schemas import (
    ConfidenceRequest,
    ConfidenceResponse,
    HealthResponse,
    IndexRequest,
    IndexResponse,
    MemoryAddRequest,
    MemoryAddResponse,
    MemorySearchRequest,
    MemorySearchResponse,
    QueryRequest,
    QueryResponse,
    VerificationResponse,
    VerifyRequest,
)
from advanced_memory.core.types import SearchType
from advanced_memory.graphrag.engine import GraphRAGEngine
from advanced_memory.graphrag.service import GraphRAGService
from advanced_memory.memory.engine import Mem0MemoryService
from advanced_memory.memory.service import MemoryService
from advanced_memory.verification.service import VerificationService

router = APIRouter()


# =============================================================================
# Health Check
# =============================================================================


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(
    container: ServiceContainer = Depends(get_container),
) -> HealthResponse:
    """
    Check system health and service status.

    The LLM only counts towards health when it is enabled.
    """
    services = {
        "embeddings": container.embedder is not None,
        "graphrag": container.graphrag is not None,
        "memory": container.memory is not None,
        "verification": container.verifier is not None,
    }
    if container.settings.llm_enabled:
        services["llm"] = container.ollama is not None

    status = "healthy" if all(services.values()) else "degraded"
    return HealthResponse(status=status, version=__version__, services=services)


# =============================================================================
# GraphRAG
# =============================================================================


@router.post("/graphrag/query", response_model=QueryResponse, tags=["GraphRAG"])
async def query_graph(
    request: QueryRequest,
    graphrag: GraphRAGService = Depends(get_graphrag),
) -> QueryResponse:
    """Answer a query with local (entity-centred) or global (community) search."""
    start_time = time.time()
    search_type = SearchType.parse(request.search_type)

    answer = await graphrag.query(
        request.query,
        search_type.value,
        user_context=request.user_context,
    )

    return QueryResponse(
        answer=answer,
        search_type=search_type.value,
        latency_ms=(time.time() - start_time) * 1000,
    )


@router.post("/graphrag/index", response_model=IndexResponse, tags=["GraphRAG"])
async def index_documents(
    request: IndexRequest,
    graphrag: GraphRAGService = Depends(get_graphrag),
) -> IndexResponse:
    """Index documents into the knowledge graph."""
    if isinstance(graphrag, GraphRAGEngine):
        indexed = await graphrag.index(request.documents)
        return IndexResponse(indexed=indexed, stats=graphrag.stats())

    await graphrag.index_documents(request.documents)
    return IndexResponse()


# =============================================================================
# Memory
# =============================================================================


@router.post("/memory/add", response_model=MemoryAddResponse, tags=["Memory"])
async def add_memory(
    request: MemoryAddRequest,
    memory: MemoryService = Depends(get_memory),
) -> MemoryAddResponse:
    """Add a memory for a user."""
    if isinstance(memory, Mem0MemoryService):
        record = await memory.add(request.user_id, request.content, request.metadata)
        return MemoryAddResponse(memory_id=record.id)

    await memory.add_memory(request.user_id, request.content, request.metadata)
    return MemoryAddResponse()


@router.post("/memory/search", response_model=MemorySearchResponse, tags=["Memory"])
async def search_memory(
    request: MemorySearchRequest,
    memory: MemoryService = Depends(get_memory),
) -> MemorySearchResponse:
    """Search a user's memories."""
    results = await memory.search(request.user_id, request.query, limit=request.limit)
    return MemorySearchResponse(results=results)


# =============================================================================
# Verification
# =============================================================================


@router.post("/verification/verify", response_model=VerificationResponse, tags=["Verification"])
async def verify_statement(
    request: VerifyRequest,
    verifier: VerificationService = Depends(get_verifier),
) -> VerificationResponse:
    """Verify a statement against trusted sources."""
    result = await verifier.verify(request.statement, request.sources)
    return VerificationResponse(result=result)


@router.post(
    "/verification/confidence",
    response_model=ConfidenceResponse,
    tags=["Verification"],
)
async def confidence_score(
    request: ConfidenceRequest,
    verifier: VerificationService = Depends(get_verifier),
) -> ConfidenceResponse:
    """Confidence in [0, 1] that a claim is supported."""
    confidence = await verifier.get_confidence_score(request.claim)
    return ConfidenceResponse(confidence=confidence)
