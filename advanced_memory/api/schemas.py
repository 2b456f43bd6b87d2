"""
Pydantic schemas for API request/response models.

Every response derives from BaseResponse, so each body carries
`success`, `error_message` and `timestamp`.
"""

from typing import Any

from pydantic import BaseModel, Field

from advanced_memory.core.types import BaseResponse, MemoryResult, SearchType, VerificationResult


class ErrorResponse(BaseResponse):
    """Body returned when a request fails."""

    success: bool = False
    details: dict[str, Any] = Field(default_factory=dict, description="Error details")


# =============================================================================
# Health Check
# =============================================================================


class HealthResponse(BaseResponse):
    """Health check response."""

    status: str = Field(description="Service status")
    version: str = Field(description="API version")
    services: dict[str, bool] = Field(description="Individual service status")


# =============================================================================
# GraphRAG
# =============================================================================


class QueryRequest(BaseModel):
    """Knowledge graph query."""

    query: str = Field(min_length=1, max_length=4000, description="Natural language query")
    search_type: str = Field(
        default=SearchType.LOCAL.value,
        description='Search strategy: "local" or "global"',
    )
    user_context: str | None = Field(
        default=None,
        max_length=4000,
        description="Optional user context for personalization",
    )


class QueryResponse(BaseResponse):
    """Knowledge graph answer."""

    answer: str = Field(default="", description="Answer or retrieved context")
    search_type: str = Field(default="", description="Search strategy used")
    latency_ms: float = Field(default=0.0, description="Processing time in milliseconds")


class IndexRequest(BaseModel):
    """Documents to index."""

    documents: list[str] = Field(min_length=1, description="Raw document texts")


class IndexResponse(BaseResponse):
    """Indexing outcome."""

    indexed: int | None = Field(
        default=None,
        description="New documents indexed; duplicates and blanks are not counted",
    )
    stats: dict[str, int] = Field(default_factory=dict, description="Knowledge graph counts")


# =============================================================================
# Memory
# =============================================================================


class MemoryAddRequest(BaseModel):
    """Memory to add for a user."""

    user_id: str = Field(min_length=1, description="Owning user")
    content: str = Field(min_length=1, description="Memory content")
    metadata: dict[str, Any] | None = Field(default=None, description="Optional metadata")


class MemoryAddResponse(BaseResponse):
    """Stored memory."""

    memory_id: str | None = Field(default=None, description="ID of the stored memory")


class MemorySearchRequest(BaseModel):
    """Memory search."""

    user_id: str = Field(min_length=1, description="Owning user")
    query: str = Field(min_length=1, description="Search query")
    limit: int = Field(default=5, ge=1, le=100, description="Maximum number of results")


class MemorySearchResponse(BaseResponse):
    """Memory search results."""

    results: list[MemoryResult] = Field(default_factory=list)


# =============================================================================
# Verification
# =============================================================================


class VerifyRequest(BaseModel):
    """Statement to verify."""

    statement: str = Field(min_length=1, description="Statement to verify")
    sources: list[str] | None = Field(
        default=None,
        description="Registered source names or inline evidence texts",
    )


class VerificationResponse(BaseResponse):
    """Verification outcome."""

    result: VerificationResult = Field(default_factory=VerificationResult)


class ConfidenceRequest(BaseModel):
    """Claim to score."""

    claim: str = Field(min_length=1, description="Claim to evaluate")


class ConfidenceResponse(BaseResponse):
    """Confidence score for a claim."""

    confidence: float = Field(default=0.0, ge=0, le=1, description="Confidence in [0, 1]")
