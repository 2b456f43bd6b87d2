"""
FastAPI module for the Advanced Memory API.

Components:
- API routes and endpoints
- Request/response schemas
- Dependencies
"""

from advanced_memory.api.routes import router
from advanced_memory.api.schemas import (
    ConfidenceResponse,
    ErrorResponse,
    HealthResponse,
    IndexResponse,
    MemoryAddResponse,
    MemorySearchResponse,
    QueryResponse,
    VerificationResponse,
)

__all__ = [
    "router",
    "ConfidenceResponse",
    "ErrorResponse",
    "HealthResponse",
    "IndexResponse",
    "MemoryAddResponse",
    "MemorySearchResponse",
    "QueryResponse",
    "VerificationResponse",
]
