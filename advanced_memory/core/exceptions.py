"""
Custom exceptions for the Advanced Memory system.

Provides a hierarchy of specific exceptions so callers can handle
GraphRAG, memory and verification failures separately or all at once.
"""

from typing import Any


def _truncate(value: str, limit: int = 100) -> str:
    return value[:limit] + "..." if len(value) > limit else value


class AdvancedMemoryError(Exception):
    """
    Base exception for all Advanced Memory errors.

    All custom exceptions inherit from this class, allowing for
    catch-all error handling when needed.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        base = self.message
        if self.details:
            base += f" | Details: {self.details}"
        if self.cause:
            base += f" | Caused by: {self.cause}"
        return base


class ConfigurationError(AdvancedMemoryError):
    """
    Raised when there's a configuration error.

    Examples:
    - Unknown embedding or memory backend
    - Unreadable trusted sources file
    """

    pass


class ValidationError(AdvancedMemoryError):
    """
    Raised when input validation fails.

    Examples:
    - Blank query, statement or user id
    - Unknown search type
    - Non-positive result limit
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]
        super().__init__(message, details, cause)


class GraphError(AdvancedMemoryError):
    """
    Raised when knowledge graph operations fail.

    Examples:
    - Community detection failures
    - Traversal from an unknown entity
    """

    def __init__(
        self,
        message: str,
        query: str | None = None,
        node_id: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if query:
            details["query"] = _truncate(query)
        if node_id:
            details["node_id"] = node_id
        super().__init__(message, details, cause)


class IndexingError(AdvancedMemoryError):
    """Raised when documents cannot be indexed into the knowledge graph."""

    def __init__(
        self,
        message: str,
        document_count: int | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if document_count is not None:
            details["document_count"] = document_count
        super().__init__(message, details, cause)


class MemoryStoreError(AdvancedMemoryError):
    """
    Raised when memory storage operations fail.

    Examples:
    - Qdrant connection errors
    - Upsert or delete failures
    """

    def __init__(
        self,
        message: str,
        user_id: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if user_id:
            details["user_id"] = user_id
        if operation:
            details["operation"] = operation
        super().__init__(message, details, cause)


class VerificationError(AdvancedMemoryError):
    """Raised when a statement cannot be verified."""

    def __init__(
        self,
        message: str,
        statement: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if statement:
            details["statement"] = _truncate(statement)
        super().__init__(message, details, cause)


class EmbeddingError(AdvancedMemoryError):
    """
    Raised when embedding generation fails.

    Examples:
    - Model loading failures
    - Invalid input format
    """

    def __init__(
        self,
        message: str,
        model_name: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if model_name:
            details["model_name"] = model_name
        super().__init__(message, details, cause)


class LLMError(AdvancedMemoryError):
    """
    Raised when LLM operations fail.

    Examples:
    - Ollama connection errors
    - Generation timeout
    - Invalid response format
    """

    def __init__(
        self,
        message: str,
        model: str | None = None,
        prompt_length: int | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if model:
            details["model"] = model
        if prompt_length:
            details["prompt_length"] = prompt_length
        super().__init__(message, details, cause)
