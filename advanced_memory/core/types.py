"""
Core data types and models for the Advanced Memory system.

Uses Pydantic models for validation, serialization, and documentation.
Covers the response envelope, memory and verification results, and the
records that make up the GraphRAG knowledge graph.
"""

import re
from abc import ABC
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from advanced_memory.core.exceptions import ValidationError


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def normalize_name(name: str) -> str:
    """Canonical form used to merge entities and dedupe memories."""
    return re.sub(r"\s+", " ", name).strip().lower()


# =============================================================================
# Response Envelope
# =============================================================================


class BaseResponse(BaseModel, ABC):
    """
    Base class for all API responses in the Advanced Memory system.

    Concrete responses subclass it and add their payload fields.
    """

    success: bool = Field(default=True, description="Whether the operation was successful")
    error_message: str | None = Field(
        default=None, description="Error message if the operation failed"
    )
    timestamp: datetime = Field(
        default_factory=utc_now, description="When the response was generated"
    )

    def __init__(self, **data: Any) -> None:
        if type(self) is BaseResponse:
            raise TypeError("BaseResponse is abstract; instantiate a subclass")
        super().__init__(**data)

    @classmethod
    def failure(cls, message: str, **fields: Any) -> "BaseResponse":
        """Build a failed response carrying the error message."""
        return cls(success=False, error_message=message, **fields)


# =============================================================================
# Enums
# =============================================================================


class SearchType(str, Enum):
    """GraphRAG search strategies."""

    GLOBAL = "global"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: "str | SearchType") -> "SearchType":
        """Parse a search type, case-insensitively."""
        if isinstance(value, SearchType):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError as e:
            raise ValidationError(
                f"Unknown search type: {value!r}. Expected one of "
                f"{[t.value for t in cls]}",
                field="search_type",
                value=value,
                cause=e,
            )


class EntityType(str, Enum):
    """Entity types recognised by the extractors."""

    PERSON = "PERSON"
    ORGANIZATION = "ORGANIZATION"
    LOCATION = "LOCATION"
    DATE = "DATE"
    MONEY = "MONEY"
    PERCENT = "PERCENT"
    EMAIL = "EMAIL"
    CONCEPT = "CONCEPT"


class RelationType(str, Enum):
    """Relationship types between entities."""

    RELATED_TO = "RELATED_TO"


class MemoryEvent(str, Enum):
    """Memory history events."""

    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# =============================================================================
# Memory & Verification Results
# =============================================================================


class MemoryResult(BaseModel):
    """Represents a memory search result."""

    id: str = Field(default="", description="Memory identifier")
    content: str = Field(default="", description="Memory content")
    score: float = Field(default=0.0, description="Relevance score")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Memory metadata")


class VerificationResult(BaseModel):
    """Represents the result of a fact verification operation."""

    is_verified: bool = Field(default=False, description="Whether the statement is verified")
    confidence: float = Field(default=0.0, description="Confidence score for the verification")
    sources: list[str] = Field(default_factory=list, description="Sources used for verification")
    details: str | None = Field(default=None, description="Additional verification details")

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        """Keep confidence within [0, 1]."""
        return min(max(float(v), 0.0), 1.0)


class MemoryRecord(BaseModel):
    """A stored memory belonging to one user."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Memory ID")
    user_id: str = Field(description="Owning user")
    content: str = Field(description="Memory content")
    metadata: dict[str, Any] = Field(default_factory=dict)
    hash: str = Field(description="Hash of the normalized content")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_result(self, score: float) -> MemoryResult:
        return MemoryResult(
            id=self.id,
            content=self.content,
            score=min(max(score, 0.0), 1.0),
            metadata={
                **self.metadata,
                "user_id": self.user_id,
                "created_at": self.created_at.isoformat(),
                "updated_at": self.updated_at.isoformat(),
            },
        )


class MemoryHistoryEntry(BaseModel):
    """One change to a memory."""

    memory_id: str
    event: MemoryEvent
    old_content: str | None = None
    new_content: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)


# =============================================================================
# Knowledge Graph Models
# =============================================================================


class TextUnit(BaseModel):
    """A chunk of an indexed document."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique unit ID")
    document_id: str = Field(description="Parent document ID")
    content: str = Field(description="Text content of the unit")
    position: int = Field(default=0, ge=0, description="Position within the document")
    entity_ids: list[str] = Field(default_factory=list, description="Mentioned entity IDs")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Ensure content is not empty."""
        if not v or not v.strip():
            raise ValueError("Text unit content cannot be empty")
        return v.strip()


class Entity(BaseModel):
    """A named entity extracted from text."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique entity ID")
    name: str = Field(description="Entity name as first seen")
    normalized_name: str = Field(
        default="", validate_default=True, description="Canonical name"
    )
    entity_type: EntityType = Field(default=EntityType.CONCEPT)
    description: str = Field(default="", description="Short description")
    source_unit_ids: list[str] = Field(default_factory=list)
    frequency: int = Field(default=1, ge=0, description="Number of mentions")

    @field_validator("normalized_name", mode="before")
    @classmethod
    def set_normalized_name(cls, v: str | None, info) -> str:
        """Set normalized name from name if not provided."""
        if v:
            return normalize_name(v)
        return normalize_name(info.data.get("name", ""))

    def merge_with(self, other: "Entity") -> "Entity":
        """Merge with another mention of the same entity."""
        if self.normalized_name != other.normalized_name:
            raise ValueError("Cannot merge entities with different normalized names")

        units = list(dict.fromkeys(self.source_unit_ids + other.source_unit_ids))
        return Entity(
            id=self.id,
            name=self.name,
            normalized_name=self.normalized_name,
            entity_type=self.entity_type,
            description=self.description or other.description,
            source_unit_ids=units,
            frequency=self.frequency + other.frequency,
        )


class Relation(BaseModel):
    """A weighted relationship between two entities."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique relation ID")
    source_entity_id: str
    target_entity_id: str
    relation_type: RelationType = Field(default=RelationType.RELATED_TO)
    weight: float = Field(default=1.0, ge=0)
    source_unit_ids: list[str] = Field(default_factory=list)

    @property
    def as_triple(self) -> tuple[str, str, str]:
        """Return as (source, relation, target) triple."""
        return (self.source_entity_id, self.relation_type.value, self.target_entity_id)


class Community(BaseModel):
    """A cluster of closely related entities with its summary report."""

    id: str
    level: int = Field(default=0, ge=0)
    entity_ids: list[str] = Field(default_factory=list)
    title: str = ""
    summary: str = ""
    rank: float = Field(default=0.0, ge=0)

    @property
    def size(self) -> int:
        return len(self.entity_ids)
