"""
Tests for core data types and models.

Covers the response envelope, result models, enums and graph records.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from advanced_memory.api.schemas import HealthResponse, QueryResponse
from advanced_memory.core.exceptions import ValidationError
from advanced_memory.core.types import (
    BaseResponse,
    Community,
    Entity,
    EntityType,
    MemoryEvent,
    MemoryRecord,
    MemoryResult,
    Relation,
    RelationType,
    SearchType,
    TextUnit,
    VerificationResult,
    normalize_name,
)


class SampleResponse(BaseResponse):
    payload: str = ""


# =============================================================================
# BaseResponse
# =============================================================================


class TestBaseResponse:
    def test_defaults(self):
        response = SampleResponse()
        assert response.success is True
        assert response.error_message is None

    def test_timestamp_is_recent_utc(self):
        response = SampleResponse()
        now = datetime.now(timezone.utc)
        assert response.timestamp.tzinfo is not None
        assert now - timedelta(minutes=1) <= response.timestamp <= now

    def test_cannot_instantiate_directly(self):
        with pytest.raises(TypeError):
            BaseResponse()

    def test_failure_builder(self):
        response = SampleResponse.failure("boom", payload="x")
        assert response.success is False
        assert response.error_message == "boom"
        assert response.payload == "x"

    def test_api_responses_derive_from_base(self):
        assert issubclass(HealthResponse, BaseResponse)
        assert issubclass(QueryResponse, BaseResponse)
        assert QueryResponse(answer="a").success is True

    def test_serializes_timestamp(self):
        data = SampleResponse().model_dump(mode="json")
        assert set(data) == {"success", "error_message", "timestamp", "payload"}
        assert isinstance(data["timestamp"], str)


# =============================================================================
# Results
# =============================================================================


class TestMemoryResult:
    def test_defaults(self):
        result = MemoryResult()
        assert result.id == ""
        assert result.content == ""
        assert result.score == 0.0
        assert result.metadata == {}

    def test_metadata_not_shared(self):
        a, b = MemoryResult(), MemoryResult()
        a.metadata["k"] = 1
        assert b.metadata == {}


class TestVerificationResult:
    def test_defaults(self):
        result = VerificationResult()
        assert result.is_verified is False
        assert result.confidence == 0.0
        assert result.sources == []
        assert result.details is None

    @pytest.mark.parametrize("value,expected", [(-0.5, 0.0), (0.4, 0.4), (1.7, 1.0)])
    def test_confidence_clamped(self, value, expected):
        assert VerificationResult(confidence=value).confidence == expected


class TestMemoryRecord:
    def test_to_result_clamps_and_adds_metadata(self):
        record = MemoryRecord(user_id="u1", content="likes tea", hash="h", metadata={"k": "v"})
        result = record.to_result(1.3)

        assert result.id == record.id
        assert result.score == 1.0
        assert result.metadata["k"] == "v"
        assert result.metadata["user_id"] == "u1"
        assert "created_at" in result.metadata

    def test_negative_score_clamped(self):
        record = MemoryRecord(user_id="u1", content="x", hash="h")
        assert record.to_result(-0.2).score == 0.0


# =============================================================================
# Enums
# =============================================================================


class TestSearchType:
    @pytest.mark.parametrize("raw", ["local", "LOCAL", " Local "])
    def test_parse_case_insensitive(self, raw):
        assert SearchType.parse(raw) is SearchType.LOCAL

    def test_parse_enum_passthrough(self):
        assert SearchType.parse(SearchType.GLOBAL) is SearchType.GLOBAL

    @pytest.mark.parametrize("raw", ["", "hybrid", None])
    def test_parse_invalid(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            SearchType.parse(raw)
        assert exc_info.value.details["field"] == "search_type"

    def test_memory_events(self):
        assert {e.value for e in MemoryEvent} == {"ADD", "UPDATE", "DELETE"}


# =============================================================================
# Graph records
# =============================================================================


class TestGraphRecords:
    def test_normalize_name(self):
        assert normalize_name("  Acme   Corp ") == "acme corp"

    def test_entity_normalized_name_from_name(self):
        entity = Entity(name="Alice  Johnson", entity_type=EntityType.PERSON)
        assert entity.normalized_name == "alice johnson"

    def test_entity_merge(self):
        a = Entity(name="Acme Corp", source_unit_ids=["u1"], frequency=2)
        b = Entity(name="acme corp", source_unit_ids=["u1", "u2"], description="Robots")
        merged = a.merge_with(b)

        assert merged.id == a.id
        assert merged.frequency == 3
        assert merged.source_unit_ids == ["u1", "u2"]
        assert merged.description == "Robots"

    def test_entity_merge_rejects_different_names(self):
        with pytest.raises(ValueError):
            Entity(name="Acme").merge_with(Entity(name="Globex"))

    def test_text_unit_content_stripped(self):
        unit = TextUnit(document_id="d1", content="  hello world  ")
        assert unit.content == "hello world"

    def test_text_unit_rejects_blank(self):
        with pytest.raises(PydanticValidationError):
            TextUnit(document_id="d1", content="   ")

    def test_relation_triple(self):
        relation = Relation(source_entity_id="a", target_entity_id="b", weight=2)
        assert relation.as_triple == ("a", RelationType.RELATED_TO.value, "b")

    def test_community_size(self):
        assert Community(id="community-0", entity_ids=["a", "b"]).size == 2
