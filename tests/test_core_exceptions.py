"""
Tests for core exception hierarchy.

Covers all custom exception classes, their attributes, and string representations.
"""

import pytest

from advanced_memory.core.exceptions import (
    AdvancedMemoryError,
    ConfigurationError,
    EmbeddingError,
    GraphError,
    IndexingError,
    LLMError,
    MemoryStoreError,
    ValidationError,
    VerificationError,
)


class TestAdvancedMemoryError:
    def test_basic_message(self):
        err = AdvancedMemoryError("Something failed")
        assert str(err) == "Something failed"
        assert err.message == "Something failed"
        assert err.details == {}
        assert err.cause is None

    def test_with_details(self):
        err = AdvancedMemoryError("Failed", details={"key": "value"})
        assert err.details == {"key": "value"}
        assert "Details: {'key': 'value'}" in str(err)

    def test_with_cause(self):
        cause = ValueError("original error")
        err = AdvancedMemoryError("Failed", cause=cause)
        assert err.cause is cause
        assert "Caused by: original error" in str(err)

    def test_none_details_default(self):
        err = AdvancedMemoryError("test", details=None)
        assert err.details == {}


@pytest.mark.parametrize(
    "exc_class",
    [
        ConfigurationError,
        ValidationError,
        GraphError,
        IndexingError,
        MemoryStoreError,
        VerificationError,
        EmbeddingError,
        LLMError,
    ],
)
def test_subclasses_share_base(exc_class):
    err = exc_class("failed")
    assert isinstance(err, AdvancedMemoryError)
    with pytest.raises(AdvancedMemoryError):
        raise err


class TestValidationError:
    def test_field_and_value(self):
        err = ValidationError("bad", field="limit", value=0)
        assert err.details == {"field": "limit", "value": "0"}

    def test_value_truncated(self):
        err = ValidationError("bad", value="x" * 500)
        assert len(err.details["value"]) == 100

    def test_none_value_omitted(self):
        assert "value" not in ValidationError("bad", field="query").details


class TestGraphError:
    def test_query_truncated(self):
        err = GraphError("failed", query="q" * 300, node_id="n1")
        assert err.details["query"].endswith("...")
        assert len(err.details["query"]) == 103
        assert err.details["node_id"] == "n1"


class TestIndexingError:
    def test_zero_document_count_kept(self):
        assert IndexingError("failed", document_count=0).details == {"document_count": 0}


class TestMemoryStoreError:
    def test_user_and_operation(self):
        err = MemoryStoreError("failed", user_id="u1", operation="search")
        assert err.details == {"user_id": "u1", "operation": "search"}


class TestVerificationError:
    def test_statement(self):
        err = VerificationError("failed", statement="Paris is in France")
        assert err.details["statement"] == "Paris is in France"


class TestLLMError:
    def test_model_and_prompt_length(self):
        cause = TimeoutError("slow")
        err = LLMError("timeout", model="mistral", prompt_length=42, cause=cause)
        assert err.details == {"model": "mistral", "prompt_length": 42}
        assert "Caused by: slow" in str(err)


class TestEmbeddingError:
    def test_model_name(self):
        assert EmbeddingError("failed", model_name="bge").details == {"model_name": "bge"}
