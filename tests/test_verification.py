"""
Tests for the grounding verifier.

Covers:
- The VerificationService contract
- Support, negation and number contradictions
- Source selection and inline evidence
- Trusted source loading
- The optional LLM judge
"""

import inspect
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from advanced_memory.core.exceptions import ConfigurationError, LLMError, ValidationError
from advanced_memory.core.types import VerificationResult
from advanced_memory.llm.ollama_client import OllamaClient
from advanced_memory.verification.engine import GroundingVerifier
from advanced_memory.verification.service import VerificationService


@pytest.fixture
async def loaded(verifier, trusted_sources_file) -> GroundingVerifier:
    await verifier.load_sources(trusted_sources_file)
    return verifier


class TestVerificationServiceContract:
    def test_abstract_methods(self):
        assert VerificationService.__abstractmethods__ == {"verify", "get_confidence_score"}
        assert inspect.iscoroutinefunction(VerificationService.verify)
        assert inspect.iscoroutinefunction(VerificationService.get_confidence_score)

    def test_implementation(self, verifier):
        assert isinstance(verifier, VerificationService)


# =============================================================================
# Verify
# =============================================================================


class TestVerify:
    @pytest.mark.asyncio
    async def test_supported_statement(self, loaded):
        result = await loaded.verify("Paris is the capital of France")

        assert isinstance(result, VerificationResult)
        assert result.is_verified is True
        assert result.confidence == pytest.approx(1.0, abs=1e-3)
        assert result.sources == ["geography"]
        assert "Paris is the capital of France." in result.details

    @pytest.mark.asyncio
    async def test_negation_contradiction(self, loaded):
        result = await loaded.verify("Paris is not the capital of France")

        assert result.is_verified is False
        assert result.confidence < 0.3
        assert "negation" in result.details

    @pytest.mark.asyncio
    async def test_number_contradiction(self, loaded):
        result = await loaded.verify("A lunar month lasts about 40 days")

        assert result.is_verified is False
        assert "number" in result.details

    @pytest.mark.asyncio
    async def test_unrelated_statement(self, loaded):
        result = await loaded.verify("Bananas are rich in potassium")

        assert result.is_verified is False
        assert result.confidence < 0.6
        assert result.sources == []

    @pytest.mark.asyncio
    async def test_restricted_to_named_sources(self, loaded):
        result = await loaded.verify("Paris is the capital of France", sources=["astronomy"])
        assert result.is_verified is False

    @pytest.mark.asyncio
    async def test_inline_evidence(self, verifier):
        result = await verifier.verify(
            "Water boils at 100 degrees",
            sources=["Water boils at 100 degrees Celsius at sea level."],
        )

        assert result.is_verified is True
        assert result.sources == ["inline-1"]

    @pytest.mark.asyncio
    async def test_no_evidence(self, verifier):
        result = await verifier.verify("Paris is the capital of France")

        assert result.is_verified is False
        assert result.confidence == 0.0
        assert result.sources == []
        assert "No evidence" in result.details

    @pytest.mark.parametrize("statement", ["", "   ", None])
    @pytest.mark.asyncio
    async def test_blank_statement(self, loaded, statement):
        with pytest.raises(ValidationError):
            await loaded.verify(statement)

    @pytest.mark.asyncio
    async def test_confidence_bounded(self, loaded):
        for statement in [
            "Paris is the capital of France",
            "Paris is not the capital of France",
            "The Moon orbits the Earth",
            "Nothing here matches",
        ]:
            result = await loaded.verify(statement)
            assert 0.0 <= result.confidence <= 1.0
            assert result.is_verified == (result.confidence >= loaded.threshold)


class TestConfidenceScore:
    @pytest.mark.asyncio
    async def test_matches_verify(self, loaded):
        score = await loaded.get_confidence_score("The Moon orbits the Earth")
        result = await loaded.verify("The Moon orbits the Earth")

        assert score == result.confidence
        assert score > 0.6

    @pytest.mark.asyncio
    async def test_blank_claim(self, loaded):
        with pytest.raises(ValidationError):
            await loaded.get_confidence_score(" ")


# =============================================================================
# Source registry
# =============================================================================


class TestSources:
    @pytest.mark.asyncio
    async def test_load_from_settings_path(self, embedder, trusted_sources_file):
        verifier = GroundingVerifier(embedder=embedder, trusted_sources_path=trusted_sources_file)
        await verifier.initialize()

        assert verifier.source_names == ["geography", "astronomy"]
        assert verifier.stats() == {"sources": 2, "sentences": 4}

    @pytest.mark.asyncio
    async def test_load_list_format(self, verifier, tmp_path):
        path = tmp_path / "sources.json"
        path.write_text(json.dumps([{"name": "handbook", "text": "Staff meet on Mondays."}]))

        assert await verifier.load_sources(path) == 1
        assert verifier.source_names == ["handbook"]

    @pytest.mark.asyncio
    async def test_missing_file(self, verifier, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            await verifier.load_sources(tmp_path / "missing.json")

    @pytest.mark.parametrize("content", ["not json", "[1, 2]", '"text"'])
    @pytest.mark.asyncio
    async def test_invalid_file(self, verifier, tmp_path, content):
        path = tmp_path / "sources.json"
        path.write_text(content)

        with pytest.raises(ConfigurationError):
            await verifier.load_sources(path)

    @pytest.mark.asyncio
    async def test_replace_source(self, verifier):
        await verifier.add_source("notes", "Alpha is first. Beta is second. Gamma is third.")
        await verifier.add_source("notes", "Delta is fourth.")

        assert verifier.stats() == {"sources": 1, "sentences": 1}
        result = await verifier.verify("Alpha is first")
        assert result.is_verified is False

    @pytest.mark.parametrize("name,text", [("", "text"), ("name", "  ")])
    @pytest.mark.asyncio
    async def test_add_source_validation(self, verifier, name, text):
        with pytest.raises(ValidationError):
            await verifier.add_source(name, text)


# =============================================================================
# LLM judge
# =============================================================================


class TestLLMJudge:
    @pytest.fixture
    def judged(self, embedder):
        llm = MagicMock(spec=OllamaClient)
        llm.generate_json = AsyncMock()
        verifier = GroundingVerifier(embedder=embedder, llm=llm, threshold=0.6)
        return verifier, llm

    @pytest.mark.asyncio
    async def test_supported_verdict_averaged(self, judged, trusted_sources_file):
        verifier, llm = judged
        await verifier.load_sources(trusted_sources_file)
        llm.generate_json.return_value = {"verdict": "supported", "confidence": 0.5}

        result = await verifier.verify("Paris is the capital of France")

        assert result.confidence == pytest.approx(0.75, abs=1e-3)
        assert result.is_verified is True
        prompt = llm.generate_json.call_args.args[0]
        assert "Statement: Paris is the capital of France" in prompt

    @pytest.mark.asyncio
    async def test_refuted_verdict_lowers_confidence(self, judged, trusted_sources_file):
        verifier, llm = judged
        await verifier.load_sources(trusted_sources_file)
        llm.generate_json.return_value = {"verdict": "refuted", "confidence": 1.0}

        result = await verifier.verify("Paris is the capital of France")

        assert result.confidence == pytest.approx(0.5, abs=1e-3)
        assert result.is_verified is False

    @pytest.mark.asyncio
    async def test_unknown_verdict_ignored(self, judged, trusted_sources_file):
        verifier, llm = judged
        await verifier.load_sources(trusted_sources_file)
        llm.generate_json.return_value = {"verdict": "unknown", "confidence": 0.9}

        result = await verifier.verify("Paris is the capital of France")
        assert result.confidence == pytest.approx(1.0, abs=1e-3)

    @pytest.mark.asyncio
    async def test_llm_failure_falls_back(self, judged, trusted_sources_file):
        verifier, llm = judged
        await verifier.load_sources(trusted_sources_file)
        llm.generate_json.side_effect = LLMError("connection refused")

        result = await verifier.verify("Paris is the capital of France")
        assert result.is_verified is True
        assert result.confidence == pytest.approx(1.0, abs=1e-3)
