"""
Grounding verifier.

Scores a statement against sentences from trusted sources:
- Embedding similarity blended with token recall gives a support score
- Negation or number disagreements on the same subject count as
  contradictions and are subtracted
- An optional LLM judge is averaged in when configured
"""

import asyncio
import json
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from advanced_memory.core.exceptions import (
    AdvancedMemoryError,
    ConfigurationError,
    LLMError,
    ValidationError,
    VerificationError,
)
from advanced_memory.core.logging import LoggerMixin, log_operation
from advanced_memory.core.text import content_tokens, has_negation, is_number, split_sentences
from advanced_memory.core.types import VerificationResult
from advanced_memory.llm.ollama_client import OllamaClient
from advanced_memory.vector.embeddings import TextEmbedder, cosine_similarity
from advanced_memory.vector.index import InMemoryVectorIndex
from advanced_memory.verification.service import VerificationService

EMBEDDING_WEIGHT = 0.6
RECALL_WEIGHT = 0.4
SAME_SUBJECT_RECALL = 0.5


@dataclass
class Evidence:
    """One evidence sentence scored against a statement."""

    source: str
    sentence: str
    support: float
    contradiction: str | None = None


class GroundingVerifier(VerificationService, LoggerMixin):
    """VerificationService over a registry of trusted source texts."""

    JUDGE_PROMPT = """Decide whether the statement is supported by the evidence.

Evidence:
{evidence}

Statement: {statement}

Reply with a JSON object: {{"verdict": "supported" | "refuted" | "unknown", "confidence": <number between 0 and 1>}}"""

    def __init__(
        self,
        embedder: TextEmbedder,
        llm: OllamaClient | None = None,
        threshold: float = 0.6,
        trusted_sources_path: Path | str | None = None,
    ) -> None:
        """
        Initialize the verifier.

        Args:
            embedder: Text embedder for statements and evidence sentences
            llm: Optional Ollama client used as a judge
            threshold: Confidence at which a statement counts as verified
            trusted_sources_path: JSON file of trusted sources loaded on
                initialize
        """
        self.embedder = embedder
        self.llm = llm
        self.threshold = threshold
        self.trusted_sources_path = Path(trusted_sources_path) if trusted_sources_path else None

        self._sources: dict[str, list[str]] = {}
        self._index = InMemoryVectorIndex(embedder.dimension)
        self._lock = asyncio.Lock()
        self._initialized = False

    async def initialize(self) -> None:
        if self._initialized:
            return
        await self.embedder.initialize()
        self._initialized = True
        if self.trusted_sources_path is not None:
            await self.load_sources(self.trusted_sources_path)

    @property
    def source_names(self) -> list[str]:
        return list(self._sources)

    # =========================================================================
    # Source registry
    # =========================================================================

    async def add_source(self, name: str, text: str) -> int:
        """
        Register (or replace) a trusted source.

        Returns:
            Number of sentences indexed for the source
        """
        if not name or not name.strip():
            raise ValidationError("Source name cannot be empty", field="name")
        if not text or not text.strip():
            raise ValidationError("Source text cannot be empty", field="text", value=name)
        name = name.strip()

        if not self._initialized:
            await self.initialize()

        sentences = split_sentences(text)
        vectors = await self.embedder.embed(sentences)

        async with self._lock:
            for i in range(len(self._sources.get(name, []))):
                self._index.remove(f"{name}#{i}")
            self._sources[name] = sentences
            self._index.add([f"{name}#{i}" for i in range(len(sentences))], vectors)

        self.logger.info("Trusted source registered", source=name, sentences=len(sentences))
        return len(sentences)

    async def load_sources(self, path: Path | str) -> int:
        """
        Load trusted sources from a JSON file.

        The file holds either an object mapping names to texts or a list of
        {"name": ..., "text": ...} objects.

        Returns:
            Number of sources loaded
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Trusted sources file not found: {path}",
                details={"path": str(path)},
                cause=e,
            )
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read trusted sources file: {e}",
                details={"path": str(path)},
                cause=e,
            )

        if isinstance(data, dict):
            entries = list(data.items())
        elif isinstance(data, list) and all(
            isinstance(item, dict) and "name" in item and "text" in item for item in data
        ):
            entries = [(item["name"], item["text"]) for item in data]
        else:
            raise ConfigurationError(
                "Trusted sources must be an object or a list of {name, text} objects",
                details={"path": str(path)},
            )

        for name, text in entries:
            await self.add_source(str(name), str(text))
        return len(entries)

    # =========================================================================
    # Verification
    # =========================================================================

    async def _gather_evidence(
        self,
        sources: Iterable[str] | None,
    ) -> list[tuple[str, str, np.ndarray]]:
        requested = [s for s in (sources or []) if isinstance(s, str) and s.strip()]
        if not requested:
            requested = list(self._sources)

        evidence: list[tuple[str, str, np.ndarray]] = []
        inline: list[tuple[str, str]] = []
        for entry in requested:
            name = entry.strip()
            if name in self._sources:
                for i, sentence in enumerate(self._sources[name]):
                    evidence.append((name, sentence, self._index.get(f"{name}#{i}")))
            else:
                label = f"inline-{len({n for n, _ in inline}) + 1}"
                inline.extend((label, s) for s in split_sentences(entry))

        if inline:
            vectors = await self.embedder.embed([s for _, s in inline])
            evidence.extend((name, s, v) for (name, s), v in zip(inline, vectors))
        return evidence

    @staticmethod
    def _score(statement: str, sentence: str, similarity: float) -> Evidence:
        statement_tokens = content_tokens(statement)
        sentence_tokens = set(content_tokens(sentence))

        words = [t for t in statement_tokens if not is_number(t)]
        recall = (
            sum(1 for t in statement_tokens if t in sentence_tokens) / len(statement_tokens)
            if statement_tokens
            else 0.0
        )
        subject_recall = (
            sum(1 for t in words if t in sentence_tokens) / len(words) if words else 0.0
        )
        support = EMBEDDING_WEIGHT * max(similarity, 0.0) + RECALL_WEIGHT * recall

        contradiction = None
        if subject_recall >= SAME_SUBJECT_RECALL:
            if has_negation(statement) != has_negation(sentence):
                contradiction = "negation"
            else:
                stated = {t for t in statement_tokens if is_number(t)}
                found = {t for t in sentence_tokens if is_number(t)}
                if stated and found and not stated <= found:
                    contradiction = "number"

        return Evidence(source="", sentence=sentence, support=support, contradiction=contradiction)

    async def verify(
        self,
        statement: str,
        sources: Iterable[str] | None = None,
    ) -> VerificationResult:
        """
        Verify a statement against trusted sources.

        Args:
            statement: Statement to verify
            sources: Registered source names or inline evidence texts.
                None or empty checks every registered source.

        Returns:
            VerificationResult with confidence in [0, 1]
        """
        if not isinstance(statement, str) or not statement.strip():
            raise ValidationError("Statement cannot be empty", field="statement")
        if isinstance(sources, str):
            sources = [sources]
        statement = statement.strip()

        if not self._initialized:
            await self.initialize()

        start_time = time.time()
        try:
            result = await self._verify(statement, sources)
        except AdvancedMemoryError:
            log_operation(
                "verify",
                success=False,
                duration_ms=(time.time() - start_time) * 1000,
            )
            raise
        except Exception as e:
            log_operation(
                "verify",
                success=False,
                duration_ms=(time.time() - start_time) * 1000,
                error=str(e),
            )
            raise VerificationError(f"Verification failed: {e}", statement=statement, cause=e)

        log_operation(
            "verify",
            success=True,
            duration_ms=(time.time() - start_time) * 1000,
            verified=result.is_verified,
            confidence=round(result.confidence, 3),
        )
        return result

    async def _verify(
        self,
        statement: str,
        sources: Iterable[str] | None,
    ) -> VerificationResult:
        evidence = await self._gather_evidence(sources)
        if not evidence:
            return VerificationResult(
                is_verified=False,
                confidence=0.0,
                sources=[],
                details="No evidence available: register trusted sources or pass evidence text",
            )

        statement_vector = await self.embedder.embed_single(statement)
        similarities = cosine_similarity(np.vstack([v for _, _, v in evidence]), statement_vector)

        scored = []
        for (name, sentence, _), similarity in zip(evidence, similarities):
            item = self._score(statement, sentence, float(similarity))
            item.source = name
            scored.append(item)

        supporting = sorted(
            (e for e in scored if e.contradiction is None),
            key=lambda e: e.support,
            reverse=True,
        )
        contradicting = sorted(
            (e for e in scored if e.contradiction is not None),
            key=lambda e: e.support,
            reverse=True,
        )

        best = supporting[0] if supporting else None
        worst = contradicting[0] if contradicting else None
        confidence = (best.support if best else 0.0) - (worst.support if worst else 0.0)
        confidence = min(max(confidence, 0.0), 1.0)

        details = []
        if best is not None:
            details.append(f'Best evidence ({best.source}): "{best.sentence}" (support {best.support:.2f})')
        if worst is not None:
            details.append(
                f'Contradicted by ({worst.source}, {worst.contradiction}): "{worst.sentence}"'
            )

        if self.llm is not None:
            judged = await self._judge(statement, (supporting + contradicting)[:5])
            if judged is not None:
                confidence = (confidence + judged) / 2
                details.append(f"LLM judge confidence {judged:.2f}")

        verified = confidence >= self.threshold
        names = []
        for item in supporting:
            if item.support >= self.threshold and item.source not in names:
                names.append(item.source)

        return VerificationResult(
            is_verified=verified,
            confidence=confidence,
            sources=names,
            details="; ".join(details) or None,
        )

    async def _judge(self, statement: str, evidence: list[Evidence]) -> float | None:
        """Truth confidence from the LLM judge, or None if it is unavailable."""
        prompt = self.JUDGE_PROMPT.format(
            evidence="\n".join(f"- ({e.source}) {e.sentence}" for e in evidence),
            statement=statement,
        )
        try:
            data = await self.llm.generate_json(prompt)
        except LLMError as e:
            self.logger.warning("LLM judge failed; using lexical confidence", error=str(e))
            return None

        verdict = str(data.get("verdict", "unknown")).lower()
        try:
            confidence = min(max(float(data.get("confidence", 0.0)), 0.0), 1.0)
        except (TypeError, ValueError):
            self.logger.warning("LLM judge returned a non-numeric confidence", data=data)
            return None

        if verdict == "supported":
            return confidence
        if verdict == "refuted":
            return 1.0 - confidence
        return None

    async def get_confidence_score(self, claim: str) -> float:
        """Confidence in [0, 1] that the claim is supported by the registered sources."""
        result = await self.verify(claim)
        return result.confidence

    def stats(self) -> dict[str, Any]:
        return {
            "sources": len(self._sources),
            "sentences": len(self._index),
        }
