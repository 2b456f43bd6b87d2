"""
Text embedding generation.

Supports:
- Feature-hashing embeddings (no model download, deterministic)
- sentence-transformers models (BGE, MiniLM)
"""

import hashlib
from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from advanced_memory.core.exceptions import ConfigurationError, EmbeddingError
from advanced_memory.core.logging import LoggerMixin
from advanced_memory.core.text import content_tokens


class TextEmbedder(ABC, LoggerMixin):
    """Abstract base class for text embedders."""

    def __init__(self, model_name: str, **config: Any) -> None:
        self.model_name = model_name
        self.config = config
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Load the embedding model."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> np.ndarray:
        """Embed texts into an array of shape (len(texts), dimension)."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Embedding dimension."""

    async def embed_single(self, text: str) -> np.ndarray:
        """Embed a single text."""
        embeddings = await self.embed([text])
        return embeddings[0] if len(embeddings) > 0 else np.zeros(self.dimension)

    async def cleanup(self) -> None:
        self._initialized = False


class HashingEmbedder(TextEmbedder):
    """
    Feature-hashing embedder over word unigrams and bigrams.

    Each feature is hashed with blake2b into one of `dimension` buckets with
    a hash-derived sign, and the resulting vector is L2-normalised. Texts
    that share vocabulary land close together. It is the default backend
    because it needs no model files and is fully deterministic.
    """

    def __init__(self, dimension: int = 384, bigram_weight: float = 0.5, **config: Any) -> None:
        super().__init__(model_name=f"hashing-{dimension}", **config)
        if dimension <= 0:
            raise EmbeddingError("Embedding dimension must be positive", model_name=self.model_name)
        self._dimension = dimension
        self.bigram_weight = bigram_weight

    async def initialize(self) -> None:
        self._initialized = True

    def _bucket(self, feature: str) -> tuple[int, float]:
        digest = hashlib.blake2b(feature.encode("utf-8"), digest_size=8).digest()
        value = int.from_bytes(digest, "big")
        sign = 1.0 if value & 1 else -1.0
        return (value >> 1) % self._dimension, sign

    def _vectorize(self, text: str) -> np.ndarray:
        vector = np.zeros(self._dimension, dtype=np.float32)
        tokens = content_tokens(text)

        for token in tokens:
            index, sign = self._bucket(token)
            vector[index] += sign
        for left, right in zip(tokens, tokens[1:]):
            index, sign = self._bucket(f"{left} {right}")
            vector[index] += sign * self.bigram_weight

        norm = np.linalg.norm(vector)
        return vector / norm if norm > 0 else vector

    async def embed(self, texts: list[str]) -> np.ndarray:
        if not texts:
            return np.zeros((0, self._dimension), dtype=np.float32)
        return np.vstack([self._vectorize(t) for t in texts])

    @property
    def dimension(self) -> int:
        return self._dimension


class SentenceTransformerEmbedder(TextEmbedder):
    """Text embedder using sentence-transformers."""

    MODEL_DIMENSIONS = {
        "BAAI/bge-base-en-v1.5": 768,
        "BAAI/bge-small-en-v1.5": 384,
        "BAAI/bge-large-en-v1.5": 1024,
        "all-MiniLM-L6-v2": 384,
        "sentence-transformers/all-MiniLM-L6-v2": 384,
    }

    def __init__(
        self,
        model_name: str = "BAAI/bge-small-en-v1.5",
        device: str = "cpu",
        batch_size: int = 32,
        **config: Any,
    ) -> None:
        super().__init__(model_name, **config)
        self.device = device
        self.batch_size = batch_size
        self._model = None
        self._dimension = self.MODEL_DIMENSIONS.get(model_name, 768)

    async def initialize(self) -> None:
        """Load sentence-transformers model."""
        if self._initialized:
            return

        try:
            from sentence_transformers import SentenceTransformer

            self._model = SentenceTransformer(self.model_name, device=self.device)
            self._dimension = self._model.get_sentence_embedding_dimension()
        except Exception as e:
            raise EmbeddingError(
                f"Failed to load text embedding model: {e}",
                model_name=self.model_name,
                cause=e,
            )

        self._initialized = True
        self.logger.info(
            "Text embedder initialized",
            model=self.model_name,
            device=self.device,
            dimension=self._dimension,
        )

    async def embed(self, texts: list[str]) -> np.ndarray:
        if not self._initialized:
            await self.initialize()

        if not texts:
            return np.zeros((0, self._dimension), dtype=np.float32)

        try:
            embeddings = self._model.encode(
                [t if t and t.strip() else " " for t in texts],
                batch_size=self.batch_size,
                normalize_embeddings=True,
                show_progress_bar=False,
            )
            return np.asarray(embeddings, dtype=np.float32)
        except Exception as e:
            raise EmbeddingError(
                f"Text embedding failed: {e}",
                model_name=self.model_name,
                cause=e,
            )

    @property
    def dimension(self) -> int:
        return self._dimension

    async def cleanup(self) -> None:
        self._model = None
        await super().cleanup()


def cosine_similarity(matrix: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Cosine similarity of every row of `matrix` with `vector`; zero rows score 0."""
    matrix = np.atleast_2d(np.asarray(matrix, dtype=np.float32))
    vector = np.asarray(vector, dtype=np.float32)
    if matrix.size == 0:
        return np.zeros(0, dtype=np.float32)

    row_norms = np.linalg.norm(matrix, axis=1)
    vector_norm = np.linalg.norm(vector)
    if vector_norm == 0:
        return np.zeros(matrix.shape[0], dtype=np.float32)

    denom = row_norms * vector_norm
    dots = matrix @ vector
    return np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)


def create_embedder(
    backend: str = "hashing",
    model_name: str = "BAAI/bge-small-en-v1.5",
    dimension: int = 384,
    device: str = "cpu",
    batch_size: int = 32,
) -> TextEmbedder:
    """Build the configured embedder."""
    if backend == "hashing":
        return HashingEmbedder(dimension=dimension)
    if backend == "sentence-transformers":
        return SentenceTransformerEmbedder(
            model_name=model_name,
            device=device,
            batch_size=batch_size,
        )
    raise ConfigurationError(
        f"Unknown embedding backend: {backend}",
        details={"backend": backend},
    )
