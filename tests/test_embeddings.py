"""
Tests for embedding generation modules.

Covers:
- HashingEmbedder determinism, normalisation and similarity
- SentenceTransformerEmbedder loading and error handling
- cosine_similarity and create_embedder
"""

import sys
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from advanced_memory.core.exceptions import ConfigurationError, EmbeddingError
from advanced_memory.vector.embeddings import (
    HashingEmbedder,
    SentenceTransformerEmbedder,
    cosine_similarity,
    create_embedder,
)


# =============================================================================
# HashingEmbedder Tests
# =============================================================================


class TestHashingEmbedder:
    @pytest.mark.asyncio
    async def test_shape_and_norm(self):
        embedder = HashingEmbedder(dimension=128)
        vectors = await embedder.embed(["Acme Corp builds robots", "Coral reefs in the ocean"])

        assert vectors.shape == (2, 128)
        np.testing.assert_allclose(np.linalg.norm(vectors, axis=1), [1.0, 1.0], rtol=1e-5)

    @pytest.mark.asyncio
    async def test_deterministic(self):
        a = await HashingEmbedder(dimension=64).embed_single("Alice founded Acme")
        b = await HashingEmbedder(dimension=64).embed_single("Alice founded Acme")
        np.testing.assert_array_equal(a, b)

    @pytest.mark.asyncio
    async def test_shared_vocabulary_is_closer(self):
        embedder = HashingEmbedder()
        query = await embedder.embed_single("robots built by Acme")
        docs = await embedder.embed(["Acme builds industrial robots", "The ocean is deep and blue"])

        scores = cosine_similarity(docs, query)
        assert scores[0] > scores[1]

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        vectors = await HashingEmbedder(dimension=32).embed([])
        assert vectors.shape == (0, 32)

    @pytest.mark.asyncio
    async def test_stopword_only_text_is_zero(self):
        vector = await HashingEmbedder(dimension=32).embed_single("the and of")
        assert not vector.any()

    def test_invalid_dimension(self):
        with pytest.raises(EmbeddingError):
            HashingEmbedder(dimension=0)

    def test_dimension_property(self):
        assert HashingEmbedder(dimension=96).dimension == 96


# =============================================================================
# SentenceTransformerEmbedder Tests
# =============================================================================


class TestSentenceTransformerEmbedder:
    def test_known_model_dimension(self):
        embedder = SentenceTransformerEmbedder(model_name="BAAI/bge-small-en-v1.5")
        assert embedder.dimension == 384
        assert embedder._initialized is False

    @pytest.mark.asyncio
    async def test_initialize_and_embed(self):
        model = MagicMock()
        model.get_sentence_embedding_dimension.return_value = 4
        model.encode.return_value = np.ones((2, 4))
        fake_module = MagicMock()
        fake_module.SentenceTransformer.return_value = model

        with patch.dict(sys.modules, {"sentence_transformers": fake_module}):
            embedder = SentenceTransformerEmbedder(model_name="custom-model")
            vectors = await embedder.embed(["a", "  "])

        assert vectors.shape == (2, 4)
        assert vectors.dtype == np.float32
        assert embedder.dimension == 4
        encoded = model.encode.call_args.args[0]
        assert encoded == ["a", " "]

    @pytest.mark.asyncio
    async def test_load_failure_raises(self):
        fake_module = MagicMock()
        fake_module.SentenceTransformer.side_effect = OSError("model not found")

        with patch.dict(sys.modules, {"sentence_transformers": fake_module}):
            with pytest.raises(EmbeddingError, match="Failed to load"):
                await SentenceTransformerEmbedder(model_name="missing").initialize()

    @pytest.mark.asyncio
    async def test_encode_failure_raises(self):
        embedder = SentenceTransformerEmbedder()
        embedder._initialized = True
        embedder._model = MagicMock()
        embedder._model.encode.side_effect = RuntimeError("CUDA out of memory")

        with pytest.raises(EmbeddingError, match="Text embedding failed"):
            await embedder.embed(["text"])


# =============================================================================
# Helpers
# =============================================================================


class TestCosineSimilarity:
    def test_basic(self):
        matrix = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        scores = cosine_similarity(matrix, np.array([1.0, 0.0]))
        np.testing.assert_allclose(scores, [1.0, 0.0, 1 / np.sqrt(2)], rtol=1e-5)

    def test_zero_rows_score_zero(self):
        scores = cosine_similarity(np.array([[0.0, 0.0], [2.0, 0.0]]), np.array([1.0, 0.0]))
        np.testing.assert_allclose(scores, [0.0, 1.0])

    def test_zero_query(self):
        scores = cosine_similarity(np.ones((3, 2)), np.zeros(2))
        assert scores.tolist() == [0.0, 0.0, 0.0]

    def test_empty_matrix(self):
        assert cosine_similarity(np.zeros((0, 4)), np.ones(4)).shape == (0,)


class TestCreateEmbedder:
    def test_hashing(self):
        embedder = create_embedder("hashing", dimension=64)
        assert isinstance(embedder, HashingEmbedder)
        assert embedder.dimension == 64

    def test_sentence_transformers(self):
        embedder = create_embedder("sentence-transformers", model_name="all-MiniLM-L6-v2")
        assert isinstance(embedder, SentenceTransformerEmbedder)
        assert embedder.batch_size == 32

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_embedder("word2vec")
