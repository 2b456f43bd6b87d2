"""Vector embeddings and similarity."""

from advanced_memory.vector.embeddings import (
    HashingEmbedder,
    SentenceTransformerEmbedder,
    TextEmbedder,
    cosine_similarity,
    create_embedder,
)

__all__ = [
    "HashingEmbedder",
    "SentenceTransformerEmbedder",
    "TextEmbedder",
    "cosine_similarity",
    "create_embedder",
]
