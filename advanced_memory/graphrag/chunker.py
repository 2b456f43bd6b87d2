"""Word-window chunking of documents into text units."""

from advanced_memory.core.logging import LoggerMixin
from advanced_memory.core.types import TextUnit


class TextChunker(LoggerMixin):
    """
    Fixed-size chunker with overlap.

    Sizes are counted in words. Consecutive units share `chunk_overlap`
    words so that entity co-occurrences near a boundary are not lost.
    """

    def __init__(self, chunk_size: int = 300, chunk_overlap: int = 50) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def chunk(self, text: str, document_id: str) -> list[TextUnit]:
        """
        Split text into text units.

        Args:
            text: Document text
            document_id: Parent document ID

        Returns:
            Text units in document order
        """
        if not text or not text.strip():
            return []

        words = text.split()
        step = self.chunk_size - self.chunk_overlap
        units = []
        start = 0

        while start < len(words):
            window = words[start : start + self.chunk_size]
            units.append(
                TextUnit(
                    document_id=document_id,
                    content=" ".join(window),
                    position=len(units),
                )
            )
            if start + self.chunk_size >= len(words):
                break
            start += step

        return units
