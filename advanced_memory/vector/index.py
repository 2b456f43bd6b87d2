"""In-memory vector index used by the graph engine and the memory store."""

from collections.abc import Iterable

import numpy as np

from advanced_memory.vector.embeddings import cosine_similarity


class InMemoryVectorIndex:
    """
    Id-addressable matrix of vectors with cosine search.

    Re-adding an id replaces its vector.
    """

    def __init__(self, dimension: int) -> None:
        self.dimension = dimension
        self._ids: list[str] = []
        self._positions: dict[str, int] = {}
        self._matrix = np.zeros((0, dimension), dtype=np.float32)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._positions

    def add(self, ids: list[str], vectors: np.ndarray) -> None:
        vectors = np.atleast_2d(np.asarray(vectors, dtype=np.float32))
        if len(ids) != vectors.shape[0]:
            raise ValueError("ids and vectors must have the same length")

        new_rows = []
        for item_id, vector in zip(ids, vectors):
            position = self._positions.get(item_id)
            if position is not None:
                self._matrix[position] = vector
            else:
                self._positions[item_id] = len(self._ids)
                self._ids.append(item_id)
                new_rows.append(vector)

        if new_rows:
            self._matrix = np.vstack([self._matrix, np.vstack(new_rows)])

    def remove(self, item_id: str) -> bool:
        position = self._positions.pop(item_id, None)
        if position is None:
            return False
        self._ids.pop(position)
        self._matrix = np.delete(self._matrix, position, axis=0)
        self._positions = {i: p for p, i in enumerate(self._ids)}
        return True

    def get(self, item_id: str) -> np.ndarray | None:
        position = self._positions.get(item_id)
        return None if position is None else self._matrix[position]

    def similarities(
        self,
        vector: np.ndarray,
        ids: Iterable[str] | None = None,
    ) -> dict[str, float]:
        """Cosine similarity of `vector` to every stored id, or to the given subset."""
        if ids is None:
            if not self._ids:
                return {}
            scores = cosine_similarity(self._matrix, vector)
            return {item_id: float(s) for item_id, s in zip(self._ids, scores)}

        subset = [i for i in ids if i in self._positions]
        if not subset:
            return {}
        rows = self._matrix[[self._positions[i] for i in subset]]
        scores = cosine_similarity(rows, vector)
        return {item_id: float(s) for item_id, s in zip(subset, scores)}

    def search(
        self,
        vector: np.ndarray,
        top_k: int,
        ids: Iterable[str] | None = None,
    ) -> list[tuple[str, float]]:
        """Top-k (id, score) pairs, best first."""
        scores = self.similarities(vector, ids)
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        return ranked[:top_k]

    def clear(self) -> None:
        self._ids.clear()
        self._positions.clear()
        self._matrix = np.zeros((0, self.dimension), dtype=np.float32)

    def snapshot(self) -> tuple[list[str], np.ndarray]:
        return list(self._ids), self._matrix.copy()

    def restore(self, state: tuple[list[str], np.ndarray]) -> None:
        ids, matrix = state
        self._ids = list(ids)
        self._positions = {item_id: p for p, item_id in enumerate(self._ids)}
        self._matrix = matrix.copy()
