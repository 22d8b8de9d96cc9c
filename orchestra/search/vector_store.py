"""In-memory document store with cosine-similarity lookup."""

from __future__ import annotations

from typing import Any, Generic, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from ..errors import EmbeddingModelMismatchError
from .embedder import Embedder

T = TypeVar("T")


def cosine_scores(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` (dim,) against each row of ``matrix`` (n, dim)."""
    q = np.asarray(query, dtype="float32").reshape(-1)
    m = np.asarray(matrix, dtype="float32")
    if m.size == 0:
        return np.zeros(0, dtype="float32")
    q_norm = np.linalg.norm(q)
    m_norm = np.linalg.norm(m, axis=1)
    denom = m_norm * q_norm
    # Zero vectors score 0 instead of NaN
    denom[denom == 0] = 1.0
    return (m @ q) / denom


def rank(scores: np.ndarray) -> List[int]:
    """Indices by descending score; equal scores keep insertion order."""
    return sorted(range(len(scores)), key=lambda i: -float(scores[i]))


class InMemoryVectorStore(Generic[T]):
    """Holds documents with their embeddings.

    All vectors must come from one embedding model; the store remembers which.

    Usage:
        store = InMemoryVectorStore.from_documents(embedder, docs, texts=[...])
        hits = store.top_n(embedder.embed_query("What is Rig?"), n=2, threshold=0.8)
    """

    def __init__(self, embedding_model: Optional[str] = None):
        self.embedding_model = embedding_model
        self._documents: List[T] = []
        self._vectors: List[np.ndarray] = []

    @classmethod
    def from_documents(
        cls,
        embedder: Embedder,
        documents: Sequence[T],
        texts: Optional[Sequence[str]] = None,
    ) -> "InMemoryVectorStore[T]":
        """Embed ``texts`` (defaults to ``str(doc)``) and store the documents."""
        store: InMemoryVectorStore[T] = cls(embedding_model=embedder.model_name)
        if not documents:
            return store
        to_embed = list(texts) if texts is not None else [str(d) for d in documents]
        vectors = embedder.embed(to_embed)
        store.add_documents(list(zip(documents, vectors)), embedding_model=embedder.model_name)
        return store

    def add_documents(
        self,
        items: Sequence[Tuple[T, Any]],
        *,
        embedding_model: Optional[str] = None,
    ) -> None:
        if embedding_model is not None:
            self._check_model(embedding_model)
            self.embedding_model = embedding_model
        for doc, vec in items:
            self._documents.append(doc)
            self._vectors.append(np.asarray(vec, dtype="float32").reshape(-1))

    def top_n(
        self,
        query_vector: Any,
        n: int = 1,
        *,
        threshold: Optional[float] = None,
    ) -> List[Tuple[float, int, T]]:
        """Return up to ``n`` (score, index, document) tuples, best first."""
        if not self._documents:
            return []
        scores = cosine_scores(np.asarray(query_vector), np.vstack(self._vectors))
        hits: List[Tuple[float, int, T]] = []
        for i in rank(scores):
            score = float(scores[i])
            if threshold is not None and score < threshold:
                break
            hits.append((score, i, self._documents[i]))
            if len(hits) >= n:
                break
        return hits

    def search(self, embedder: Embedder, query: str, n: int = 1, *, threshold: Optional[float] = None):
        """Embed ``query`` with ``embedder`` and return the top matches."""
        self._check_model(embedder.model_name)
        return self.top_n(embedder.embed_query(query), n=n, threshold=threshold)

    def _check_model(self, model_name: str) -> None:
        if self.embedding_model is not None and model_name != self.embedding_model:
            raise EmbeddingModelMismatchError(
                f"Store holds {self.embedding_model!r} embeddings; got {model_name!r}"
            )

    @property
    def documents(self) -> List[T]:
        return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)
