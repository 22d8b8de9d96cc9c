"""Embedding and similarity search used by semantic routing and agent context."""

from .embedder import Embedder, OpenAIEmbedder, SentenceTransformerEmbedder
from .vector_store import InMemoryVectorStore, cosine_scores

__all__ = [
    "Embedder",
    "OpenAIEmbedder",
    "SentenceTransformerEmbedder",
    "InMemoryVectorStore",
    "cosine_scores",
]
