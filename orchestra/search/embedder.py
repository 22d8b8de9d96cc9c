"""Embedding backends: SBERT (local) and OpenAI embeddings.

Forces CPU device to avoid segfaults on Apple Silicon (M1/M2/M3)
when multiple threads access the model concurrently.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import numpy as np

from ..config import EMBEDDING_MODEL
from ..errors import ConfigurationError, ProviderError

DEFAULT_MODEL = EMBEDDING_MODEL

_models: Dict[str, Any] = {}
_model_lock = threading.Lock()


@runtime_checkable
class Embedder(Protocol):
    """Maps text to fixed-length vectors. The same instance embeds documents and queries."""

    model_name: str

    def embed(self, texts: List[str]) -> np.ndarray:
        """Return an array of shape (len(texts), dim)."""
        ...

    def embed_query(self, text: str) -> np.ndarray:
        """Return an array of shape (dim,)."""
        ...


def get_model(model_name: str = DEFAULT_MODEL):
    """Return a cached SentenceTransformer instance (thread-safe)."""
    model = _models.get(model_name)
    if model is not None:
        return model
    with _model_lock:
        # Double-check after acquiring lock
        model = _models.get(model_name)
        if model is None:
            from sentence_transformers import SentenceTransformer
            # Force CPU to avoid MPS segfaults with concurrent thread access
            model = SentenceTransformer(model_name, device="cpu")
            _models[model_name] = model
    return model


def embed_texts(
    texts: List[str],
    model_name: str = DEFAULT_MODEL,
    *,
    batch_size: int = 32,
    show_progress: bool = False,
    normalize: bool = True,
) -> np.ndarray:
    """Embed a list of texts using sentence-transformers.

    Args:
        texts: List of text strings.
        model_name: SBERT model name.
        batch_size: Encoding batch size.
        show_progress: Show progress bar.
        normalize: L2-normalize embeddings.

    Returns:
        numpy array of shape (len(texts), dim), dtype float32.
    """
    model = get_model(model_name)
    vecs = model.encode(
        texts,
        batch_size=batch_size,
        show_progress_bar=show_progress,
        normalize_embeddings=normalize,
        convert_to_numpy=True,
    )
    return np.asarray(vecs, dtype="float32")


class SentenceTransformerEmbedder:
    """Local SBERT embedder."""

    def __init__(self, model_name: str = DEFAULT_MODEL, *, batch_size: int = 32):
        self.model_name = model_name
        self.batch_size = batch_size

    def embed(self, texts: List[str]) -> np.ndarray:
        return embed_texts(texts, self.model_name, batch_size=self.batch_size)

    def embed_query(self, text: str) -> np.ndarray:
        return self.embed([text])[0]


class OpenAIEmbedder:
    """Embedder backed by the OpenAI embeddings endpoint."""

    def __init__(
        self,
        model_name: str = "text-embedding-ada-002",
        *,
        api_key: Optional[str] = None,
        client: Any = None,
    ):
        self.model_name = model_name
        if client is not None:
            self._client = client
            return

        from openai import OpenAI

        from ..config import OPENAI_API_KEY, REQUEST_TIMEOUT

        key = api_key or OPENAI_API_KEY
        if not key:
            raise ConfigurationError("OPENAI_API_KEY not set. Cannot create OpenAI embedder.")
        self._client = OpenAI(api_key=key, timeout=REQUEST_TIMEOUT, max_retries=0)

    def embed(self, texts: List[str]) -> np.ndarray:
        import openai

        try:
            resp = self._client.embeddings.create(model=self.model_name, input=texts)
        except openai.APIError as e:
            raise ProviderError(f"OpenAI embedding failed for model={self.model_name}: {e}") from e
        rows = sorted(resp.data, key=lambda d: d.index)
        return np.asarray([r.embedding for r in rows], dtype="float32")

    def embed_query(self, text: str) -> np.ndarray:
        return self.embed([text])[0]
