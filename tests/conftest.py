"""
Shared test fixtures and fakes.

No test talks to a real provider: completions come from a scripted
FakeCompletionModel and embeddings from a bag-of-words FakeEmbedder.
"""

import re
import threading
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pytest

from orchestra.models.completion import CompletionRequest, CompletionResponse, Usage
from orchestra.models.message import ToolCallPart, ToolCallRequest

Scripted = Union[str, CompletionResponse, BaseException, Callable[[CompletionRequest], Any]]


def tool_call_response(*calls: Tuple[str, dict], text: str = "") -> CompletionResponse:
    """A response requesting ``calls`` (name, arguments) in order."""
    parts: List[Any] = []
    if text:
        parts.append(CompletionResponse.from_text(text).content[0])
    for i, (name, args) in enumerate(calls, start=1):
        parts.append(ToolCallPart(call=ToolCallRequest(id=f"call_{i}", name=name, arguments=args)))
    return CompletionResponse(content=tuple(parts), model="fake-model", usage=Usage(total_tokens=10))


class FakeCompletionModel:
    """Returns scripted responses in order, then ``default`` text forever.

    A scripted item may be a string (text reply), a CompletionResponse, an
    exception instance (raised), or a callable taking the request.
    """

    def __init__(self, responses: Sequence[Scripted] = (), *, name: str = "fake-model", default: str = "ok"):
        self.name = name
        self.default = default
        self.requests: List[CompletionRequest] = []
        self._responses = list(responses)
        self._lock = threading.Lock()

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        with self._lock:
            self.requests.append(request)
            item = self._responses.pop(0) if self._responses else self.default
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            return CompletionResponse.from_text(item, model=self.name)
        if isinstance(item, CompletionResponse):
            return item
        result = item(request)
        if isinstance(result, str):
            return CompletionResponse.from_text(result, model=self.name)
        return result

    @property
    def calls(self) -> int:
        return len(self.requests)


class FakeEmbedder:
    """Word-count vectors over a fixed vocabulary. Unknown words are ignored."""

    def __init__(self, vocabulary: Sequence[str], *, model_name: str = "fake-embedder"):
        self.model_name = model_name
        self.vocabulary = [w.lower() for w in vocabulary]
        self._index = {w: i for i, w in enumerate(self.vocabulary)}
        self.calls = 0

    def _vector(self, text: str) -> np.ndarray:
        vec = np.zeros(len(self.vocabulary), dtype="float32")
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            i = self._index.get(word)
            if i is not None:
                vec[i] += 1.0
        return vec

    def embed(self, texts: List[str]) -> np.ndarray:
        self.calls += 1
        return np.vstack([self._vector(t) for t in texts]) if texts else np.zeros((0, len(self.vocabulary)), dtype="float32")

    def embed_query(self, text: str) -> np.ndarray:
        return self._vector(text)


VOCABULARY = [
    "add", "plus", "minus", "numbers", "multiply", "divide", "arithmetic", "sum",
    "code", "rust", "function", "compile", "trait", "borrow", "programming", "bug",
]


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder(VOCABULARY)


@pytest.fixture
def math_registry():
    from orchestra.agents.tools.registry import get_default_registry

    return get_default_registry()
