"""Query routing: LLM classification or embedding similarity."""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

from ..errors import EmbeddingModelMismatchError, NoMatchingRouteError
from ..llm_io import CompletionModel, complete_text
from ..models.route import RouteDefinition
from ..search.embedder import Embedder
from ..search.vector_store import cosine_scores, rank

logger = logging.getLogger(__name__)


def classify_preamble(labels: Sequence[str]) -> str:
    options = ", ".join(labels)
    return (
        "You are a router. Classify the user's query into exactly one of these "
        f"categories: {options}. Respond with only the category name."
    )


class Router(Protocol):
    def route(self, query: str) -> str:
        ...


class ClassifierRouter:
    """Routes by asking a model to pick one label from a closed set.

    Usage:
        router = ClassifierRouter(model, ["rust", "maths"])
        router.route("What is 2 + 2?")  # -> "maths"
    """

    def __init__(
        self,
        model: CompletionModel,
        labels: Sequence[str],
        *,
        preamble: Optional[str] = None,
    ):
        if not labels:
            raise ValueError("ClassifierRouter needs at least one label")
        self.model = model
        self.labels = list(labels)
        self.preamble = preamble or classify_preamble(self.labels)

    def route(self, query: str) -> str:
        """Return the first declared label found in the model's reply.

        Raises:
            NoMatchingRouteError: No label appears in the reply.
        """
        reply = complete_text(self.model, query, preamble=self.preamble, temperature=0)
        lowered = reply.lower()
        for label in self.labels:
            if label.lower() in lowered:
                logger.info("router.route strategy=classifier route=%s", label, extra={"route": label})
                return label
        logger.info("router.route strategy=classifier no match reply=%r", reply)
        raise NoMatchingRouteError(f"No route matched reply: {reply!r}", query=query, reply=reply)


class SemanticRouter:
    """Routes to the route whose embedding is closest to the query.

    Routes must carry embeddings from the same model as ``embedder``; use
    ``SemanticRouter.build`` to compute them.
    """

    def __init__(
        self,
        embedder: Embedder,
        routes: Sequence[RouteDefinition],
        *,
        threshold: Optional[float] = None,
    ):
        if not routes:
            raise ValueError("SemanticRouter needs at least one route")
        for r in routes:
            if r.embedding is None:
                raise ValueError(f"Route {r.name!r} has no embedding")
            if r.embedding_model != embedder.model_name:
                raise EmbeddingModelMismatchError(
                    f"Route {r.name!r} embedded with {r.embedding_model!r}, "
                    f"router uses {embedder.model_name!r}"
                )
        self.embedder = embedder
        self.routes = list(routes)
        self.threshold = threshold
        self._matrix = np.asarray([r.embedding for r in self.routes], dtype="float32")

    @classmethod
    def build(
        cls,
        embedder: Embedder,
        routes: Sequence[RouteDefinition],
        *,
        threshold: Optional[float] = None,
    ) -> "SemanticRouter":
        """Embed each route's name, description and examples, then build the router."""
        vectors = embedder.embed([r.embedding_text() for r in routes])
        embedded = [
            r.model_copy(update={
                "embedding": tuple(float(x) for x in vec),
                "embedding_model": embedder.model_name,
            })
            for r, vec in zip(routes, vectors)
        ]
        return cls(embedder, embedded, threshold=threshold)

    def scores(self, query: str) -> List[Tuple[str, float]]:
        """All routes with their similarity to ``query``, best first."""
        sims = cosine_scores(self.embedder.embed_query(query), self._matrix)
        return [(self.routes[i].name, float(sims[i])) for i in rank(sims)]

    def route(self, query: str) -> str:
        """Return the most similar route's name.

        Raises:
            NoMatchingRouteError: A threshold is set and the best score is below it.
        """
        name, score = self.scores(query)[0]
        if self.threshold is not None and score < self.threshold:
            logger.info("router.route strategy=semantic best=%s score=%.3f below threshold", name, score)
            raise NoMatchingRouteError(
                f"Best route {name!r} scored {score:.3f} < threshold {self.threshold}",
                query=query,
            )
        logger.info(
            "router.route strategy=semantic route=%s score=%.3f",
            name,
            score,
            extra={"route": name},
        )
        return name
