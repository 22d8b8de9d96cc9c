"""Route definitions for query routing."""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RouteDefinition(BaseModel):
    """A named destination with a description and example utterances.

    For semantic routing the route also carries a precomputed embedding and the
    name of the embedding model that produced it.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    examples: Tuple[str, ...] = ()
    embedding: Optional[Tuple[float, ...]] = None
    embedding_model: Optional[str] = None

    def embedding_text(self) -> str:
        """Name, description and examples concatenated for embedding."""
        return f"{self.name}: {self.description}. Examples: {', '.join(self.examples)}"


__all__ = ["RouteDefinition"]
