"""Conversation message models: content parts, tool calls and tool results."""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]


class ToolCallRequest(BaseModel):
    """A tool invocation requested by the model. Consumed exactly once."""

    model_config = ConfigDict(frozen=True)

    id: str  # correlates call with result
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Output or error produced by executing a ToolCallRequest."""

    model_config = ConfigDict(frozen=True)

    call_id: str
    name: str
    output: Any = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def content_text(self) -> str:
        """Render the payload the model sees for this result."""
        if self.error is not None:
            return json.dumps({"error": self.error}, ensure_ascii=False)
        if isinstance(self.output, str):
            return self.output
        return json.dumps(self.output, ensure_ascii=False, default=str)


class TextPart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolCallPart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["tool_call"] = "tool_call"
    call: ToolCallRequest


class ToolResultPart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["tool_result"] = "tool_result"
    result: ToolResult


ContentPart = Annotated[
    Union[TextPart, ToolCallPart, ToolResultPart],
    Field(discriminator="type"),
]


class Message(BaseModel):
    """A single conversation message. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: Tuple[ContentPart, ...] = ()

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role="user", content=(TextPart(text=text),))

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(role="assistant", content=(TextPart(text=text),))

    @classmethod
    def tool_results(cls, results: List[ToolResult]) -> "Message":
        """User-role message carrying tool results back to the model."""
        return cls(role="user", content=tuple(ToolResultPart(result=r) for r in results))

    @property
    def text(self) -> str:
        """All text parts joined with newlines."""
        return "\n".join(p.text for p in self.content if isinstance(p, TextPart))

    @property
    def tool_calls(self) -> List[ToolCallRequest]:
        return [p.call for p in self.content if isinstance(p, ToolCallPart)]

    @property
    def tool_outputs(self) -> List[ToolResult]:
        return [p.result for p in self.content if isinstance(p, ToolResultPart)]


__all__ = [
    "Role",
    "ToolCallRequest",
    "ToolResult",
    "TextPart",
    "ToolCallPart",
    "ToolResultPart",
    "ContentPart",
    "Message",
]
