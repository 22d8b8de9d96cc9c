"""Completion request/response models shared by all gateways."""

from __future__ import annotations

from typing import Annotated, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .message import Message, TextPart, ToolCallPart, ToolCallRequest
from .tool import ToolDefinition

ResponsePart = Annotated[Union[TextPart, ToolCallPart], Field(discriminator="type")]


class Usage(BaseModel):
    """Token accounting for a single completion."""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class CompletionRequest(BaseModel):
    """Ordered messages, optional system preamble and optional tool definitions."""

    messages: List[Message]
    preamble: Optional[str] = None
    tools: List[ToolDefinition] = Field(default_factory=list)
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class CompletionResponse(BaseModel):
    """Ordered content parts returned by the model."""

    model_config = ConfigDict(frozen=True)

    content: Tuple[ResponsePart, ...] = ()
    model: str = ""
    usage: Optional[Usage] = None

    @classmethod
    def from_text(cls, text: str, *, model: str = "") -> "CompletionResponse":
        return cls(content=(TextPart(text=text),), model=model)

    @property
    def text(self) -> str:
        return "\n".join(p.text for p in self.content if isinstance(p, TextPart))

    @property
    def tool_calls(self) -> List[ToolCallRequest]:
        return [p.call for p in self.content if isinstance(p, ToolCallPart)]

    @property
    def has_tool_calls(self) -> bool:
        return any(isinstance(p, ToolCallPart) for p in self.content)

    def to_message(self) -> Message:
        """The assistant message to append to the working history."""
        return Message(role="assistant", content=self.content)


__all__ = ["Usage", "CompletionRequest", "CompletionResponse"]
