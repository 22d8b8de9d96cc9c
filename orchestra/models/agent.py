"""Agent system data models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .message import Message


class ToolCallRecord(BaseModel):
    """Record of a single tool invocation by an agent."""

    tool_name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    error: Optional[str] = None


class AgentResult(BaseModel):
    """Result from an agent execution."""

    answer: str = ""
    tool_calls: List[ToolCallRecord] = Field(default_factory=list)
    model: str = ""
    iterations: int = 0
    total_tokens: int = 0
    route: Optional[str] = None  # set when dispatched through a Coordinator


class MemoryStatus(str, Enum):
    """Lifecycle of a conversation memory."""

    ACTIVE = "active"  # accumulating messages
    COMPACTING = "compacting"  # summary being generated
    IDLE = "idle"  # post-compaction, history cleared


class ConversationState(BaseModel):
    """Bounded message history plus rolling summary."""

    messages: List[Message] = Field(default_factory=list)
    summary: Optional[str] = None
    max_messages: int = Field(default=20, ge=1)
    status: MemoryStatus = MemoryStatus.ACTIVE


class MessageKind(str, Enum):
    """Kinds of message exchanged between swarm agents."""

    TASK = "task"
    RESPONSE = "response"
    TRIGGER = "trigger"
    SHUTDOWN = "shutdown"


class SwarmMessage(BaseModel):
    """Message passed through a swarm agent's inbox."""

    kind: MessageKind
    content: str = ""
    sender: Optional[str] = None

    @classmethod
    def task(cls, content: str) -> "SwarmMessage":
        return cls(kind=MessageKind.TASK, content=content)

    @classmethod
    def trigger(cls, content: str) -> "SwarmMessage":
        return cls(kind=MessageKind.TRIGGER, content=content)

    @classmethod
    def shutdown(cls) -> "SwarmMessage":
        return cls(kind=MessageKind.SHUTDOWN)
