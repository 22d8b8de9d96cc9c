"""Pydantic data models for agent-orchestra."""

from .agent import (
    AgentResult,
    ConversationState,
    MemoryStatus,
    MessageKind,
    SwarmMessage,
    ToolCallRecord,
)
from .completion import CompletionRequest, CompletionResponse, Usage
from .message import (
    Message,
    TextPart,
    ToolCallPart,
    ToolCallRequest,
    ToolResult,
    ToolResultPart,
)
from .route import RouteDefinition
from .tool import ToolDefinition

__all__ = [
    "AgentResult",
    "ConversationState",
    "MemoryStatus",
    "MessageKind",
    "SwarmMessage",
    "ToolCallRecord",
    "CompletionRequest",
    "CompletionResponse",
    "Usage",
    "Message",
    "TextPart",
    "ToolCallPart",
    "ToolCallRequest",
    "ToolResult",
    "ToolResultPart",
    "RouteDefinition",
    "ToolDefinition",
]
