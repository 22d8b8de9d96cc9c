"""Math specialist: arithmetic through the math tools."""

from __future__ import annotations

from typing import Optional

from ...llm_io import CompletionModel
from ..agent import Agent
from ..memory import ConversationMemory
from ..tools.registry import ToolRegistry, get_default_registry

SYSTEM_PROMPT = """You are a calculator here to help the user perform arithmetic operations.

Use the tools provided to answer the user's question. Never compute results
yourself when a tool can do it. Reply with the final number and one sentence."""

TOOL_NAMES = ["add", "sub", "multiply", "divide"]


def math_agent(
    model: CompletionModel,
    *,
    name: str = "maths",
    registry: Optional[ToolRegistry] = None,
    memory: Optional[ConversationMemory] = None,
) -> Agent:
    """Build the math specialist with the built-in arithmetic tools."""
    return Agent(
        name,
        model,
        preamble=SYSTEM_PROMPT,
        description="Performs arithmetic with add, sub, multiply and divide tools.",
        registry=registry or get_default_registry(),
        tool_names=TOOL_NAMES,
        memory=memory,
    )
