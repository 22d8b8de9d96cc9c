"""Coding specialist: answers programming questions, Rust first."""

from __future__ import annotations

from typing import Optional

from ...llm_io import CompletionModel
from ..agent import Agent
from ..memory import ConversationMemory

SYSTEM_PROMPT = """You are an expert software engineer specialising in Rust.

Answer programming questions with working code and a short explanation.
Prefer idiomatic, safe code; mention ownership or lifetime issues when relevant.
Keep responses concise."""


def coding_agent(
    model: CompletionModel,
    *,
    name: str = "rust",
    memory: Optional[ConversationMemory] = None,
) -> Agent:
    """Build the coding specialist."""
    return Agent(
        name,
        model,
        preamble=SYSTEM_PROMPT,
        description="Answers programming questions, especially about Rust.",
        memory=memory,
    )
