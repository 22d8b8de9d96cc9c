"""Agents, tools, memory, routing and multi-agent coordination."""

from .agent import Agent
from .coordinator import Coordinator, delegate
from .loop import react_loop
from .memory import ConversationMemory
from .router import ClassifierRouter, SemanticRouter
from .swarm import Swarm, SwarmAgent

__all__ = [
    "Agent",
    "Coordinator",
    "delegate",
    "react_loop",
    "ConversationMemory",
    "ClassifierRouter",
    "SemanticRouter",
    "Swarm",
    "SwarmAgent",
]
