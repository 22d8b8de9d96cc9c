"""Agent: preamble + model + optional tools, memory and dynamic context."""

from __future__ import annotations

import contextvars
import logging
import time
from typing import Any, Callable, List, Optional, Tuple

from ..config import MAX_DELEGATION_DEPTH, MAX_ITERATIONS
from ..errors import DelegationDepthError
from ..llm_io import CompletionModel
from ..models.agent import AgentResult, ToolCallRecord
from ..models.message import Message
from ..models.tool import ToolDefinition
from ..search.embedder import Embedder
from ..search.vector_store import InMemoryVectorStore
from .loop import react_loop
from .memory import ConversationMemory
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Nesting level of agent-as-tool calls in the current call chain
_delegation_depth: contextvars.ContextVar[int] = contextvars.ContextVar("delegation_depth", default=0)

CONTEXT_HEADER = "Relevant context documents:"


def current_delegation_depth() -> int:
    return _delegation_depth.get()


class Agent:
    """An LLM agent.

    Usage:
        agent = Agent("calculator", model, preamble="You are a calculator.", registry=registry)
        answer = agent.prompt("What is 4 + 5?")

    Memory, when attached, receives the user text and the final answer of each
    successful prompt and is compacted afterwards if it exceeds its cap.
    """

    def __init__(
        self,
        name: str,
        model: CompletionModel,
        *,
        preamble: str = "",
        description: str = "",
        registry: Optional[ToolRegistry] = None,
        tool_names: Optional[List[str]] = None,
        memory: Optional[ConversationMemory] = None,
        context_store: Optional[InMemoryVectorStore] = None,
        context_embedder: Optional[Embedder] = None,
        context_samples: int = 2,
        max_iterations: int = MAX_ITERATIONS,
        temperature: Optional[float] = None,
        max_delegation_depth: int = MAX_DELEGATION_DEPTH,
    ):
        self.name = name
        self.model = model
        self.preamble = preamble
        self.description = description or f"Delegate a task to the {name} agent."
        self.registry = registry
        self.tool_names = tool_names
        self.memory = memory
        self.context_store = context_store
        self.context_embedder = context_embedder
        self.context_samples = context_samples
        self.max_iterations = max_iterations
        self.temperature = temperature
        self.max_delegation_depth = max_delegation_depth

    def build_preamble(self, text: str) -> str:
        """Base preamble, plus memory summary, plus retrieved context documents."""
        preamble = self.memory.build_context(self.preamble) if self.memory is not None else self.preamble
        docs = self._dynamic_context(text)
        if not docs:
            return preamble
        block = CONTEXT_HEADER + "\n" + "\n".join(f"- {d}" for d in docs)
        return f"{preamble}\n\n{block}" if preamble else block

    def _dynamic_context(self, text: str) -> List[str]:
        if self.context_store is None or self.context_embedder is None or not len(self.context_store):
            return []
        hits = self.context_store.search(self.context_embedder, text, n=self.context_samples)
        return [str(doc) for _, _, doc in hits]

    def run(
        self,
        text: str,
        *,
        on_tool_call: Optional[Callable[[ToolCallRecord], None]] = None,
    ) -> AgentResult:
        """Run one prompt through the agentic loop.

        Args:
            text: User message.
            on_tool_call: Optional callback for each executed tool call.

        Returns:
            AgentResult with the final answer and the tool call trace.

        Raises:
            MaxIterationsError, ProviderError, MalformedResponseError.
        """
        history = list(self.memory.get_messages()) if self.memory is not None else []
        messages = history + [Message.user(text)]
        logger.info(
            "agent.prompt.start agent=%s history=%d",
            self.name,
            len(history),
            extra={"agent": self.name},
        )
        t0 = time.monotonic()

        result = react_loop(
            self.model,
            messages,
            preamble=self.build_preamble(text) or None,
            registry=self.registry,
            tool_names=self.tool_names,
            max_iterations=self.max_iterations,
            temperature=self.temperature,
            on_tool_call=on_tool_call,
        )

        if self.memory is not None:
            self.memory.add_user_message(text)
            self.memory.add_assistant_message(result.answer)
            self.memory.maybe_compact(self.model)

        logger.info(
            "agent.prompt.end agent=%s iterations=%d tool_calls=%d duration_ms=%d",
            self.name,
            result.iterations,
            len(result.tool_calls),
            int((time.monotonic() - t0) * 1000),
            extra={"agent": self.name},
        )
        return result

    def prompt(self, text: str, **kwargs: Any) -> str:
        """Run a prompt and return only the final text."""
        return self.run(text, **kwargs).answer

    def as_tool(self) -> Tuple[ToolDefinition, Callable[..., str]]:
        """Expose this agent as a tool taking a single ``prompt`` argument."""
        definition = ToolDefinition(
            name=self.name,
            description=self.description,
            parameters={
                "type": "object",
                "properties": {
                    "prompt": {"type": "string", "description": f"The task for the {self.name} agent."},
                },
                "required": ["prompt"],
            },
        )

        def handler(prompt: str) -> str:
            depth = _delegation_depth.get() + 1
            if depth > self.max_delegation_depth:
                raise DelegationDepthError(
                    f"Delegation to {self.name} exceeds max depth {self.max_delegation_depth}"
                )
            token = _delegation_depth.set(depth)
            try:
                logger.info("agent.delegate agent=%s depth=%d", self.name, depth, extra={"agent": self.name})
                return self.prompt(prompt)
            finally:
                _delegation_depth.reset(token)

        return definition, handler

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, model={getattr(self.model, 'name', '?')!r})"
