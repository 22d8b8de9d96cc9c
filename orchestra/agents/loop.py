"""Reusable ReAct (Reason + Act) loop for all agents."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..config import MAX_ITERATIONS
from ..errors import InvalidArgumentsError, MaxIterationsError, UnknownToolError
from ..llm_io import CompletionModel
from ..models.agent import AgentResult, ToolCallRecord
from ..models.completion import CompletionRequest
from ..models.message import Message, ToolCallRequest, ToolResult
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def execute_tool_call(registry: Optional[ToolRegistry], call: ToolCallRequest) -> ToolResult:
    """Run one tool call, turning dispatch failures into error results."""
    if registry is None:
        return ToolResult(call_id=call.id, name=call.name, error=f"Unknown tool: {call.name}")
    try:
        return registry.execute(call)
    except (UnknownToolError, InvalidArgumentsError) as e:
        logger.warning("tool.dispatch name=%s rejected: %s", call.name, e)
        return ToolResult(call_id=call.id, name=call.name, error=str(e))


def react_loop(
    model: CompletionModel,
    messages: List[Message],
    *,
    preamble: Optional[str] = None,
    registry: Optional[ToolRegistry] = None,
    tool_names: Optional[List[str]] = None,
    max_iterations: int = MAX_ITERATIONS,
    temperature: Optional[float] = None,
    on_tool_call: Optional[Callable[[ToolCallRecord], None]] = None,
    on_response: Optional[Callable[[str], None]] = None,
) -> AgentResult:
    """Execute a ReAct loop: the LLM reasons about what to do, calls tools,
    then synthesizes a final answer.

    Args:
        model: Completion gateway.
        messages: History followed by the new user message. Not mutated.
        preamble: System preamble (already merged with memory context).
        registry: Tools the model may call.
        tool_names: Optional subset of the registry to expose.
        max_iterations: Maximum tool-calling rounds.
        temperature: Sampling temperature.
        on_tool_call: Optional callback for each tool call (for streaming/UI).
        on_response: Optional callback for final text response.

    Returns:
        AgentResult with answer, tool call trace, and metadata.

    Raises:
        MaxIterationsError: The model asked for tools after ``max_iterations`` rounds.
        ProviderError / MalformedResponseError: Propagated from the gateway.
    """
    working: List[Message] = list(messages)
    tools = registry.definitions(tool_names) if registry is not None else []

    all_tool_calls: List[ToolCallRecord] = []
    total_tokens = 0
    rounds = 0

    while True:
        request = CompletionRequest(
            messages=working,
            preamble=preamble,
            tools=tools,
            temperature=temperature,
        )
        response = model.complete(request)
        if response.usage and response.usage.total_tokens:
            total_tokens += response.usage.total_tokens

        # No tool calls -> final answer
        if not response.has_tool_calls:
            answer = response.text
            if on_response:
                on_response(answer)
            return AgentResult(
                answer=answer,
                tool_calls=all_tool_calls,
                model=response.model or model.name,
                iterations=rounds,
                total_tokens=total_tokens,
            )

        if rounds >= max_iterations:
            raise MaxIterationsError(
                f"Model requested tools after {rounds} rounds (max_iterations={max_iterations})",
                iterations=rounds,
            )
        rounds += 1

        # Process tool calls in response order
        working.append(response.to_message())
        results: List[ToolResult] = []
        for call in response.tool_calls:
            result = execute_tool_call(registry, call)
            results.append(result)

            record = ToolCallRecord(
                tool_name=call.name,
                arguments=call.arguments,
                result=result.output,
                error=result.error,
            )
            all_tool_calls.append(record)
            if on_tool_call:
                on_tool_call(record)

        working.append(Message.tool_results(results))
        logger.debug("agent.loop round=%d results=%s", rounds, [r.content_text() for r in results])
