"""
agent-orchestra - Main Entry Point

This module provides the command-line interface for:
- Interactive chat with a tool-using agent and compacting memory
- Routing a query to a specialist agent (classifier or semantic)
- Running a small peer swarm demo

Example usage:
    # Interactive chat (math tools, memory compaction)
    python -m orchestra.pipeline chat

    # Route a query to the coding or math specialist
    python -m orchestra.pipeline route "What is 12 times 7?"
    python -m orchestra.pipeline route "How do lifetimes work?" --semantic

    # Three-agent swarm
    python -m orchestra.pipeline swarm "Write a limerick about crabs"
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from .config import DEFAULT_PROVIDER, MAX_MESSAGES, ROUTER_MODEL, configure_logging, has_openai
from .errors import ConfigurationError


def _build_model(provider: str, model: Optional[str]):
    if provider == "openai" and not has_openai():
        raise ConfigurationError("OPENAI_API_KEY not set. Set it in .env or use --provider ollama.")
    from .providers import get_provider_registry

    return get_provider_registry().build(provider, model)


def chat(provider: str = DEFAULT_PROVIDER, model: Optional[str] = None, max_messages: int = MAX_MESSAGES) -> None:
    """Start an interactive chat session with the math agent.

    Args:
        provider: Provider name (openai, ollama)
        model: Model name, provider default if None
        max_messages: Messages kept before memory is compacted
    """
    from .agents.memory import ConversationMemory
    from .agents.workers import math_agent

    llm = _build_model(provider, model)
    memory = ConversationMemory(max_messages=max_messages, summarizer=llm)
    agent = math_agent(llm, memory=memory)

    print("\nagent-orchestra chat")
    print("Type your question (or 'exit'; '/reset' clears memory):\n")

    while True:
        try:
            q = input("» ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye.")
            break

        if not q or q.lower() in {"exit", "quit"}:
            break

        if q.lower() == "/reset":
            memory.reset()
            print("Memory reset.\n")
            continue

        def on_tool(tc):
            outcome = tc.error if tc.error else tc.result
            print(f"  [tool] {tc.tool_name}({json.dumps(tc.arguments)[:80]}) -> {outcome}")

        result = agent.run(q, on_tool_call=on_tool)

        print(f"\n--- Answer ({result.model}, {result.total_tokens} tokens) ---\n")
        print(result.answer)
        if memory.summary:
            print(f"\n  [memory: {len(memory)} messages + summary]")
        print()


def route(query: str, *, semantic: bool = False, provider: str = DEFAULT_PROVIDER, model: Optional[str] = None) -> None:
    """Route ``query`` to the coding or math specialist and print the answer."""
    from .agents.coordinator import Coordinator
    from .agents.router import ClassifierRouter, SemanticRouter
    from .agents.workers import coding_agent, math_agent
    from .models.route import RouteDefinition
    from .search.embedder import SentenceTransformerEmbedder

    llm = _build_model(provider, model)
    agents = {"rust": coding_agent(llm), "maths": math_agent(llm)}

    if semantic:
        router = SemanticRouter.build(
            SentenceTransformerEmbedder(),
            [
                RouteDefinition(
                    name="rust",
                    description="Programming questions about the Rust language",
                    examples=("How do I borrow a value?", "Explain lifetimes", "What is a trait?"),
                ),
                RouteDefinition(
                    name="maths",
                    description="Arithmetic and mathematics",
                    examples=("What is 2 + 2?", "Divide 10 by 4", "Calculate 3 times 7"),
                ),
            ],
        )
    else:
        # Classification runs on the cheaper router model unless a model was chosen
        router_llm = _build_model(provider, model or (ROUTER_MODEL if provider == "openai" else None))
        router = ClassifierRouter(router_llm, list(agents))

    coordinator = Coordinator(router, agents)
    result = coordinator.handle(query, on_route=lambda r: print(f"[route] {r}"))
    print(result.answer)


def swarm(task: str, *, provider: str = DEFAULT_PROVIDER, model: Optional[str] = None, seconds: float = 30.0) -> None:
    """Run the Tom/Richard/Harry swarm on one task for ``seconds``."""
    from .agents.agent import Agent
    from .agents.swarm import Swarm
    from .models.agent import SwarmMessage

    llm = _build_model(provider, model)

    async def _run() -> None:
        s = Swarm()
        for name in ("Tom", "Richard", "Harry"):
            s.add(name, Agent(name, llm, preamble=f"You are {name}, one agent in a small cooperative team."))
        s.connect_all()
        await s.start()
        await s.send("Tom", SwarmMessage.task(task))
        await asyncio.sleep(seconds)
        await s.shutdown()
        for member in s.members.values():
            print(f"\n== {member.agent_id} ==")
            for line in member.history:
                print(f"  {line}")
            if member.last_summary:
                print(f"  summary: {member.last_summary}")

    asyncio.run(_run())


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="agent-orchestra - LLM agents, routing and multi-agent coordination",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive chat (requires OpenAI API key, or --provider ollama)
  python -m orchestra.pipeline chat

  # Route a query
  python -m orchestra.pipeline route "What is 12 times 7?"

  # Swarm demo
  python -m orchestra.pipeline swarm "Plan a picnic" --seconds 20
        """,
    )
    parser.add_argument("--provider", type=str, default=DEFAULT_PROVIDER, help=f"Provider (default: {DEFAULT_PROVIDER})")
    parser.add_argument("--model", "-m", type=str, default=None, help="Model name (default: provider default)")
    parser.add_argument("--log-level", type=str, default=None, help="Log level (default: ORCHESTRA_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Chat command
    chat_parser = subparsers.add_parser("chat", help="Interactive chat with the math agent")
    chat_parser.add_argument("--max-messages", type=int, default=MAX_MESSAGES, help=f"Memory cap (default: {MAX_MESSAGES})")

    # Route command
    route_parser = subparsers.add_parser("route", help="Route a query to a specialist agent")
    route_parser.add_argument("query", type=str, help="Query text")
    route_parser.add_argument("--semantic", action="store_true", help="Use embedding similarity instead of an LLM classifier")

    # Swarm command
    swarm_parser = subparsers.add_parser("swarm", help="Run the three-agent swarm demo")
    swarm_parser.add_argument("task", type=str, help="Task sent to the first agent")
    swarm_parser.add_argument("--seconds", type=float, default=30.0, help="How long to run (default: 30)")

    args = parser.parse_args()

    if args.log_level:
        configure_logging(args.log_level)
    else:
        configure_logging()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        if args.command == "chat":
            chat(provider=args.provider, model=args.model, max_messages=args.max_messages)
        elif args.command == "route":
            route(args.query, semantic=args.semantic, provider=args.provider, model=args.model)
        elif args.command == "swarm":
            swarm(args.task, provider=args.provider, model=args.model, seconds=args.seconds)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
