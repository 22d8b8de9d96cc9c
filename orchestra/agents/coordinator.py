"""Coordinator: route a query to a specialist agent, and manager/worker delegation."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from ..errors import ConfigurationError, NoMatchingRouteError
from ..models.agent import AgentResult
from ..models.tool import ToolDefinition
from .agent import Agent
from .router import Router
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class Coordinator:
    """Top-level coordinator that routes each query and delegates to a specialist.

    Usage:
        coordinator = Coordinator(router, {"rust": coding_agent, "maths": math_agent})
        result = coordinator.handle("What is 2 + 2?")
    """

    def __init__(
        self,
        router: Router,
        routes: Dict[str, Agent],
        *,
        default_route: Optional[str] = None,
    ):
        if not routes:
            raise ConfigurationError("Coordinator needs at least one route")
        if default_route is not None and default_route not in routes:
            raise ConfigurationError(f"Default route {default_route!r} is not a known route")
        self.router = router
        self.routes = dict(routes)
        self.default_route = default_route

    def handle(
        self,
        query: str,
        *,
        on_tool_call: Optional[Callable] = None,
        on_route: Optional[Callable[[str], None]] = None,
    ) -> AgentResult:
        """Route ``query`` and run it on the chosen agent.

        Args:
            query: The user's question or request.
            on_tool_call: Optional callback for tool call events.
            on_route: Optional callback when a route is chosen.

        Returns:
            AgentResult with the answer and trace; ``route`` names the agent used.

        Raises:
            NoMatchingRouteError: No route matched and no default is set.
        """
        try:
            route = self.router.route(query)
        except NoMatchingRouteError:
            if self.default_route is None:
                raise
            logger.info("coordinator.fallback route=%s", self.default_route)
            route = self.default_route

        agent = self.routes.get(route)
        if agent is None:
            if self.default_route is None:
                raise NoMatchingRouteError(f"Router chose unknown route {route!r}", query=query)
            route, agent = self.default_route, self.routes[self.default_route]

        if on_route:
            on_route(route)

        result = agent.run(query, on_tool_call=on_tool_call)
        result.route = route
        return result

    def reset_memory(self) -> None:
        """Reset the conversation memory of every routed agent."""
        for agent in self.routes.values():
            if agent.memory is not None:
                agent.memory.reset()


def delegate(manager: Agent, *workers: Agent) -> List[ToolDefinition]:
    """Register each worker as a tool on the manager.

    The manager gets a fresh registry if it has none. Returns the worker tool
    definitions in registration order.
    """
    if manager.registry is None:
        manager.registry = ToolRegistry()
    definitions = [manager.registry.register_agent(w) for w in workers]
    if manager.tool_names is not None:
        manager.tool_names = manager.tool_names + [d.name for d in definitions]
    logger.info("coordinator.delegate manager=%s workers=%s", manager.name, [d.name for d in definitions])
    return definitions
