"""Agent tool definitions and registry."""

from .registry import ToolRegistry, definition_from_function, get_default_registry, tool

__all__ = ["ToolRegistry", "definition_from_function", "get_default_registry", "tool"]
