"""Error taxonomy for gateways, tools, memory, routing and coordination."""

from __future__ import annotations


class OrchestraError(Exception):
    """Base error type for all library failures."""


class ConfigurationError(OrchestraError):
    """Misconfiguration of providers, models or environment."""


# Completion gateway ---------------------------------------------------------


class ProviderError(OrchestraError):
    """Transport, auth, rate-limit or timeout failure at the model provider."""


class MalformedResponseError(OrchestraError):
    """Provider payload could not be parsed into the expected shape."""


# Tools ----------------------------------------------------------------------


class ToolError(OrchestraError):
    """Base error for tool registration and dispatch."""


class DuplicateToolNameError(ToolError):
    """A tool with the same name is already registered."""


class UnknownToolError(ToolError):
    """No tool is registered under the requested name."""


class InvalidArgumentsError(ToolError):
    """Tool call arguments do not match the declared parameter schema."""


# Agent loop / coordination --------------------------------------------------


class MaxIterationsError(OrchestraError):
    """The model kept requesting tools past the configured iteration bound."""

    def __init__(self, message: str, *, iterations: int):
        super().__init__(message)
        self.iterations = iterations


class DelegationDepthError(OrchestraError):
    """Agent-to-agent delegation exceeded the configured depth."""


# Memory ---------------------------------------------------------------------


class CompactionError(OrchestraError):
    """Summary generation failed; conversation history was left untouched."""


# Routing --------------------------------------------------------------------


class NoMatchingRouteError(OrchestraError):
    """Router could not map the query to any known route."""

    def __init__(self, message: str, *, query: str = "", reply: str = ""):
        super().__init__(message)
        self.query = query
        self.reply = reply


class EmbeddingModelMismatchError(OrchestraError):
    """Query and route embeddings come from different embedding models."""


__all__ = [
    "OrchestraError",
    "ConfigurationError",
    "ProviderError",
    "MalformedResponseError",
    "ToolError",
    "DuplicateToolNameError",
    "UnknownToolError",
    "InvalidArgumentsError",
    "MaxIterationsError",
    "DelegationDepthError",
    "CompactionError",
    "NoMatchingRouteError",
    "EmbeddingModelMismatchError",
]
