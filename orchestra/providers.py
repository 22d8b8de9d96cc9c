"""Registry of completion-model providers by name.

Each provider is a factory ``(model_name) -> CompletionModel``. ``agent()``
builds a ready Agent from a provider name plus name/preamble, so callers can
pick the backend from configuration at runtime.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Optional

from .config import DEFAULT_MODEL, OLLAMA_BASE_URL
from .errors import ConfigurationError
from .llm_io import CompletionModel, OpenAICompletionModel

ProviderFactory = Callable[..., CompletionModel]


def _openai_factory(model: str = DEFAULT_MODEL, **kwargs: Any) -> CompletionModel:
    return OpenAICompletionModel(model, **kwargs)


def _ollama_factory(model: str = "llama3.2", **kwargs: Any) -> CompletionModel:
    kwargs.setdefault("base_url", OLLAMA_BASE_URL)
    kwargs.setdefault("api_key", "ollama")
    return OpenAICompletionModel(model, **kwargs)


class ProviderRegistry:
    """Maps provider name to a completion-model factory."""

    def __init__(self):
        self._factories: Dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Register (or replace) a provider factory."""
        if not name:
            raise ValueError("Provider name must be non-empty")
        self._factories[name] = factory

    def build(self, provider: str, model: Optional[str] = None, **kwargs: Any) -> CompletionModel:
        """Instantiate a completion model. Raises ConfigurationError for unknown providers."""
        factory = self._factories.get(provider)
        if factory is None:
            raise ConfigurationError(
                f"Unknown provider='{provider}'. Available: {self.names() or '[]'}"
            )
        if model is not None:
            return factory(model, **kwargs)
        return factory(**kwargs)

    def agent(
        self,
        provider: str,
        name: str,
        preamble: str = "",
        *,
        model: Optional[str] = None,
        **agent_kwargs: Any,
    ):
        """Build an Agent backed by ``provider``."""
        from .agents.agent import Agent

        return Agent(name, self.build(provider, model), preamble=preamble, **agent_kwargs)

    def names(self):
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories


_global_registry: Optional[ProviderRegistry] = None
_global_registry_lock = threading.Lock()


def get_provider_registry() -> ProviderRegistry:
    """Return the process-wide ProviderRegistry with the built-in providers (thread-safe)."""
    global _global_registry
    if _global_registry is None:
        with _global_registry_lock:
            if _global_registry is None:
                registry = ProviderRegistry()
                registry.register("openai", _openai_factory)
                registry.register("ollama", _ollama_factory)
                _global_registry = registry
    return _global_registry


__all__ = ["ProviderRegistry", "get_provider_registry"]
