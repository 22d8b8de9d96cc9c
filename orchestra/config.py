"""
Configuration settings for agent-orchestra.

All API keys are OPTIONAL - the library works against any CompletionModel you
pass in. The OpenAI-backed gateway and embedder require OPENAI_API_KEY.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in project root (parent of orchestra/)
_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


# ===================
# API Keys (All Optional)
# ===================

# OpenAI API key - required only for the OpenAI gateway / embedder
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

# OpenAI-compatible local endpoint (e.g. Ollama)
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/v1")

# ===================
# Project Paths
# ===================

PROJECT_ROOT = _project_root

# ===================
# Model Defaults
# ===================

DEFAULT_PROVIDER = os.getenv("ORCHESTRA_PROVIDER", "openai")
DEFAULT_MODEL = os.getenv("ORCHESTRA_MODEL", "gpt-4o-mini")
# Cheaper model for routing / classification calls
ROUTER_MODEL = os.getenv("ORCHESTRA_ROUTER_MODEL", DEFAULT_MODEL)
EMBEDDING_MODEL = os.getenv("ORCHESTRA_EMBEDDING_MODEL", "sentence-transformers/all-mpnet-base-v2")

# ===================
# Agent Limits
# ===================

MAX_ITERATIONS = _env_int("ORCHESTRA_MAX_ITERATIONS", 8)
MAX_MESSAGES = _env_int("ORCHESTRA_MAX_MESSAGES", 20)
MAX_SUMMARY_CHARS = _env_int("ORCHESTRA_MAX_SUMMARY_CHARS", 4000)
MAX_DELEGATION_DEPTH = _env_int("ORCHESTRA_MAX_DELEGATION_DEPTH", 3)
REQUEST_TIMEOUT = _env_float("ORCHESTRA_REQUEST_TIMEOUT", 60.0)
SWARM_TICK_SECONDS = _env_float("ORCHESTRA_SWARM_TICK_SECONDS", 10.0)

# ===================
# Logging
# ===================

LOG_LEVEL = os.getenv("ORCHESTRA_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Attach a stream handler to the ``orchestra`` logger.

    Lifecycle events are logged at INFO; full request/response payloads at DEBUG.
    """
    logger = logging.getLogger("orchestra")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level.upper())


# ===================
# Feature Flags
# ===================

def has_openai() -> bool:
    """Check if OpenAI API key is configured."""
    return bool(OPENAI_API_KEY)
