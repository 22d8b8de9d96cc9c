"""agent-orchestra - LLM agents with tools, compacting memory, routing and multi-agent coordination."""

# Set environment variables BEFORE any scientific/ML library imports
# to prevent OpenMP conflicts and segfaults on Apple Silicon (M1/M2/M3).
import os as _os
_os.environ.setdefault("KMP_DUPLICATE_LIB_OK", "TRUE")
_os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")
_os.environ.setdefault("OMP_NUM_THREADS", "1")
del _os

__version__ = "0.1.0"

# Main modules are importable directly from the package
__all__ = []
