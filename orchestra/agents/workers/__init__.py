"""Ready-made specialist agents."""

from .coding_worker import coding_agent
from .math_worker import math_agent

__all__ = ["coding_agent", "math_agent"]
