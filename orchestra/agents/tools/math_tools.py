"""Math tools: add, sub, multiply, divide."""

from __future__ import annotations

from typing import Any, Dict, Union

from .registry import ToolRegistry

Number = Union[int, float]


def add(x: Number, y: Number) -> Number:
    return x + y


def sub(x: Number, y: Number) -> Number:
    return x - y


def multiply(x: Number, y: Number) -> Number:
    return x * y


def divide(x: Number, y: Number) -> float:
    """Divide x by y. Raises ZeroDivisionError on y == 0 (surfaced to the model)."""
    if y == 0:
        raise ZeroDivisionError("division by zero")
    return x / y


def _binary_schema(description: str) -> Dict[str, Any]:
    return {
        "description": description,
        "parameters": {
            "type": "object",
            "properties": {
                "x": {"type": "number", "description": "The first number"},
                "y": {"type": "number", "description": "The second number"},
            },
            "required": ["x", "y"],
        },
    }


def register_math_tools(registry: ToolRegistry) -> None:
    """Register all math tools."""
    registry.register("add", add, _binary_schema("Add x and y together"))
    registry.register("sub", sub, _binary_schema("Subtract y from x (i.e.: x - y)"))
    registry.register("multiply", multiply, _binary_schema("Multiply x by y"))
    registry.register("divide", divide, _binary_schema("Divide x by y (i.e.: x / y)"))
