"""Tool name -> handler mapping with schema validation and OpenAI schema generation."""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type, Union, get_type_hints

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from ...errors import DuplicateToolNameError, InvalidArgumentsError, UnknownToolError
from ...models.message import ToolCallRequest, ToolResult
from ...models.tool import ToolDefinition

logger = logging.getLogger(__name__)

# JSON-schema type -> python annotation used for argument validation
_JSON_TYPES: Dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": Union[int, float],
    "boolean": bool,
    "array": list,
    "object": dict,
    "null": type(None),
}

# python annotation -> JSON-schema type, for the @tool decorator
_PY_TYPES: Dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


class _StrictArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


def args_model_from_schema(name: str, schema: Dict[str, Any]) -> Type[BaseModel]:
    """Compile a JSON object schema into a pydantic model for argument validation.

    Only top-level ``properties``/``required`` are enforced; nested structures
    are checked for their container type.
    """
    properties: Dict[str, Any] = schema.get("properties", {}) or {}
    required = set(schema.get("required", []) or [])
    fields: Dict[str, Tuple[Any, Any]] = {}
    for prop, spec in properties.items():
        json_type = spec.get("type", None)
        if isinstance(json_type, list):
            annotation: Any = Union[tuple(_JSON_TYPES.get(t, Any) for t in json_type)]  # type: ignore[misc]
        else:
            annotation = _JSON_TYPES.get(json_type, Any)
        if prop in required:
            fields[prop] = (annotation, ...)
        else:
            fields[prop] = (Optional[annotation], spec.get("default"))
    return create_model(f"{name}_args", __base__=_StrictArgs, **fields)  # type: ignore[call-overload]


class _RegisteredTool:
    __slots__ = ("definition", "handler", "args_model")

    def __init__(self, definition: ToolDefinition, handler: Callable[..., Any]):
        self.definition = definition
        self.handler = handler
        self.args_model = args_model_from_schema(definition.name, definition.parameters)


class ToolRegistry:
    """Registry mapping tool names to handlers and parameter schemas.

    Usage:
        registry = ToolRegistry()
        registry.register("add", add_fn, schema)
        result = registry.execute(ToolCallRequest(id="1", name="add", arguments={"x": 1, "y": 2}))
        definitions = registry.definitions()

    Registration is expected to happen during setup; afterwards the registry
    may be shared read-only between agents.
    """

    def __init__(self):
        self._tools: Dict[str, _RegisteredTool] = {}

    def register(
        self,
        name: str,
        handler: Callable[..., Any],
        schema: Dict[str, Any],
    ) -> ToolDefinition:
        """Register a tool.

        Args:
            name: Tool name.
            handler: Function(**kwargs) -> result.
            schema: OpenAI function schema (name, description, parameters).

        Raises:
            DuplicateToolNameError: If the name is already registered.
        """
        definition = ToolDefinition(
            name=name,
            description=schema.get("description", ""),
            parameters=schema.get("parameters") or {"type": "object", "properties": {}},
        )
        self.register_tool(definition, handler)
        return definition

    def register_tool(self, definition: ToolDefinition, handler: Callable[..., Any]) -> None:
        """Register a tool from an existing ToolDefinition."""
        if definition.name in self._tools:
            raise DuplicateToolNameError(f"Tool already registered: {definition.name}")
        self._tools[definition.name] = _RegisteredTool(definition, handler)

    def register_function(self, func: Callable[..., Any]) -> ToolDefinition:
        """Register a function decorated with ``@tool`` (or a plain typed function)."""
        definition = getattr(func, "__tool_definition__", None) or definition_from_function(func)
        self.register_tool(definition, func)
        return definition

    def register_agent(self, agent: Any) -> ToolDefinition:
        """Expose an Agent as a tool (manager/worker delegation)."""
        definition, handler = agent.as_tool()
        self.register_tool(definition, handler)
        return definition

    def execute(self, call: ToolCallRequest) -> ToolResult:
        """Execute a requested tool call.

        Handler failures are captured in the returned ToolResult so the model
        can see them and decide how to proceed.

        Raises:
            UnknownToolError: If the tool is not registered.
            InvalidArgumentsError: If the arguments do not match the schema.
        """
        registered = self._tools.get(call.name)
        if registered is None:
            raise UnknownToolError(f"Unknown tool: {call.name}")

        try:
            validated = registered.args_model.model_validate(call.arguments)
        except ValidationError as e:
            raise InvalidArgumentsError(
                f"Invalid arguments for {call.name}: {e.errors(include_url=False)}"
            ) from e
        kwargs = {k: v for k, v in validated.model_dump().items() if k in call.arguments or v is not None}

        t0 = time.monotonic()
        try:
            output = registered.handler(**kwargs)
        except Exception as e:
            logger.warning("tool.execute name=%s failed: %s", call.name, e)
            return ToolResult(call_id=call.id, name=call.name, error=str(e) or type(e).__name__)

        logger.info(
            "tool.execute name=%s duration_ms=%d",
            call.name,
            int((time.monotonic() - t0) * 1000),
            extra={"tool": call.name},
        )
        return ToolResult(call_id=call.id, name=call.name, output=output)

    def definitions(self, names: Optional[List[str]] = None) -> List[ToolDefinition]:
        """Return tool definitions.

        Args:
            names: Optional subset of tool names. If None, returns all.
        """
        tool_names = names or list(self._tools.keys())
        return [self._tools[n].definition for n in tool_names if n in self._tools]

    def get_openai_tools(self, names: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Return OpenAI function-calling tool schemas."""
        return [d.to_openai_tool() for d in self.definitions(names)]

    def list_tools(self) -> List[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.definitions())


def definition_from_function(
    func: Callable[..., Any],
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> ToolDefinition:
    """Build a ToolDefinition from a function's signature and docstring."""
    hints = get_type_hints(func)
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for param in inspect.signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        prop: Dict[str, Any] = {}
        json_type = _PY_TYPES.get(hints.get(param.name))
        if json_type:
            prop["type"] = json_type
        if param.default is inspect.Parameter.empty:
            required.append(param.name)
        else:
            prop["default"] = param.default
        properties[param.name] = prop

    doc = inspect.getdoc(func) or ""
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return ToolDefinition(
        name=name or func.__name__,
        description=description if description is not None else doc.split("\n\n")[0].strip(),
        parameters=schema,
    )


def tool(
    func: Optional[Callable[..., Any]] = None,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
):
    """Decorator attaching a ToolDefinition to a function.

    Usage:
        @tool
        def add(x: float, y: float) -> float:
            \"\"\"Add two numbers.\"\"\"
            return x + y

        registry.register_function(add)
    """

    def wrap(f: Callable[..., Any]) -> Callable[..., Any]:
        f.__tool_definition__ = definition_from_function(f, name=name, description=description)  # type: ignore[attr-defined]
        return f

    if func is not None:
        return wrap(func)
    return wrap


def get_default_registry() -> ToolRegistry:
    """Build a registry with the built-in math tools."""
    registry = ToolRegistry()

    from .math_tools import register_math_tools

    register_math_tools(registry)

    return registry
