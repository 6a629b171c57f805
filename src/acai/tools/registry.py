"""Local capabilities the model may call, keyed by name."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from acai.environment.types import ExecutionEnvironment


@dataclass(frozen=True)
class ToolDefinition:
    """Name, description and JSON Schema parameters as advertised to the model."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)  # JSON Schema, root type "object"

    def to_api(self) -> dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


@dataclass(frozen=True)
class ToolContext:
    """Per-invocation context handed to an executor."""

    env: ExecutionEnvironment
    timeout_ms: int
    call_id: str = ""


@dataclass(frozen=True)
class RegisteredTool:
    """A tool definition paired with its executor function.

    The executor signature is (arguments: dict, context: ToolContext) -> str.
    """

    definition: ToolDefinition
    executor: Callable[[dict[str, Any], ToolContext], str]

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    """Ordered name -> RegisteredTool mapping. The dispatcher decides which are enabled."""

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, tool: RegisteredTool) -> None:
        """Add a tool; a later registration under the same name replaces the earlier one."""
        self._tools[tool.definition.name] = tool

    def get(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def definitions(self) -> list[ToolDefinition]:
        """Definitions in registration order, as sent with each request."""
        return [t.definition for t in self._tools.values()]

    def list_tools(self) -> list[str]:
        """Names in registration order."""
        return list(self._tools.keys())

    def invoke(self, name: str, arguments: dict[str, Any], context: ToolContext) -> str:
        """Run a registered tool directly. Raises KeyError for unknown names."""
        return self._tools[name].executor(arguments, context)
