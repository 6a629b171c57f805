"""Tool registry, dispatcher, and built-in tools."""

from acai.tools.dispatcher import ToolDispatcher
from acai.tools.registry import RegisteredTool, ToolContext, ToolDefinition, ToolRegistry
from acai.tools.shell import SHELL_DEFINITION, SHELL_TOOL, shell_executor

BUILTIN_TOOLS: dict[str, RegisteredTool] = {
    "shell": SHELL_TOOL,
}


def default_registry() -> ToolRegistry:
    """A registry holding every built-in tool."""
    registry = ToolRegistry()
    for tool in BUILTIN_TOOLS.values():
        registry.register(tool)
    return registry


__all__ = [
    "BUILTIN_TOOLS",
    "RegisteredTool",
    "SHELL_DEFINITION",
    "SHELL_TOOL",
    "ToolContext",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolRegistry",
    "default_registry",
    "shell_executor",
]
