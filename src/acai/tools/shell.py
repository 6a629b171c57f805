"""The shell tool: run a command in the session's working directory."""

from __future__ import annotations

from typing import Any

from acai.tools.registry import RegisteredTool, ToolContext, ToolDefinition

SHELL_DEFINITION = ToolDefinition(
    name="shell",
    description=(
        "Execute a shell command in the host machine's terminal. "
        "Returns the stdout/stderr output. Use for running build commands, "
        "git operations, file manipulation, etc. Does not support interactive commands."
    ),
    parameters={
        "type": "object",
        "properties": {
            "command": {"type": "string", "description": "The shell command to execute"},
            "timeout": {"type": "number", "description": "Optional timeout in seconds"},
        },
        "required": ["command"],
    },
)


def shell_executor(arguments: dict[str, Any], context: ToolContext) -> str:
    """Run the command. A requested timeout can shorten, never extend, the context's."""
    timeout_ms = context.timeout_ms
    requested = arguments.get("timeout")
    if requested is not None and requested > 0:
        timeout_ms = min(timeout_ms, int(requested * 1000))

    result = context.env.exec_command(command=arguments["command"], timeout_ms=timeout_ms)

    if result.timed_out:
        message = f"Command timed out after {timeout_ms}ms."
        if result.combined_output:
            return f"{message} Partial output:\n{result.combined_output}"
        return message
    if result.succeeded:
        return result.stdout
    return f"Exit code {result.exit_code}:\n{result.combined_output}"


SHELL_TOOL = RegisteredTool(definition=SHELL_DEFINITION, executor=shell_executor)
