"""Tool dispatcher: routes function calls to local capabilities.

Every call resolves to exactly one FunctionCallOutput. Unknown or disabled
tools, invalid arguments, executor failures and timeouts all become
diagnostic outputs so the conversation can continue.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Sequence

from acai.environment.types import ExecutionEnvironment
from acai.errors import ToolExecutionError, ToolValidationError
from acai.items import FunctionCall, FunctionCallOutput
from acai.tools.registry import RegisteredTool, ToolContext, ToolDefinition, ToolRegistry
from acai.tools.schema import parse_arguments, validate_arguments

logger = logging.getLogger(__name__)

# Extra time an executor gets past its own timeout to clean up (e.g. kill a process group)
TIMEOUT_GRACE_S = 5.0


class _UnsupportedTool:
    """Fallback variant for names that are unknown or not enabled."""

    def __init__(self, name: str, registered: bool) -> None:
        self.name = name
        self.registered = registered

    def diagnostic(self) -> str:
        if self.registered:
            return f"Error: Tool '{self.name}' is not enabled for this session"
        return f"Error: Unknown tool: {self.name}"


class ToolDispatcher:
    """Executes function calls against the enabled subset of a ToolRegistry."""

    def __init__(
        self,
        registry: ToolRegistry,
        env: ExecutionEnvironment,
        enabled: Sequence[str] | None = None,
        timeout_ms: int = 120_000,
        parallel: bool = False,
        max_workers: int = 8,
    ) -> None:
        self._registry = registry
        self._env = env
        self._enabled = set(registry.list_tools() if enabled is None else enabled)
        self._timeout_ms = timeout_ms
        self._parallel = parallel
        self._max_workers = max_workers

    # --- Public API ---

    @property
    def enabled_tools(self) -> list[str]:
        """Names that are both registered and enabled, in registration order."""
        return [name for name in self._registry.list_tools() if name in self._enabled]

    @property
    def working_directory(self) -> str:
        return self._env.working_directory

    def definitions(self) -> list[ToolDefinition]:
        return [d for d in self._registry.definitions() if d.name in self._enabled]

    def execute(
        self,
        name: str,
        call_id: str,
        arguments: str,
        timeout_ms: int | None = None,
    ) -> FunctionCallOutput:
        """Validate and run one call. Never raises for tool-level failures."""
        tool = self._resolve(name)
        if isinstance(tool, _UnsupportedTool):
            logger.warning("Function call %s names unsupported tool %r", call_id, name)
            return FunctionCallOutput(call_id=call_id, output=tool.diagnostic(), is_error=True)

        try:
            args = parse_arguments(arguments)
            validate_arguments(args, tool.definition.parameters)
        except ToolValidationError as e:
            logger.warning("Invalid arguments for %s (%s): %s", name, call_id, e)
            return FunctionCallOutput(
                call_id=call_id, output=f"Error: Invalid {name} arguments: {e}", is_error=True,
            )

        effective_ms = self._timeout_ms if timeout_ms is None else min(timeout_ms, self._timeout_ms)
        context = ToolContext(env=self._env, timeout_ms=effective_ms, call_id=call_id)
        try:
            output = self._invoke_bounded(tool, args, context)
        except ToolExecutionError as e:
            logger.warning("Tool %s (%s) failed: %s", name, call_id, e)
            return FunctionCallOutput(call_id=call_id, output=f"Error: {e}", is_error=True)
        return FunctionCallOutput(call_id=call_id, output=output)

    def execute_all(
        self,
        calls: Sequence[FunctionCall],
        timeout_ms: int | None = None,
        abort: Any = None,
    ) -> list[FunctionCallOutput]:
        """Run a turn's calls and return outputs in call order.

        ``abort`` is an AbortSignal; calls not yet started when it fires
        resolve to a cancellation diagnostic.
        """
        if not self._parallel or len(calls) < 2:
            return [self._execute_call(call, timeout_ms, abort) for call in calls]

        workers = min(len(calls), self._max_workers)
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="acai-tool")
        try:
            futures = [pool.submit(self._execute_call, c, timeout_ms, abort) for c in calls]
            # Submission order, not completion order
            return [future.result() for future in futures]
        finally:
            # An interrupt must not wait for tools that are still running
            pool.shutdown(wait=False, cancel_futures=True)

    # --- Private helpers ---

    def _execute_call(
        self, call: FunctionCall, timeout_ms: int | None, abort: Any
    ) -> FunctionCallOutput:
        if abort is not None and abort.aborted:
            return _cancelled(call)
        return self.execute(call.name, call.call_id, call.arguments, timeout_ms)

    def _resolve(self, name: str) -> RegisteredTool | _UnsupportedTool:
        tool = self._registry.get(name)
        if tool is None or name not in self._enabled:
            return _UnsupportedTool(name, registered=tool is not None)
        return tool

    def _invoke_bounded(
        self, tool: RegisteredTool, args: dict[str, Any], context: ToolContext
    ) -> str:
        logger.info("Running tool %s (%s)", tool.name, context.call_id)
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"acai-{tool.name}")
        future = pool.submit(self._registry.invoke, tool.name, args, context)
        try:
            return future.result(timeout=context.timeout_ms / 1000.0 + TIMEOUT_GRACE_S)
        except FutureTimeoutError as e:
            raise ToolExecutionError(
                f"Tool '{tool.name}' timed out after {context.timeout_ms}ms", cause=e
            ) from e
        except ToolExecutionError:
            raise
        except Exception as e:
            raise ToolExecutionError(f"Tool '{tool.name}' failed: {e}", cause=e) from e
        finally:
            pool.shutdown(wait=False)


def _cancelled(call: FunctionCall) -> FunctionCallOutput:
    return FunctionCallOutput(
        call_id=call.call_id, output="Error: Session cancelled before the tool ran", is_error=True,
    )
