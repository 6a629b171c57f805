"""Scripted execution environment for tests."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from acai.environment.types import ExecResult


@dataclass(frozen=True)
class RecordedCommand:
    command: str
    timeout_ms: int
    working_dir: str | None = None


class StubExecutionEnvironment:
    """Answers each command with the next scripted ExecResult; the last one repeats.

    Every call is recorded so tests can assert on what the shell tool asked for.
    """

    def __init__(
        self,
        working_dir: str = "/stub/workspace",
        exec_results: list[ExecResult] | None = None,
    ) -> None:
        self._working_dir = working_dir
        self._script = list(exec_results or [ExecResult()])
        self._lock = threading.Lock()
        self.commands: list[RecordedCommand] = []

    @property
    def working_directory(self) -> str:
        return self._working_dir

    def exec_command(
        self,
        command: str,
        timeout_ms: int = 120_000,
        working_dir: str | None = None,
        env_vars: dict[str, str] | None = None,
    ) -> ExecResult:
        with self._lock:
            self.commands.append(RecordedCommand(command, timeout_ms, working_dir))
            position = min(len(self.commands), len(self._script)) - 1
        return self._script[position]

    @property
    def exec_calls(self) -> list[str]:
        return [c.command for c in self.commands]

    @property
    def timeouts(self) -> list[int]:
        return [c.timeout_ms for c in self.commands]
