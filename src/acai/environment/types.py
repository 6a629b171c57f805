"""Command execution result and the environment protocol tools run against."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ExecResult:
    """Outcome of one shell command. ``exit_code`` is -1 when it was killed for timing out."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def combined_output(self) -> str:
        return self.stdout + self.stderr


class ExecutionEnvironment(Protocol):
    """Where the shell tool's commands run."""

    def exec_command(
        self,
        command: str,
        timeout_ms: int = 120_000,
        working_dir: str | None = None,
        env_vars: dict[str, str] | None = None,
    ) -> ExecResult: ...

    @property
    def working_directory(self) -> str: ...
