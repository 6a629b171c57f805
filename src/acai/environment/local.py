"""Runs the shell tool's commands on this machine."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time

from acai.environment.types import ExecResult

logger = logging.getLogger(__name__)

# Variables ending in one of these are credentials and never reach a command
SECRET_SUFFIXES = ("_API_KEY", "_SECRET", "_TOKEN", "_PASSWORD", "_CREDENTIAL", "_CREDENTIALS")

# Seconds a timed-out process group gets between SIGTERM and SIGKILL
KILL_GRACE_S = 2.0


def is_secret(name: str) -> bool:
    return name.upper().endswith(SECRET_SUFFIXES)


def child_environment(
    extra: dict[str, str] | None = None, inherit_secrets: bool = False
) -> dict[str, str]:
    """The variables a command sees: ours, minus credentials, plus ``extra``."""
    env = {
        name: value
        for name, value in os.environ.items()
        if inherit_secrets or not is_secret(name)
    }
    if extra:
        env.update(extra)
    return env


def _decode(data: bytes | None) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


def _signal_group(proc: subprocess.Popen, sig: int) -> None:
    # start_new_session makes the child its own group leader
    try:
        os.killpg(proc.pid, sig)
    except (ProcessLookupError, PermissionError):
        pass


class LocalExecutionEnvironment:
    """Runs each command as ``<shell> -c <command>`` in its own process group.

    stdin is closed so interactive programs fail fast instead of hanging. On
    timeout the whole group gets SIGTERM, then SIGKILL if it is still alive
    after ``KILL_GRACE_S``.
    """

    def __init__(
        self,
        working_dir: str | None = None,
        shell: str = "bash",
        inherit_secrets: bool = False,
    ) -> None:
        self._working_dir = working_dir or os.getcwd()
        self._shell = shell
        self._inherit_secrets = inherit_secrets

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
        cwd = working_dir or self._working_dir
        logger.debug("%s -c %r in %s (limit %dms)", self._shell, command, cwd, timeout_ms)

        started = time.monotonic()
        proc = subprocess.Popen(
            [self._shell, "-c", command],
            cwd=cwd,
            env=child_environment(env_vars, self._inherit_secrets),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )

        timed_out = False
        try:
            out, err = proc.communicate(timeout=timeout_ms / 1000.0)
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.warning("Killing command after %dms: %s", timeout_ms, command)
            out, err = self._terminate(proc)

        return ExecResult(
            stdout=_decode(out),
            stderr=_decode(err),
            exit_code=-1 if timed_out else proc.returncode,
            timed_out=timed_out,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    @staticmethod
    def _terminate(proc: subprocess.Popen) -> tuple[bytes, bytes]:
        _signal_group(proc, signal.SIGTERM)
        try:
            return proc.communicate(timeout=KILL_GRACE_S)
        except subprocess.TimeoutExpired:
            _signal_group(proc, signal.SIGKILL)
            return proc.communicate()
