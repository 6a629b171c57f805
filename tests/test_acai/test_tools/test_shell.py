"""Tests for the shell tool executor."""

from acai.environment.stub import StubExecutionEnvironment
from acai.environment.types import ExecResult
from acai.tools.registry import ToolContext
from acai.tools.shell import SHELL_DEFINITION, shell_executor


def _run(args, result=None, timeout_ms=120_000):
    env = StubExecutionEnvironment(exec_results=[result or ExecResult()])
    output = shell_executor(args, ToolContext(env=env, timeout_ms=timeout_ms))
    return output, env


class TestShellDefinition:
    def test_command_required(self):
        assert SHELL_DEFINITION.name == "shell"
        assert SHELL_DEFINITION.parameters["required"] == ["command"]
        assert "timeout" in SHELL_DEFINITION.parameters["properties"]


class TestShellExecutor:
    def test_success_returns_stdout(self):
        output, env = _run({"command": "ls"}, ExecResult(stdout="a\n", stderr="warn"))
        assert output == "a\n"
        assert env.exec_calls == ["ls"]

    def test_failure_includes_exit_code_and_stderr(self):
        output, _ = _run({"command": "false"}, ExecResult(stdout="out\n", stderr="err\n", exit_code=2))
        assert output == "Exit code 2:\nout\nerr\n"

    def test_timeout_with_partial_output(self):
        result = ExecResult(stdout="partial", exit_code=-1, timed_out=True)
        output, _ = _run({"command": "sleep 9"}, result, timeout_ms=1000)
        assert output == "Command timed out after 1000ms. Partial output:\npartial"

    def test_timeout_without_output(self):
        output, _ = _run({"command": "sleep 9"}, ExecResult(exit_code=-1, timed_out=True), timeout_ms=50)
        assert output == "Command timed out after 50ms."

    def test_requested_timeout_shortens(self):
        _, env = _run({"command": "x", "timeout": 2}, timeout_ms=10_000)
        assert env.timeouts == [2000]

    def test_requested_timeout_cannot_extend(self):
        _, env = _run({"command": "x", "timeout": 60}, timeout_ms=10_000)
        assert env.timeouts == [10_000]
