"""Where tool commands run: the local machine, or a scripted stub in tests."""

from acai.environment.local import LocalExecutionEnvironment, child_environment
from acai.environment.stub import RecordedCommand, StubExecutionEnvironment
from acai.environment.types import ExecResult, ExecutionEnvironment

__all__ = [
    "ExecResult",
    "ExecutionEnvironment",
    "LocalExecutionEnvironment",
    "RecordedCommand",
    "StubExecutionEnvironment",
    "child_environment",
]
