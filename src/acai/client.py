"""API client protocol and stub implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from acai.abort import AbortSignal
from acai.errors import ApiError
from acai.items import ConversationItem, FunctionCall, Message, ReasoningStep, Role
from acai.session_config import SessionConfig
from acai.tools.registry import ToolDefinition
from acai.usage import UsageStats


@dataclass(frozen=True)
class TurnResponse:
    """Everything the model produced in one round-trip, in arrival order."""

    items: tuple[Message | ReasoningStep | FunctionCall, ...] = ()
    usage: UsageStats = field(default_factory=UsageStats)
    response_id: str = ""

    @property
    def messages(self) -> list[Message]:
        return [i for i in self.items if isinstance(i, Message)]

    @property
    def reasoning(self) -> list[ReasoningStep]:
        return [i for i in self.items if isinstance(i, ReasoningStep)]

    @property
    def function_calls(self) -> list[FunctionCall]:
        return [i for i in self.items if isinstance(i, FunctionCall)]

    @property
    def text(self) -> str:
        """Content of the last assistant message, or empty."""
        for message in reversed(self.messages):
            if message.role == Role.ASSISTANT:
                return message.content
        return ""


class ApiClient(Protocol):
    """Protocol for model API clients.

    ``timeout`` is the seconds left for the whole exchange, retries included.
    Implementations stop retrying once ``abort`` fires.
    """

    def send_turn(
        self,
        history: Sequence[ConversationItem],
        config: SessionConfig,
        tools: Sequence[ToolDefinition] = (),
        timeout: float | None = None,
        abort: AbortSignal | None = None,
    ) -> TurnResponse: ...


class StubClient:
    """Test stub that returns predefined responses in sequence.

    A response may be an exception instance, which is raised instead.
    When all responses are exhausted, cycles the last one.
    """

    def __init__(self, responses: list[TurnResponse | ApiError] | None = None) -> None:
        self._responses = responses or [
            TurnResponse(items=(Message.assistant("Hello! How can I help?"),))
        ]
        self._index = 0
        self._requests: list[list[ConversationItem]] = []
        self._tools: list[list[str]] = []

    def send_turn(
        self,
        history: Sequence[ConversationItem],
        config: SessionConfig,
        tools: Sequence[ToolDefinition] = (),
        timeout: float | None = None,
        abort: AbortSignal | None = None,
    ) -> TurnResponse:
        self._requests.append(list(history))
        self._tools.append([t.name for t in tools])
        if self._index < len(self._responses):
            response = self._responses[self._index]
            self._index += 1
        else:
            response = self._responses[-1]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self._requests)

    @property
    def requests(self) -> list[list[ConversationItem]]:
        """Snapshot of the history sent with each call."""
        return list(self._requests)

    @property
    def tool_names(self) -> list[list[str]]:
        return list(self._tools)
