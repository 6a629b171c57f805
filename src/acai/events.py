"""Session event records and the line-delimited JSON emitter."""
from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TextIO

from acai.errors import ProtocolError
from acai.items import FunctionCall, FunctionCallOutput, Message, ReasoningStep
from acai.usage import UsageStats


class EventKind(Enum):
    INIT = "init"
    MESSAGE = "message"
    REASONING = "reasoning"
    FUNCTION_CALL = "function_call"
    FUNCTION_CALL_OUTPUT = "function_call_output"
    RESULT = "result"


# --- Event dataclasses ---


@dataclass(frozen=True)
class InitEvent:
    session_id: str
    cwd: str
    tools: tuple[str, ...] = ()

    kind = EventKind.INIT

    def to_record(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "session_id": self.session_id,
            "cwd": self.cwd,
            "tools": list(self.tools),
        }


@dataclass(frozen=True)
class MessageEvent:
    message: Message

    kind = EventKind.MESSAGE

    def to_record(self) -> dict[str, Any]:
        return {"type": self.kind.value, **self.message.to_record()}


@dataclass(frozen=True)
class ReasoningEvent:
    reasoning: ReasoningStep

    kind = EventKind.REASONING

    def to_record(self) -> dict[str, Any]:
        return {"type": self.kind.value, **self.reasoning.to_record()}


@dataclass(frozen=True)
class FunctionCallEvent:
    call: FunctionCall

    kind = EventKind.FUNCTION_CALL

    def to_record(self) -> dict[str, Any]:
        return {"type": self.kind.value, **self.call.to_record()}


@dataclass(frozen=True)
class FunctionCallOutputEvent:
    output: FunctionCallOutput

    kind = EventKind.FUNCTION_CALL_OUTPUT

    def to_record(self) -> dict[str, Any]:
        return {"type": self.kind.value, **self.output.to_record()}


@dataclass(frozen=True)
class ResultEvent:
    success: bool
    duration_ms: int
    turn_count: int
    usage: UsageStats = field(default_factory=UsageStats)
    error: str | None = None

    kind = EventKind.RESULT

    @property
    def subtype(self) -> str:
        return "success" if self.success else "error"

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "type": self.kind.value,
            "success": self.success,
            "subtype": self.subtype,
            "duration_ms": self.duration_ms,
            "turn_count": self.turn_count,
            "usage": self.usage.to_record(),
        }
        if not self.success:
            record["error"] = self.error or "Unknown error"
        return record


Event = (
    InitEvent
    | MessageEvent
    | ReasoningEvent
    | FunctionCallEvent
    | FunctionCallOutputEvent
    | ResultEvent
)


def event_for(item: Message | FunctionCall | FunctionCallOutput | ReasoningStep) -> Event:
    """Wrap a conversation item in its event record."""
    if isinstance(item, Message):
        return MessageEvent(message=item)
    if isinstance(item, FunctionCall):
        return FunctionCallEvent(call=item)
    if isinstance(item, FunctionCallOutput):
        return FunctionCallOutputEvent(output=item)
    if isinstance(item, ReasoningStep):
        return ReasoningEvent(reasoning=item)
    raise TypeError(f"Not a conversation item: {item!r}")


class EventEmitter:
    """Synchronous callback-based event emitter.

    Events are dispatched in submission order; a lock keeps concurrent
    producers from interleaving. Once a ResultEvent has been emitted the
    emitter is closed and any further emit raises ProtocolError.
    """

    def __init__(self) -> None:
        self._listeners: dict[type, list[Callable]] = {}
        self._global_listeners: list[Callable] = []
        self._lock = threading.Lock()
        self._closed = False

    def subscribe(self, event_type: type, callback: Callable) -> None:
        """Register a callback for a specific event type."""
        self._listeners.setdefault(event_type, []).append(callback)

    def on_all(self, callback: Callable) -> None:
        """Register a callback that receives every event."""
        self._global_listeners.append(callback)

    def emit(self, event: Event) -> None:
        """Dispatch event to all matching listeners."""
        with self._lock:
            if self._closed:
                raise ProtocolError(
                    f"Cannot emit {event.kind.value!r} after the result record"
                )
            if isinstance(event, ResultEvent):
                self._closed = True
            for cb in self._global_listeners:
                cb(event)
            for cb in self._listeners.get(type(event), []):
                cb(event)

    @property
    def closed(self) -> bool:
        return self._closed


class JsonLinesWriter:
    """Listener that writes each event as one JSON object per line."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def __call__(self, event: Event) -> None:
        self._stream.write(json.dumps(event.to_record(), ensure_ascii=False) + "\n")
        self._stream.flush()
