"""Conversation item types that make up a session's history."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Role(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class Message:
    """A text message from the system, the user, the model or a tool."""

    role: Role
    content: str = ""
    id: str | None = None
    status: str | None = None

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str, id: str | None = None, status: str | None = None) -> Message:
        return cls(role=Role.ASSISTANT, content=content, id=id, status=status)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.id is not None:
            record["id"] = self.id
        if self.status is not None:
            record["status"] = self.status
        return record


@dataclass(frozen=True)
class FunctionCall:
    """A request from the model to run a named tool.

    ``arguments`` is kept as the raw JSON string the model produced; it is
    only parsed by the dispatcher.
    """

    id: str
    call_id: str
    name: str
    arguments: str = "{}"

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "call_id": self.call_id,
            "name": self.name,
            "arguments": self.arguments,
        }


@dataclass(frozen=True)
class FunctionCallOutput:
    """The textual result of a dispatched function call."""

    call_id: str
    output: str = ""
    is_error: bool = False

    def to_record(self) -> dict[str, Any]:
        return {"call_id": self.call_id, "output": self.output}


@dataclass(frozen=True)
class ReasoningStep:
    """Reasoning summary fragments returned by some models."""

    id: str
    summary: tuple[str, ...] = field(default_factory=tuple)

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "summary": list(self.summary)}


# Type alias for everything that can appear in history
ConversationItem = Message | FunctionCall | FunctionCallOutput | ReasoningStep
