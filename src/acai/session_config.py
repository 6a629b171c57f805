"""Session configuration and lifecycle state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_MODEL = "minimax/minimax-m2.5"


class SessionState(Enum):
    INIT = "init"
    AWAITING_MODEL = "awaiting_model"
    PROCESSING_RESPONSE = "processing_response"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for a single instruct session."""

    model: str = DEFAULT_MODEL
    temperature: float | None = 0.0
    max_tokens: int | None = None
    top_p: float | None = None
    max_turns: int = 0  # 0 = unlimited
    tool_timeout_ms: int = 120_000
    session_timeout_s: float | None = None  # None = unlimited
    parallel_tool_calls: bool = False
    streaming: bool = False
