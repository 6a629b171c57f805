"""Token usage statistics and the per-session accumulator."""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from acai.errors import MalformedResponseError


def _count(container: dict[str, Any], key: str) -> int:
    value = container.get(key)
    if value is None:
        return 0
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedResponseError(f"usage field {key!r} must be a non-negative integer, got {value!r}")
    return value


def _details(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedResponseError(f"usage field {key!r} must be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class UsageStats:
    """Token counts for one turn or a whole session.

    ``cached_tokens`` is a subset of ``input_tokens`` and ``reasoning_tokens``
    a subset of ``output_tokens``; neither contributes to the total.
    """

    input_tokens: int = 0
    cached_tokens: int = 0
    output_tokens: int = 0
    reasoning_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: UsageStats) -> UsageStats:
        if not isinstance(other, UsageStats):
            return NotImplemented
        return UsageStats(
            input_tokens=self.input_tokens + other.input_tokens,
            cached_tokens=self.cached_tokens + other.cached_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            reasoning_tokens=self.reasoning_tokens + other.reasoning_tokens,
        )

    @classmethod
    def from_api(cls, raw: Any) -> UsageStats:
        """Build from a Responses API ``usage`` object. Missing fields count as zero.

        Raises MalformedResponseError for anything that is not a non-negative
        integer count in the expected nesting.
        """
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise MalformedResponseError(f"usage must be an object, got {type(raw).__name__}")
        input_details = _details(raw, "input_tokens_details")
        output_details = _details(raw, "output_tokens_details")
        return cls(
            input_tokens=_count(raw, "input_tokens"),
            cached_tokens=_count(input_details, "cached_tokens"),
            output_tokens=_count(raw, "output_tokens"),
            reasoning_tokens=_count(output_details, "reasoning_tokens"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "input_tokens_details": {"cached_tokens": self.cached_tokens},
            "output_tokens": self.output_tokens,
            "output_tokens_details": {"reasoning_tokens": self.reasoning_tokens},
            "total_tokens": self.total_tokens,
        }


class UsageAccumulator:
    """Running session total. Only ever grows."""

    def __init__(self) -> None:
        self._total = UsageStats()

    def add(self, turn_usage: UsageStats) -> None:
        for f in fields(turn_usage):
            if getattr(turn_usage, f.name) < 0:
                raise ValueError(f"Usage count {f.name} cannot be negative")
        self._total = self._total + turn_usage

    def snapshot(self) -> UsageStats:
        return self._total
