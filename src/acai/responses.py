"""Responses API client over httpx (OpenRouter-compatible)."""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Sequence

import httpx

from acai.abort import AbortSignal
from acai.client import TurnResponse
from acai.errors import (
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    RequestTimeoutError,
    ServerError,
    error_from_status_code,
)
from acai.items import (
    ConversationItem,
    FunctionCall,
    FunctionCallOutput,
    Message,
    ReasoningStep,
    Role,
)
from acai.retry import RetryPolicy, with_retry
from acai.session_config import SessionConfig
from acai.tools.registry import ToolDefinition
from acai.usage import UsageStats

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


# ---------------------------------------------------------------------------
# Request translation
# ---------------------------------------------------------------------------


def _message_item(message: Message) -> dict[str, Any]:
    if message.role == Role.ASSISTANT:
        item: dict[str, Any] = {
            "type": "message",
            "role": "assistant",
            "content": [{"type": "output_text", "text": message.content, "annotations": []}],
        }
        if message.id is not None:
            item["id"] = message.id
        if message.status is not None:
            item["status"] = message.status
        return item

    role = message.role.value if message.role in (Role.SYSTEM, Role.USER) else "user"
    return {
        "type": "message",
        "role": role,
        "content": [{"type": "input_text", "text": message.content}],
    }


def build_input(history: Sequence[ConversationItem]) -> list[dict[str, Any]]:
    """Translate conversation history into the ``input`` array."""
    items: list[dict[str, Any]] = []
    for entry in history:
        if isinstance(entry, Message):
            items.append(_message_item(entry))
        elif isinstance(entry, FunctionCall):
            items.append({"type": "function_call", **entry.to_record()})
        elif isinstance(entry, FunctionCallOutput):
            items.append({"type": "function_call_output", **entry.to_record()})
        elif isinstance(entry, ReasoningStep):
            items.append({
                "type": "reasoning",
                "id": entry.id,
                "summary": [{"type": "summary_text", "text": s} for s in entry.summary],
            })
    return items


def build_request_body(
    history: Sequence[ConversationItem],
    config: SessionConfig,
    tools: Sequence[ToolDefinition] = (),
) -> dict[str, Any]:
    body: dict[str, Any] = {"model": config.model, "input": build_input(history)}
    if config.temperature is not None:
        body["temperature"] = config.temperature
    if config.top_p is not None:
        body["top_p"] = config.top_p
    if config.max_tokens is not None:
        body["max_output_tokens"] = config.max_tokens
    if tools:
        body["tools"] = [t.to_api() for t in tools]
        body["tool_choice"] = "auto"
    return body


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _texts(blocks: Any, block_type: str) -> list[str]:
    if not isinstance(blocks, list):
        return []
    return [
        b.get("text") or ""
        for b in blocks
        if isinstance(b, dict) and b.get("type") == block_type
    ]


def parse_output_items(raw: dict[str, Any]) -> list[Message | ReasoningStep | FunctionCall]:
    """Decode ``output`` into conversation items. Unknown item types are skipped."""
    output = raw.get("output")
    if not isinstance(output, list):
        raise MalformedResponseError("Response has no 'output' array", raw=raw)

    items: list[Message | ReasoningStep | FunctionCall] = []
    for entry in output:
        if not isinstance(entry, dict):
            continue
        item_type = entry.get("type", "")
        if item_type == "reasoning":
            summary = _texts(entry.get("summary"), "summary_text")
            if not summary:
                summary = _texts(entry.get("content"), "reasoning_text")
            if entry.get("id") and summary:
                items.append(ReasoningStep(id=entry["id"], summary=tuple(summary)))
        elif item_type == "function_call":
            call_id, name = entry.get("call_id"), entry.get("name")
            if not isinstance(call_id, str) or not call_id or not isinstance(name, str):
                raise MalformedResponseError(
                    f"function_call needs string 'call_id' and 'name': {entry!r}", raw=raw
                )
            arguments = entry.get("arguments") or ""
            if not isinstance(arguments, str):
                arguments = json.dumps(arguments)
            items.append(FunctionCall(
                id=str(entry.get("id") or ""),
                call_id=call_id,
                name=name,
                arguments=arguments,
            ))
        elif item_type == "message":
            items.append(Message.assistant(
                "".join(_texts(entry.get("content"), "output_text")),
                id=entry.get("id"),
                status=entry.get("status"),
            ))
    return items


def parse_response(raw: dict[str, Any]) -> TurnResponse:
    error = raw.get("error")
    if isinstance(error, dict) and error.get("message"):
        raise ServerError(error["message"], error_code=error.get("code"), raw=raw)
    items = tuple(parse_output_items(raw))
    try:
        usage = UsageStats.from_api(raw.get("usage"))
    except MalformedResponseError as e:
        raise MalformedResponseError(str(e), raw=raw, cause=e) from e
    return TurnResponse(items=items, usage=usage, response_id=str(raw.get("id") or ""))


def _retry_after(headers: httpx.Headers) -> float | None:
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class ResponsesClient:
    """ApiClient for the Responses API. Retries retryable failures itself."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("An API key is required (set OPENROUTER_API_KEY)")
        self._base_url = base_url.rstrip("/")
        self._retry_policy = retry_policy or RetryPolicy()
        self._client = httpx.Client(
            base_url=self._base_url,
            headers={
                "authorization": f"Bearer {api_key}",
                "content-type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Any) -> ResponsesClient:
        return cls(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            retry_policy=RetryPolicy(max_retries=settings.max_retries),
        )

    def send_turn(
        self,
        history: Sequence[ConversationItem],
        config: SessionConfig,
        tools: Sequence[ToolDefinition] = (),
        timeout: float | None = None,
        abort: AbortSignal | None = None,
    ) -> TurnResponse:
        body = build_request_body(history, config, tools)
        deadline = None if timeout is None else time.monotonic() + timeout

        def attempt() -> TurnResponse:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0.001)
            return self._post(body, remaining)

        return with_retry(attempt, self._retry_policy, deadline=deadline, abort=abort)

    def close(self) -> None:
        self._client.close()

    def _post(self, body: dict[str, Any], timeout: float | None) -> TurnResponse:
        model = body.get("model", "")
        logger.info("POST %s/responses model=%s", self._base_url, model)
        logger.debug("Request body: %s", json.dumps(body))
        kwargs: dict[str, Any] = {} if timeout is None else {"timeout": timeout}
        start = time.monotonic()
        try:
            resp = self._client.post("/responses", json=body, **kwargs)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"Request timed out: {exc}", cause=exc) from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"Network error: {exc}", cause=exc) from exc

        logger.info("Response %d in %.2fs", resp.status_code, time.monotonic() - start)
        logger.debug("Response body: %s", resp.text)

        if resp.status_code >= 300:
            raise self._error_for(resp, model)

        try:
            raw = resp.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"Response body is not valid JSON: {resp.text[:200]}", cause=exc,
            ) from exc
        if not isinstance(raw, dict):
            raise MalformedResponseError("Response body is not a JSON object")
        return parse_response(raw)

    @staticmethod
    def _error_for(resp: httpx.Response, model: str) -> Exception:
        raw: dict[str, Any] | None = None
        try:
            parsed = resp.json()
            detail = json.dumps(parsed, indent=2)
            if isinstance(parsed, dict):
                raw = parsed
        except ValueError:
            detail = resp.text
        return error_from_status_code(
            resp.status_code,
            f"{model}\n\n{detail}",
            raw=raw,
            retry_after=_retry_after(resp.headers),
        )
