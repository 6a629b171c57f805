"""Tests for the Responses API wire client."""
from __future__ import annotations

import json
import time

import httpx
import pytest

from acai.abort import AbortController
from acai.config import Settings
from acai.errors import (
    AuthenticationError,
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
    ServerError,
)
from acai.items import FunctionCall, FunctionCallOutput, Message, ReasoningStep, Role
from acai.responses import (
    ResponsesClient,
    build_input,
    build_request_body,
    parse_output_items,
    parse_response,
)
from acai.retry import RetryPolicy
from acai.session_config import SessionConfig
from acai.tools import SHELL_DEFINITION


def _ok_body(**overrides) -> dict:
    body = {
        "id": "resp_1",
        "output": [
            {
                "type": "message",
                "id": "msg_1",
                "status": "completed",
                "role": "assistant",
                "content": [{"type": "output_text", "text": "4", "annotations": []}],
            }
        ],
        "usage": {
            "input_tokens": 12,
            "input_tokens_details": {"cached_tokens": 0},
            "output_tokens": 3,
            "output_tokens_details": {"reasoning_tokens": 1},
            "total_tokens": 15,
        },
    }
    body.update(overrides)
    return body


def _make_client(handler, max_retries: int = 0) -> ResponsesClient:
    return ResponsesClient(
        api_key="sk-test",
        base_url="https://example.test/api/v1",
        retry_policy=RetryPolicy(max_retries=max_retries, jitter=False),
        transport=httpx.MockTransport(handler),
    )


# --- Request translation ---


class TestBuildInput:
    def test_user_and_system_use_input_text(self) -> None:
        items = build_input([Message.system("sys"), Message.user("hi")])
        assert items == [
            {"type": "message", "role": "system", "content": [{"type": "input_text", "text": "sys"}]},
            {"type": "message", "role": "user", "content": [{"type": "input_text", "text": "hi"}]},
        ]

    def test_assistant_uses_output_text_with_id(self) -> None:
        item = build_input([Message.assistant("done", id="msg_1", status="completed")])[0]
        assert item["content"] == [{"type": "output_text", "text": "done", "annotations": []}]
        assert item["id"] == "msg_1"
        assert item["status"] == "completed"

    def test_tool_role_sent_as_user(self) -> None:
        item = build_input([Message(role=Role.TOOL, content="x")])[0]
        assert item["role"] == "user"

    def test_calls_outputs_and_reasoning(self) -> None:
        items = build_input([
            ReasoningStep(id="rs_1", summary=("plan",)),
            FunctionCall(id="fc_1", call_id="c1", name="shell", arguments='{"command":"ls"}'),
            FunctionCallOutput(call_id="c1", output="a.txt"),
        ])
        assert items[0] == {"type": "reasoning", "id": "rs_1", "summary": [{"type": "summary_text", "text": "plan"}]}
        assert items[1] == {
            "type": "function_call", "id": "fc_1", "call_id": "c1",
            "name": "shell", "arguments": '{"command":"ls"}',
        }
        assert items[2] == {"type": "function_call_output", "call_id": "c1", "output": "a.txt"}


class TestBuildRequestBody:
    def test_sampling_parameters(self) -> None:
        config = SessionConfig(model="m", temperature=0.5, top_p=0.9, max_tokens=256)
        body = build_request_body([Message.user("hi")], config)
        assert body["model"] == "m"
        assert body["temperature"] == 0.5
        assert body["top_p"] == 0.9
        assert body["max_output_tokens"] == 256
        assert "tools" not in body

    def test_unset_parameters_omitted(self) -> None:
        body = build_request_body([], SessionConfig(temperature=None))
        assert set(body) == {"model", "input"}

    def test_tools_included(self) -> None:
        body = build_request_body([], SessionConfig(), [SHELL_DEFINITION])
        assert body["tool_choice"] == "auto"
        assert body["tools"][0]["name"] == "shell"
        assert body["tools"][0]["type"] == "function"


# --- Response parsing ---


class TestParseOutputItems:
    def test_missing_output_is_malformed(self) -> None:
        with pytest.raises(MalformedResponseError):
            parse_output_items({"id": "x"})

    def test_items_in_arrival_order(self) -> None:
        items = parse_output_items({"output": [
            {"type": "reasoning", "id": "rs", "summary": [{"type": "summary_text", "text": "hmm"}]},
            {"type": "function_call", "id": "fc", "call_id": "c", "name": "shell", "arguments": '{"command":"pwd"}'},
            {"type": "message", "content": [
                {"type": "output_text", "text": "a"}, {"type": "output_text", "text": "b"},
            ]},
        ]})
        assert isinstance(items[0], ReasoningStep)
        assert items[0].summary == ("hmm",)
        assert isinstance(items[1], FunctionCall)
        assert items[1].arguments == '{"command":"pwd"}'
        assert items[2] == Message.assistant("ab")

    def test_reasoning_falls_back_to_content(self) -> None:
        items = parse_output_items({"output": [
            {"type": "reasoning", "id": "rs", "summary": [], "content": [{"type": "reasoning_text", "text": "deep"}]},
        ]})
        assert items == [ReasoningStep(id="rs", summary=("deep",))]

    def test_object_arguments_serialized(self) -> None:
        items = parse_output_items({"output": [
            {"type": "function_call", "id": "fc", "call_id": "c", "name": "shell", "arguments": {"command": "ls"}},
        ]})
        assert json.loads(items[0].arguments) == {"command": "ls"}

    def test_unknown_types_skipped(self) -> None:
        assert parse_output_items({"output": [{"type": "web_search_call"}]}) == []

    @pytest.mark.parametrize("entry", [
        {"type": "function_call", "name": "shell", "arguments": "{}"},
        {"type": "function_call", "call_id": 7, "name": "shell", "arguments": "{}"},
        {"type": "function_call", "call_id": "c", "arguments": "{}"},
    ])
    def test_function_call_without_ids_is_malformed(self, entry) -> None:
        raw = {"output": [entry]}
        with pytest.raises(MalformedResponseError) as excinfo:
            parse_output_items(raw)
        assert excinfo.value.raw is raw


class TestParseResponse:
    def test_usage_and_id(self) -> None:
        response = parse_response(_ok_body())
        assert response.response_id == "resp_1"
        assert response.usage.total_tokens == 15
        assert response.usage.reasoning_tokens == 1
        assert response.text == "4"

    def test_embedded_error(self) -> None:
        with pytest.raises(ServerError, match="overloaded"):
            parse_response({"error": {"message": "overloaded", "code": "server_error"}})

    def test_malformed_usage_keeps_raw_body(self) -> None:
        body = _ok_body(usage="12 tokens")
        with pytest.raises(MalformedResponseError, match="usage must be an object") as excinfo:
            parse_response(body)
        assert excinfo.value.raw is body
        assert not excinfo.value.retryable

    def test_negative_usage_count(self) -> None:
        body = _ok_body(usage={"input_tokens": 4, "output_tokens": -2})
        with pytest.raises(MalformedResponseError, match="output_tokens"):
            parse_response(body)


# --- ResponsesClient ---


class TestResponsesClient:
    def test_requires_api_key(self) -> None:
        with pytest.raises(ConfigurationError):
            ResponsesClient(api_key="")

    def test_posts_to_responses_endpoint(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_ok_body())

        client = _make_client(handler)
        response = client.send_turn([Message.user("2+2?")], SessionConfig(model="m"))

        assert response.text == "4"
        assert seen[0].url.path == "/api/v1/responses"
        assert seen[0].headers["authorization"] == "Bearer sk-test"
        assert json.loads(seen[0].content)["model"] == "m"

    def test_rate_limit_maps_to_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"error": {"message": "slow down"}})

        with pytest.raises(RateLimitError) as excinfo:
            _make_client(handler).send_turn([], SessionConfig(model="m"))
        assert "Rate limit exceeded" in str(excinfo.value)
        assert "slow down" in str(excinfo.value)
        assert excinfo.value.raw == {"error": {"message": "slow down"}}

    def test_auth_failure_not_retried(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(401, text="bad key")

        with pytest.raises(AuthenticationError):
            _make_client(handler, max_retries=3).send_turn([], SessionConfig())
        assert len(calls) == 1

    def test_retries_retryable_status(self) -> None:
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            if status != 200:
                return httpx.Response(status, headers={"retry-after": "0"}, text="busy")
            return httpx.Response(200, json=_ok_body())

        response = _make_client(handler, max_retries=1).send_turn([], SessionConfig())
        assert response.text == "4"

    def test_retry_after_past_timeout_not_waited(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(429, headers={"retry-after": "2"}, text="slow down")

        start = time.monotonic()
        with pytest.raises(RateLimitError):
            _make_client(handler, max_retries=2).send_turn([], SessionConfig(), timeout=0.5)
        assert time.monotonic() - start < 1.5
        assert len(calls) == 1

    def test_abort_stops_retries(self) -> None:
        controller = AbortController()
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            controller.abort("interrupted")
            return httpx.Response(503, headers={"retry-after": "0.5"}, text="busy")

        with pytest.raises(ServerError):
            _make_client(handler, max_retries=3).send_turn(
                [], SessionConfig(), abort=controller.signal,
            )
        assert len(calls) == 1

    def test_request_timeout_shrinks_with_remaining_time(self) -> None:
        timeouts: list[float] = []
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            timeouts.append(request.extensions["timeout"]["read"])
            if next(statuses) != 200:
                return httpx.Response(503, headers={"retry-after": "0.2"}, text="busy")
            return httpx.Response(200, json=_ok_body())

        _make_client(handler, max_retries=1).send_turn([], SessionConfig(), timeout=30.0)
        assert len(timeouts) == 2
        assert timeouts[1] < timeouts[0] <= 30.0

    def test_transport_failure_is_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(NetworkError):
            _make_client(handler).send_turn([], SessionConfig())

    def test_non_json_body_is_malformed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        with pytest.raises(MalformedResponseError):
            _make_client(handler).send_turn([], SessionConfig())

    def test_from_settings(self) -> None:
        client = ResponsesClient.from_settings(Settings(api_key="k", base_url="https://x.test/v1/"))
        try:
            assert client._base_url == "https://x.test/v1"
        finally:
            client.close()
