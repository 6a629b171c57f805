"""Core turn loop: the Session engine."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from acai.abort import AbortController
from acai.client import ApiClient
from acai.errors import ApiError, ProtocolError, SessionCancelledError
from acai.events import Event, EventEmitter, InitEvent, ResultEvent, event_for
from acai.items import ConversationItem, FunctionCall, FunctionCallOutput, Message
from acai.session_config import SessionConfig, SessionState
from acai.tools.dispatcher import ToolDispatcher
from acai.usage import UsageAccumulator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOutcome:
    """What a finished session hands back to its caller."""

    result: ResultEvent
    final_text: str = ""

    @property
    def success(self) -> bool:
        return self.result.success

    @property
    def error(self) -> str | None:
        return self.result.error


class Session:
    """Drives one conversation from the initial messages to a single result.

    Each loop iteration is one API round-trip. Function calls returned in a
    turn are dispatched and their outputs appended to history before the
    next request is built. In streaming mode every history item is emitted
    as soon as it is recorded, and the stream always ends with exactly one
    ResultEvent.
    """

    def __init__(
        self,
        client: ApiClient,
        dispatcher: ToolDispatcher,
        config: SessionConfig | None = None,
        event_emitter: EventEmitter | None = None,
        session_id: str | None = None,
        cwd: str | None = None,
    ) -> None:
        self.id = session_id or str(uuid.uuid4())
        self.client = client
        self.dispatcher = dispatcher
        self.config = config or SessionConfig()
        self.event_emitter = event_emitter or EventEmitter()
        self.cwd = cwd or dispatcher.working_directory
        self.tools = tuple(dispatcher.enabled_tools)
        self.started_at = datetime.now(timezone.utc)
        self.state = SessionState.INIT
        self.history: list[ConversationItem] = []
        self.usage = UsageAccumulator()
        self.turn_count = 0

        self._abort = AbortController()
        self._pending: list[FunctionCall] = []
        self._result: ResultEvent | None = None
        self._deadline: float | None = None

    # --- Public API ---

    def run(self, messages: Sequence[Message]) -> SessionOutcome:
        """Run the loop to completion.

        Failures end in a failing result. ProtocolError and unexpected
        exceptions are re-raised after that result has been emitted.
        """
        if self.state != SessionState.INIT:
            raise RuntimeError("Session has already run")

        start = time.monotonic()
        if self.config.session_timeout_s is not None:
            self._deadline = start + self.config.session_timeout_s

        self._emit(InitEvent(session_id=self.id, cwd=self.cwd, tools=self.tools))
        for message in messages:
            self._record(message)

        final_text = ""
        error: str | None = None
        try:
            final_text, error = self._loop()
        except SessionCancelledError as e:
            error = str(e)
            self._cancel_pending(error)
        except KeyboardInterrupt:
            error = "Session interrupted"
            self._cancel_pending(error)
        except ProtocolError as e:
            logger.error("Turn loop invariant violated: %s", e)
            self._finish(start, error=f"Internal error: {e}")
            raise
        except Exception as e:
            logger.exception("Session %s failed unexpectedly", self.id)
            error = f"Internal error: {e}"
            self._cancel_pending(error)
            self._finish(start, error=error)
            raise

        result = self._finish(start, error=error)
        return SessionOutcome(result=result, final_text=final_text if error is None else "")

    def abort(self, reason: str = "Session aborted") -> None:
        """Ask the loop to stop at its next suspension point."""
        self._abort.abort(reason)

    @property
    def result(self) -> ResultEvent | None:
        return self._result

    # --- Private methods ---

    def _loop(self) -> tuple[str, str | None]:
        """Returns (final_text, error). error is None on success."""
        while True:
            self._check_cancelled()

            if self.config.max_turns > 0 and self.turn_count >= self.config.max_turns:
                logger.warning("Turn limit of %d reached", self.config.max_turns)
                return "", f"Turn limit of {self.config.max_turns} reached"

            self._transition(SessionState.AWAITING_MODEL)
            self.turn_count += 1
            try:
                response = self.client.send_turn(
                    list(self.history),
                    self.config,
                    self.dispatcher.definitions(),
                    timeout=self._remaining(),
                    abort=self._abort.signal,
                )
            except ApiError as e:
                self._check_cancelled()
                logger.warning("API request failed on turn %d: %s", self.turn_count, e)
                return "", str(e)

            logger.debug(
                "Turn %d: response %s with %d item(s)",
                self.turn_count, response.response_id or "-", len(response.items),
            )
            self.usage.add(response.usage)
            self._check_cancelled()

            self._transition(SessionState.PROCESSING_RESPONSE)
            for item in response.items:
                self._record(item)

            calls = response.function_calls
            if not calls:
                return response.text, None

            self._transition(SessionState.DISPATCHING_TOOLS)
            outputs = self.dispatcher.execute_all(
                calls, timeout_ms=self._tool_timeout_ms(), abort=self._abort.signal,
            )
            for output in outputs:
                self._record(output)
            if self._pending:
                raise ProtocolError(
                    f"Unresolved function calls: {[c.call_id for c in self._pending]}"
                )

    def _record(self, item: ConversationItem) -> None:
        """Append to history and, when streaming, emit immediately."""
        if isinstance(item, FunctionCallOutput):
            self._resolve(item.call_id)
        self.history.append(item)
        if isinstance(item, FunctionCall):
            self._pending.append(item)
        self._emit(event_for(item))

    def _resolve(self, call_id: str) -> None:
        for i, call in enumerate(self._pending):
            if call.call_id == call_id:
                del self._pending[i]
                return
        raise ProtocolError(f"Output references unknown call id {call_id!r}")

    def _cancel_pending(self, reason: str) -> None:
        for call in list(self._pending):
            self._record(FunctionCallOutput(
                call_id=call.call_id, output=f"Error: {reason}", is_error=True,
            ))

    def _check_cancelled(self) -> None:
        if self._abort.signal.aborted:
            raise SessionCancelledError(f"Session cancelled: {self._abort.signal.reason}")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise SessionCancelledError(
                f"Session cancelled: timed out after {self.config.session_timeout_s}s"
            )

    def _remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.001)

    def _tool_timeout_ms(self) -> int:
        remaining = self._remaining()
        if remaining is None:
            return self.config.tool_timeout_ms
        return max(1, min(self.config.tool_timeout_ms, int(remaining * 1000)))

    def _transition(self, state: SessionState) -> None:
        logger.debug("Session %s: %s -> %s", self.id, self.state.value, state.value)
        self.state = state

    def _emit(self, event: Event) -> None:
        if self.config.streaming:
            self.event_emitter.emit(event)

    def _finish(self, start: float, error: str | None) -> ResultEvent:
        if self._result is not None:
            raise ProtocolError("Session already produced a result")
        self._transition(SessionState.DONE)
        self._result = ResultEvent(
            success=error is None,
            duration_ms=int((time.monotonic() - start) * 1000),
            turn_count=self.turn_count,
            usage=self.usage.snapshot(),
            error=error,
        )
        logger.info(
            "Session %s finished: success=%s turns=%d tokens=%d",
            self.id, self._result.success, self.turn_count, self._result.usage.total_tokens,
        )
        self._emit(self._result)
        return self._result
