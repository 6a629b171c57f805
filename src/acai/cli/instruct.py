"""CLI command: acai instruct -- run one instruction through the turn loop."""

from __future__ import annotations

import sys

import click

from acai.config import Settings
from acai.environment.local import LocalExecutionEnvironment
from acai.errors import ConfigurationError
from acai.events import EventEmitter, JsonLinesWriter
from acai.history import HistoryStore
from acai.items import Message
from acai.log import configure_logging
from acai.responses import ResponsesClient
from acai.session import Session
from acai.session_config import DEFAULT_MODEL, SessionConfig
from acai.tools import ToolDispatcher, default_registry

SYSTEM_PROMPT = (
    "You are a helpful AI CLI assistant that runs on the user's computer "
    "and follows their instructions."
)


def _read_stdin(prompt: str | None) -> str | None:
    """Read piped input. Only consulted when no prompt was given."""
    if prompt is not None:
        return None
    stream = click.get_text_stream("stdin")
    if stream.isatty():
        return None
    return stream.read()


def build_content(prompt: str | None, context: str | None) -> str:
    if prompt and context:
        return f"{prompt}\n\n{context}"
    return prompt or context or ""


@click.command()
@click.option("--model", default=DEFAULT_MODEL, show_default=True, help="Model to use")
@click.option("--temperature", type=float, default=None, help="Sampling temperature")
@click.option("--max-tokens", type=int, default=None, help="Maximum output tokens per turn")
@click.option("--top-p", type=float, default=None, help="Nucleus sampling value")
@click.option("-p", "--prompt", default=None, help="The instruction (otherwise read from stdin)")
@click.option("--streaming-json", is_flag=True, help="Stream each event as a JSON line")
@click.option("--max-turns", type=int, default=0, show_default=True, help="Turn limit (0 = unlimited)")
@click.option("--timeout", type=float, default=None, help="Session timeout in seconds")
@click.option("--tool-timeout", type=float, default=120.0, show_default=True, help="Per tool call timeout in seconds")
@click.option("--parallel-tools", is_flag=True, help="Run a turn's tool calls concurrently")
@click.option("--no-tools", is_flag=True, help="Do not expose any tools to the model")
@click.pass_context
def instruct(
    ctx: click.Context,
    model: str,
    temperature: float | None,
    max_tokens: int | None,
    top_p: float | None,
    prompt: str | None,
    streaming_json: bool,
    max_turns: int,
    timeout: float | None,
    tool_timeout: float,
    parallel_tools: bool,
    no_tools: bool,
) -> None:
    """Send an instruction to the model and let it use local tools.

    Prints the final answer, or with --streaming-json one JSON record per
    line ending with a result record.
    """
    overrides = ctx.obj or {}
    settings = overrides.get("settings") or Settings.from_env()
    configure_logging(settings.data_dir, settings.log_level)

    content = build_content(prompt, _read_stdin(prompt))
    if not content.strip():
        raise click.UsageError("No prompt given. Use --prompt or pipe input on stdin.")

    client = overrides.get("client")
    if client is None:
        try:
            client = ResponsesClient.from_settings(settings)
        except ConfigurationError as e:
            raise click.ClickException(str(e)) from e

    config = SessionConfig(
        model=model,
        temperature=0.0 if temperature is None else temperature,
        max_tokens=max_tokens,
        top_p=top_p,
        max_turns=max_turns,
        tool_timeout_ms=int(tool_timeout * 1000),
        session_timeout_s=timeout,
        parallel_tool_calls=parallel_tools,
        streaming=streaming_json,
    )

    env = overrides.get("env") or LocalExecutionEnvironment()
    dispatcher = ToolDispatcher(
        default_registry(),
        env,
        enabled=[] if no_tools else None,
        timeout_ms=config.tool_timeout_ms,
        parallel=config.parallel_tool_calls,
    )

    emitter = EventEmitter()
    if streaming_json:
        emitter.on_all(JsonLinesWriter(click.get_text_stream("stdout")))

    session = Session(client, dispatcher, config=config, event_emitter=emitter)
    try:
        outcome = session.run([Message.system(SYSTEM_PROMPT), Message.user(content)])
    finally:
        HistoryStore(settings.data_dir).save(session.history)
        if hasattr(client, "close"):
            client.close()

    if not streaming_json:
        if outcome.success:
            click.echo(outcome.final_text)
        else:
            click.echo(f"Error: {outcome.error}", err=True)

    if not outcome.success:
        sys.exit(1)
