"""Command execution on the host, streamed or buffered."""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from pydantic import ValidationError

from homunculus.modules.host import (
    HomunculusCancelledError,
    HomunculusStreamError,
    HomunculusTransportError,
    create_url,
)
from homunculus.modules.streaming import post_stream

from .models import CommandEvent, CommandResult, ExitEvent, StderrEvent, StdoutEvent, command_event_adapter

logger = logging.getLogger(__name__)

EXECUTE_PATH = "commands/execute"


def build_request(
    command: str,
    args: Optional[List[str]] = None,
    stdin: Optional[str] = None,
    timeout_ms: Optional[int] = None,
) -> Dict[str, Any]:
    """Request body for the execute endpoint; limits are enforced by the host."""
    body: Dict[str, Any] = {"command": command}
    if args is not None:
        body["args"] = args
    if stdin is not None:
        body["stdin"] = stdin
    if timeout_ms is not None:
        body["timeoutMs"] = timeout_ms
    return body


async def stream(
    command: str,
    args: Optional[List[str]] = None,
    stdin: Optional[str] = None,
    timeout_ms: Optional[int] = None,
    cancel: Optional[asyncio.Event] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> AsyncIterator[CommandEvent]:
    """
    Run a command and yield its output events as they arrive.

    Args:
        command: Command name known to the host
        args: Arguments passed through unmodified
        stdin: Data written to the process stdin
        timeout_ms: Timeout enforced by the host
        cancel: Optional cancellation token; ends the iterator cleanly
        client: Optional client to reuse

    Yields:
        StdoutEvent / StderrEvent items, then exactly one ExitEvent

    Raises:
        HomunculusApiError: The host rejected the request
        HomunculusStreamError: A line is not a valid command event
    """
    url = create_url(EXECUTE_PATH)
    body = build_request(command, args, stdin, timeout_ms)
    logger.debug(f"Executing {command} via {url}")

    events = post_stream(url, body, cancel=cancel, client=client)
    try:
        async for raw in events:
            event = _to_event(raw)
            yield event
            if isinstance(event, ExitEvent):
                return
    finally:
        await events.aclose()


async def execute(
    command: str,
    args: Optional[List[str]] = None,
    stdin: Optional[str] = None,
    timeout_ms: Optional[int] = None,
    cancel: Optional[asyncio.Event] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> CommandResult:
    """
    Run a command and wait for it to finish.

    Returns:
        CommandResult built from the output and the exit event

    Raises:
        HomunculusApiError: The host rejected the request
        HomunculusStreamError: A line is not a valid command event
        HomunculusCancelledError: Cancelled before the exit event arrived
        HomunculusTransportError: The stream ended before the exit event
    """
    stdout: List[str] = []
    stderr: List[str] = []
    exit_event: Optional[ExitEvent] = None

    async for event in stream(command, args, stdin, timeout_ms, cancel=cancel, client=client):
        if isinstance(event, StdoutEvent):
            stdout.append(event.data)
        elif isinstance(event, StderrEvent):
            stderr.append(event.data)
        else:
            exit_event = event

    if exit_event is None:
        if cancel is not None and cancel.is_set():
            raise HomunculusCancelledError(f"Command {command} cancelled before it exited")
        raise HomunculusTransportError(f"Stream for command {command} ended without an exit event")

    if exit_event.timed_out:
        logger.warning(f"Command {command} timed out on the host")

    return CommandResult(
        stdout="\n".join(stdout),
        stderr="\n".join(stderr),
        exit_code=exit_event.exit_code,
        timed_out=exit_event.timed_out,
        signal=exit_event.signal,
    )


def _to_event(raw: Any) -> CommandEvent:
    try:
        return command_event_adapter.validate_python(raw)
    except ValidationError as e:
        raise HomunculusStreamError(json.dumps(raw), e) from e
