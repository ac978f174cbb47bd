"""
Signals: cross-process pub/sub channels on the host.

Subscribers receive every payload sent to a channel over a Server-Sent
Events connection; publishing is a single POST that knows nothing about
who is listening.
"""

import logging
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel

from homunculus.modules import host

from .subscription import Handler, Subscription

logger = logging.getLogger(__name__)


class SignalChannelInfo(BaseModel):
    """An active channel and its subscriber count, as reported by the host."""

    signal: str
    subscribers: int


def stream(signal: str, handler: Handler) -> Subscription:
    """
    Subscribe to a signal channel.

    Args:
        signal: Channel name
        handler: Called with each payload; may be a coroutine function

    Returns:
        Open Subscription; call close() when done

    Raises:
        HomunculusApiError: The host refused the subscription

    Example:
        sub = signals.stream("my-signal", lambda payload: print(payload))
        ...
        sub.close()
    """
    return Subscription(host.create_url(f"signals/{signal}"), handler, name=f"signal:{signal}")


async def send(signal: str, payload: Any, client: Optional[httpx.AsyncClient] = None) -> None:
    """Publish a payload to every current subscriber of a channel."""
    await host.post(host.create_url(f"signals/{signal}"), payload, client=client)
    logger.debug(f"Sent signal {signal}")


async def list_channels(client: Optional[httpx.AsyncClient] = None) -> List[SignalChannelInfo]:
    """Return the channels the host currently knows about."""
    response = await host.get(host.create_url("signals"), client=client)
    return [SignalChannelInfo.model_validate(item) for item in response.json()]
