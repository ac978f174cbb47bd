"""Per-entity VRM event feeds over Server-Sent Events."""

import logging
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel

from homunculus.modules import host
from homunculus.modules.signals import Subscription

logger = logging.getLogger(__name__)

# Named events pushed on vrm/{entity}/events
VRM_EVENTS = frozenset(
    {
        "drag-start",
        "drag",
        "drag-end",
        "pointer-press",
        "pointer-click",
        "pointer-release",
        "pointer-over",
        "pointer-out",
        "pointer-cancel",
        "pointer-move",
        "state-change",
        "expression-change",
        "vrma-play",
        "vrma-finish",
        "persona-change",
    }
)


def _check_event(event: str) -> None:
    if event not in VRM_EVENTS:
        raise ValueError(f"Unknown VRM event: {event}. Available: {sorted(VRM_EVENTS)}")


class VrmMetadata(BaseModel):
    """Name and entity id of a loaded VRM."""

    name: str
    entity: int


class VrmEventSource:
    """Event feed for one VRM entity; close it when done."""

    def __init__(self, subscription: Subscription):
        self.subscription = subscription

    def on(self, event: str, callback: Callable[[Any], Any]) -> "VrmEventSource":
        """
        Register a callback for one of the VRM_EVENTS.

        Raises:
            ValueError: Unknown event name
        """
        _check_event(event)
        self.subscription.on(event, callback)
        return self

    def close(self) -> None:
        self.subscription.close()

    def __enter__(self) -> "VrmEventSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class Vrm:
    """A VRM entity on the host."""

    def __init__(self, entity: int):
        self.entity = entity

    def __repr__(self) -> str:
        return f"Vrm(entity={self.entity})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Vrm) and other.entity == self.entity

    def __hash__(self) -> int:
        return hash(self.entity)

    def events(self, handlers: Optional[Mapping[str, Callable[[Any], Any]]] = None) -> VrmEventSource:
        """
        Open the event feed of this entity.

        Callbacks passed in `handlers` are registered before the feed is
        opened and so see every event; ones added later with on() miss
        whatever arrived before them.

        Raises:
            ValueError: Unknown event name in handlers
        """
        for event in handlers or {}:
            _check_event(event)

        url = host.create_url(f"vrm/{self.entity}/events")
        logger.debug(f"Opening event feed for VRM {self.entity}")
        return VrmEventSource(Subscription(url, name=f"vrm:{self.entity}", listeners=handlers))

    @staticmethod
    def stream_all_metadata(callback: Callable[[VrmMetadata], Any]) -> Subscription:
        """
        Stream metadata of every VRM, existing ones first, then new ones as they load.
        """
        def handle(payload: Any) -> Any:
            return callback(VrmMetadata.model_validate(payload))

        return Subscription(host.create_url("vrm/stream"), handle, name="vrm:stream")

    @staticmethod
    def stream_all(callback: Callable[["Vrm"], Any]) -> Subscription:
        """Like stream_all_metadata(), but delivers Vrm handles."""
        return Vrm.stream_all_metadata(lambda metadata: callback(Vrm(metadata.entity)))
