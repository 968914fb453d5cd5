"""Broadcast dispatcher — builds morph batches and server messages.

Every reflex message ends in exactly one broadcast to its topic:

- a **morph batch**: one ``MorphOperation`` per target, the final one
  flagged ``last=True`` so clients know the batch is complete, or
- a **server message**: a single ``server-message`` dispatch event whose
  subject is ``error``, ``halted``, or ``none``.

The whole batch is handed to the publisher in one call, so subscribers
never observe a partially delivered batch.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol

if TYPE_CHECKING:
    from whisker._types import Selector, ServerMessageSubject, Topic

SERVER_MESSAGE_EVENT = "server-message"

MORPH_BROADCAST = "morph"
DISPATCH_BROADCAST = "dispatchEvent"


@dataclass(frozen=True, slots=True)
class MorphOperation:
    """Replace the inner content of the element matching ``selector``.

    Attributes:
        selector: CSS selector of the element to morph.
        html: New inner HTML.
        children_only: Morph children only, keeping the element itself.
        permanent_attribute_name: Elements carrying this attribute are
            left untouched by the client.
        metadata: Original message metadata merged with ``{"last": bool}``.

    """

    selector: Selector
    html: str
    children_only: bool = True
    permanent_attribute_name: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def last(self) -> bool:
        return bool(self.metadata.get("last", False))

    def to_wire(self) -> dict[str, Any]:
        return {
            "selector": self.selector,
            "html": self.html,
            "childrenOnly": self.children_only,
            "permanentAttributeName": self.permanent_attribute_name,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True, slots=True)
class ServerMessage:
    """A message-only outcome (no DOM changes)."""

    subject: ServerMessageSubject
    body: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return {"subject": self.subject, "body": self.body}


@dataclass(frozen=True, slots=True)
class Broadcast:
    """One atomic unit published to a topic.

    Attributes:
        kind: ``"morph"`` for morph batches, ``"dispatchEvent"`` for messages.
        operations: Wire-ready operation payloads, in delivery order.

    """

    kind: Literal["morph", "dispatchEvent"]
    operations: tuple[dict[str, Any], ...]

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.kind, "operations": list(self.operations)}


class Publisher(Protocol):
    """Opaque "publish to topic" primitive."""

    async def publish(self, topic: Topic, broadcast: Broadcast) -> int: ...


def build_morph_batch(
    fragments: Sequence[tuple[Selector, str]],
    metadata: Mapping[str, Any],
    *,
    permanent_attribute_name: str | None = None,
) -> tuple[MorphOperation, ...]:
    """One operation per ``(selector, html)`` pair; only the final is ``last``."""
    final = len(fragments) - 1
    return tuple(
        MorphOperation(
            selector=selector,
            html=html,
            children_only=True,
            permanent_attribute_name=permanent_attribute_name,
            metadata={**metadata, "last": index == final},
        )
        for index, (selector, html) in enumerate(fragments)
    )


def build_server_message(message: ServerMessage, metadata: Mapping[str, Any]) -> dict[str, Any]:
    """Dispatch-event payload carrying ``message`` and the original metadata."""
    return {
        "name": SERVER_MESSAGE_EVENT,
        "detail": {**metadata, "serverMessage": message.to_wire()},
    }


class BroadcastDispatcher:
    """Publishes one message's outcome to its topic.

    Args:
        publisher: Transport primitive used to reach subscribers.
        topic: Topic every broadcast from this dispatcher goes to.

    """

    __slots__ = ("_publisher", "_topic")

    def __init__(self, publisher: Publisher, topic: Topic) -> None:
        self._publisher = publisher
        self._topic = topic

    @property
    def topic(self) -> Topic:
        return self._topic

    async def morphs(
        self,
        fragments: Sequence[tuple[Selector, str]],
        metadata: Mapping[str, Any],
        *,
        permanent_attribute_name: str | None = None,
    ) -> tuple[MorphOperation, ...]:
        """Publish a morph batch.  Returns the operations sent."""
        operations = build_morph_batch(
            fragments, metadata, permanent_attribute_name=permanent_attribute_name,
        )
        broadcast = Broadcast(
            kind=MORPH_BROADCAST,
            operations=tuple(op.to_wire() for op in operations),
        )
        await self._publisher.publish(self._topic, broadcast)
        return operations

    async def message(self, message: ServerMessage, metadata: Mapping[str, Any]) -> None:
        """Publish a single server-message dispatch event."""
        broadcast = Broadcast(
            kind=DISPATCH_BROADCAST,
            operations=(build_server_message(message, metadata),),
        )
        await self._publisher.publish(self._topic, broadcast)
