"""HTTP endpoints — the Chirp routes that carry reflex traffic.

=========================  ==============================================
``POST /__whisker/reflex``  run a reflex message for ``?topic=``
``GET  /__whisker/events``  SSE stream of broadcasts for ``?topic=``
``GET  /__whisker/stats``   reflex latency stats and event log summary
=========================  ==============================================

Topics arrive from the client and are qualified with the configured
channel name before use.
"""

from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING, Any

from whisker.channel.dispatcher import MORPH_BROADCAST

if TYPE_CHECKING:
    from chirp import App, Request

    from whisker.channel.dispatcher import Broadcast
    from whisker.channel.orchestrator import ReflexChannel
    from whisker.config import WhiskerConfig
    from whisker.observability.collector import StackCollector
    from whisker.transport.broadcaster import Broadcaster

REFLEX_ENDPOINT = "/__whisker/reflex"
EVENTS_ENDPOINT = "/__whisker/events"
STATS_ENDPOINT = "/__whisker/stats"

MORPH_EVENT = "whisker:morph"
DISPATCH_EVENT = "whisker:dispatch"


def sse_event_name(broadcast: Broadcast) -> str:
    """SSE event name the browser client listens for."""
    return MORPH_EVENT if broadcast.kind == MORPH_BROADCAST else DISPATCH_EVENT


def _json_response(payload: Any, status: int) -> Any:
    from chirp.http.response import Response

    return Response(
        body=json.dumps(payload),
        status=status,
        content_type="application/json",
    )


def register_reflex_endpoint(app: App, channel: ReflexChannel, config: WhiskerConfig) -> None:
    """Register ``POST /__whisker/reflex``.

    The request body is the inbound reflex message.  The outcome is
    broadcast over SSE; the HTTP response only acknowledges receipt.

    """

    async def reflex_handler(request: Request) -> Any:
        try:
            data = json.loads(await request.body())
        except (ValueError, UnicodeDecodeError):
            return _json_response({"error": "reflex message must be JSON"}, 400)

        topic = config.topic_for(request.query.get("topic", "/"))
        outcome = await channel.receive(data, topic, connection=request)
        return _json_response({"topic": topic, "outcome": outcome}, 202)

    reflex_handler.__name__ = "whisker_reflex"
    reflex_handler.__qualname__ = "whisker_reflex"

    app.route(REFLEX_ENDPOINT, methods=["POST"], name="whisker:reflex")(reflex_handler)


def register_events_endpoint(app: App, broadcaster: Broadcaster, config: WhiskerConfig) -> None:
    """Register ``GET /__whisker/events``, one SSE stream per connection."""
    from chirp import EventStream, SSEEvent

    from whisker.transport.broadcaster import SSEConnection

    async def events_handler(request: Request) -> Any:
        topic = config.topic_for(request.query.get("topic", "/"))
        conn = SSEConnection(client_id=str(uuid.uuid4()), topic=topic)
        broadcaster.subscribe(conn)

        async def generate():  # type: ignore[return]
            try:
                async for broadcast in broadcaster.client_generator(conn):
                    yield SSEEvent(
                        data=json.dumps(broadcast.to_payload()),
                        event=sse_event_name(broadcast),
                    )
            finally:
                broadcaster.unsubscribe(conn)

        return EventStream(generate())

    events_handler.__name__ = "whisker_events"
    events_handler.__qualname__ = "whisker_events"

    app.route(EVENTS_ENDPOINT, name="whisker:events")(events_handler)


def register_stats_endpoint(app: App, collector: StackCollector) -> None:
    """Register ``GET /__whisker/stats``."""

    async def stats_handler(request: Request) -> Any:
        from whisker.observability.profiler import compute_aggregate_stats

        return _json_response(
            {
                "reflexes": compute_aggregate_stats(collector.log),
                "event_log": collector.log.stats(),
            },
            200,
        )

    stats_handler.__name__ = "whisker_stats"
    stats_handler.__qualname__ = "whisker_stats"

    app.route(STATS_ENDPOINT, name="whisker:stats")(stats_handler)
