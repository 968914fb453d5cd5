"""Transport layer — topic subscriptions, SSE delivery, HTTP endpoints.

Connects browsers to the reflex channel: messages arrive over HTTP POST,
broadcasts leave over a per-topic SSE stream.
"""

from whisker.transport.broadcaster import Broadcaster, SSEConnection

__all__ = [
    "Broadcaster",
    "SSEConnection",
]
