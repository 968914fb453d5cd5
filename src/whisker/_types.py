"""Shared type definitions for whisker."""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Literal

# How a reflex's effect is sent back to the browser
RenderModeName = Literal["page", "partial", "none"]

# Subject of a message-only broadcast
ServerMessageSubject = Literal["error", "halted", "none"]

# CSS selector naming a morph target
Selector = str

# Logical broadcast channel that connections subscribe to
Topic = str

# Raw inbound JSON payload as received from the transport
WirePayload = Mapping[str, Any]

# Templating collaborator: reflex -> full page HTML
PageRenderer = Callable[[Any], "str | Awaitable[str]"]

# Session collaborator: (request, rendered response body) -> commit result
SessionCommitter = Callable[[Any, str], Any]
