"""Reflex channel — message in, exactly one broadcast out.

Resolves a client's ``Reflex#method`` target, invokes it with normalized
arguments, renders according to the message's render mode, and broadcasts
a morph batch or a server message to the topic.
"""

from whisker.channel.arguments import IndifferentDict, normalize_arguments
from whisker.channel.dispatcher import (
    Broadcast,
    BroadcastDispatcher,
    MorphOperation,
    Publisher,
    ServerMessage,
)
from whisker.channel.fragments import Fragment, extract_fragments
from whisker.channel.invoker import Arity, invoke_reflex, method_arity
from whisker.channel.message import DEFAULT_MORPH_TARGETS, InboundMessage
from whisker.channel.orchestrator import ReflexChannel
from whisker.channel.render_mode import RenderController, RenderOutcome
from whisker.channel.resolver import ResolvedTarget, classify, resolve_target

__all__ = [
    "DEFAULT_MORPH_TARGETS",
    "Arity",
    "Broadcast",
    "BroadcastDispatcher",
    "Fragment",
    "InboundMessage",
    "IndifferentDict",
    "MorphOperation",
    "Publisher",
    "ReflexChannel",
    "RenderController",
    "RenderOutcome",
    "ResolvedTarget",
    "ServerMessage",
    "classify",
    "extract_fragments",
    "invoke_reflex",
    "method_arity",
    "normalize_arguments",
    "resolve_target",
]
