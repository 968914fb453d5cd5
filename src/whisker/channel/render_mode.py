"""Render mode controller — decides what a reflex sends back.

=========  ==============================================================
halted     ``halted`` server message, whatever the render mode
page       full page render, morphs for the targets present in the page
partial    the reflex's stream output, morphed into every target as given
none       ``none`` server message, nothing rendered
=========  ==============================================================

A page render that yields no HTML, or none of whose targets exist in the
page, ends in a ``none`` message so every reflex still produces exactly
one broadcast.
"""

from __future__ import annotations

import inspect
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from whisker.channel.dispatcher import ServerMessage
from whisker.channel.fragments import extract_fragments
from whisker.channel.message import DEFAULT_MORPH_TARGETS

if TYPE_CHECKING:
    import io

    from whisker._types import PageRenderer, Selector
    from whisker.channel.dispatcher import BroadcastDispatcher, MorphOperation
    from whisker.channel.message import InboundMessage
    from whisker.observability.profiler import PipelineProfiler
    from whisker.reflex import Reflex


@dataclass(frozen=True, slots=True)
class RenderOutcome:
    """What a message ended in.

    Attributes:
        outcome: ``"morph"`` for a morph batch, otherwise the server
            message subject.
        html: Rendered (page) or streamed (partial) HTML, if any.
        operations: Morph operations broadcast.

    """

    outcome: Literal["morph", "halted", "none"]
    html: str | None = None
    operations: tuple[MorphOperation, ...] = ()

    @property
    def halted(self) -> bool:
        return self.outcome == "halted"


class RenderController:
    """Runs the render branch selected by the message's render mode.

    Args:
        renderer: Templating collaborator used in ``page`` mode.
        default_morph_targets: Targets a page render uses when the message
            names none; any other targets trigger the deprecation notice.

    """

    __slots__ = ("_default_morph_targets", "_renderer")

    def __init__(
        self,
        renderer: PageRenderer | None,
        *,
        default_morph_targets: tuple[Selector, ...] = DEFAULT_MORPH_TARGETS,
    ) -> None:
        self._renderer = renderer
        self._default_morph_targets = tuple(default_morph_targets)

    async def run(
        self,
        reflex: Reflex,
        message: InboundMessage,
        stream: io.StringIO,
        dispatcher: BroadcastDispatcher,
        profiler: PipelineProfiler | None = None,
    ) -> RenderOutcome:
        """Render and broadcast the outcome of an invoked reflex."""
        if reflex.halted:
            await dispatcher.message(ServerMessage(subject="halted"), message.metadata)
            return RenderOutcome(outcome="halted")

        if message.render_mode == "page":
            return await self._page(reflex, message, dispatcher, profiler)
        if message.render_mode == "partial":
            return await self._partial(message, stream.getvalue(), dispatcher, profiler)
        return await self._none(message, dispatcher)

    async def _page(
        self,
        reflex: Reflex,
        message: InboundMessage,
        dispatcher: BroadcastDispatcher,
        profiler: PipelineProfiler | None,
    ) -> RenderOutcome:
        if message.morph_targets != self._default_morph_targets:
            print(
                "  Deprecation: morph target selectors will be ignored for "
                "full-page renders in a future release "
                f"({message.target}: {', '.join(message.morph_targets)})",
                file=sys.stderr,
            )

        if profiler is not None:
            profiler.start("render")
        html = await self._render_page(reflex)
        if profiler is not None:
            profiler.stop("render")

        if profiler is not None:
            profiler.start("extract")
        fragments = extract_fragments(message.morph_targets, html)
        if profiler is not None:
            profiler.stop("extract")

        if not fragments:
            await dispatcher.message(ServerMessage(subject="none"), message.metadata)
            return RenderOutcome(outcome="none", html=html)

        if profiler is not None:
            profiler.start("broadcast")
        operations = await dispatcher.morphs(
            [(f.selector, f.html) for f in fragments],
            message.metadata,
            permanent_attribute_name=message.permanent_attribute_name,
        )
        if profiler is not None:
            profiler.stop("broadcast")
        return RenderOutcome(outcome="morph", html=html, operations=operations)

    async def _partial(
        self,
        message: InboundMessage,
        html: str,
        dispatcher: BroadcastDispatcher,
        profiler: PipelineProfiler | None,
    ) -> RenderOutcome:
        if profiler is not None:
            profiler.start("broadcast")
        operations = await dispatcher.morphs(
            [(selector, html) for selector in message.morph_targets],
            message.metadata,
            permanent_attribute_name=message.permanent_attribute_name,
        )
        if profiler is not None:
            profiler.stop("broadcast")
        return RenderOutcome(outcome="morph", html=html, operations=operations)

    async def _none(self, message: InboundMessage, dispatcher: BroadcastDispatcher) -> RenderOutcome:
        await dispatcher.message(ServerMessage(subject="none"), message.metadata)
        return RenderOutcome(outcome="none")

    async def _render_page(self, reflex: Reflex) -> str:
        if self._renderer is None:
            msg = "page render mode requires a page renderer"
            raise RuntimeError(msg)
        html: Any = self._renderer(reflex)
        if inspect.isawaitable(html):
            html = await html
        return html or ""
