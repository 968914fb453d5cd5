"""Tests for whisker.channel.render_mode — the render branches."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest

from whisker.channel.dispatcher import DISPATCH_BROADCAST, MORPH_BROADCAST, BroadcastDispatcher
from whisker.channel.message import InboundMessage
from whisker.channel.render_mode import RenderController
from whisker.observability import EventLog, PipelineProfiler
from whisker.reflex import Reflex

from .conftest import PageRenderer, RecordingPublisher

_PAGE = "<html><body><div id='a'>A</div><div id='b'>B</div></body></html>"


def _message(**payload: object) -> InboundMessage:
    return InboundMessage.from_wire({"target": "x#y", "url": "/", **payload})


def _subject(publisher: RecordingPublisher) -> str:
    broadcast = publisher.only()
    assert broadcast.kind == DISPATCH_BROADCAST
    return broadcast.operations[0]["detail"]["serverMessage"]["subject"]


class TestRenderController:
    """RenderController.run — one broadcast per branch."""

    @pytest.mark.asyncio
    async def test_halted_wins_over_render_mode(self) -> None:
        publisher = RecordingPublisher()
        renderer = PageRenderer(_PAGE)
        reflex = Reflex(None)
        reflex.halt()

        outcome = await RenderController(renderer).run(
            reflex, _message(), io.StringIO("ignored"), BroadcastDispatcher(publisher, "t"),
        )
        assert outcome.halted
        assert _subject(publisher) == "halted"
        assert renderer.calls == []

    @pytest.mark.asyncio
    async def test_page_morphs_matching_targets(self) -> None:
        publisher = RecordingPublisher()
        renderer = PageRenderer(_PAGE)
        reflex = Reflex(None)

        outcome = await RenderController(renderer).run(
            reflex,
            _message(morphTarget=["#b", "#missing", "#a"]),
            io.StringIO(),
            BroadcastDispatcher(publisher, "t"),
        )
        assert outcome.outcome == "morph"
        assert renderer.calls == [reflex]
        broadcast = publisher.only()
        assert broadcast.kind == MORPH_BROADCAST
        assert [(o["selector"], o["html"]) for o in broadcast.operations] == [("#b", "B"), ("#a", "A")]
        assert [o["metadata"]["last"] for o in broadcast.operations] == [False, True]

    @pytest.mark.asyncio
    async def test_page_default_target_is_body(self) -> None:
        publisher = RecordingPublisher()
        await RenderController(PageRenderer(_PAGE)).run(
            Reflex(None), _message(), io.StringIO(), BroadcastDispatcher(publisher, "t"),
        )
        (op,) = publisher.only().operations
        assert op["selector"] == "body"

    @pytest.mark.asyncio
    async def test_page_custom_targets_print_deprecation(
        self, capsys: pytest.CaptureFixture[str],
    ) -> None:
        await RenderController(PageRenderer(_PAGE)).run(
            Reflex(None),
            _message(morphTarget=["#a"]),
            io.StringIO(),
            BroadcastDispatcher(RecordingPublisher(), "t"),
        )
        assert "Deprecation" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_configured_default_targets_no_deprecation(
        self, capsys: pytest.CaptureFixture[str],
    ) -> None:
        publisher = RecordingPublisher()
        message = InboundMessage.from_wire(
            {"target": "x#y", "url": "/"}, default_morph_targets=("#a",),
        )
        await RenderController(PageRenderer(_PAGE), default_morph_targets=("#a",)).run(
            Reflex(None), message, io.StringIO(), BroadcastDispatcher(publisher, "t"),
        )
        assert "Deprecation" not in capsys.readouterr().err
        (op,) = publisher.only().operations
        assert op["selector"] == "#a"

    @pytest.mark.asyncio
    async def test_page_without_matches_sends_none(self) -> None:
        publisher = RecordingPublisher()
        outcome = await RenderController(PageRenderer(_PAGE)).run(
            Reflex(None),
            _message(morphTarget=["#missing"]),
            io.StringIO(),
            BroadcastDispatcher(publisher, "t"),
        )
        assert outcome.outcome == "none"
        assert _subject(publisher) == "none"

    @pytest.mark.asyncio
    async def test_page_blank_html_sends_none(self) -> None:
        publisher = RecordingPublisher()
        outcome = await RenderController(PageRenderer("")).run(
            Reflex(None), _message(), io.StringIO(), BroadcastDispatcher(publisher, "t"),
        )
        assert outcome.outcome == "none"

    @pytest.mark.asyncio
    async def test_page_comment_only_html_sends_none(self) -> None:
        publisher = RecordingPublisher()
        outcome = await RenderController(PageRenderer("<!-- empty -->")).run(
            Reflex(None), _message(), io.StringIO(), BroadcastDispatcher(publisher, "t"),
        )
        assert outcome.outcome == "none"
        assert _subject(publisher) == "none"

    @pytest.mark.asyncio
    async def test_async_renderer_awaited(self) -> None:
        async def render(reflex: Reflex) -> str:
            return _PAGE

        publisher = RecordingPublisher()
        outcome = await RenderController(render).run(
            Reflex(None), _message(), io.StringIO(), BroadcastDispatcher(publisher, "t"),
        )
        assert outcome.outcome == "morph"

    @pytest.mark.asyncio
    async def test_page_without_renderer_raises(self) -> None:
        with pytest.raises(RuntimeError, match="page renderer"):
            await RenderController(None).run(
                Reflex(None), _message(), io.StringIO(),
                BroadcastDispatcher(RecordingPublisher(), "t"),
            )

    @pytest.mark.asyncio
    async def test_partial_sends_stream_to_every_target(self) -> None:
        publisher = RecordingPublisher()
        renderer = PageRenderer(_PAGE)
        outcome = await RenderController(renderer).run(
            Reflex(None),
            _message(renderMode="partial", morphTarget=["#x", "#y"]),
            io.StringIO("<i>hi</i>"),
            BroadcastDispatcher(publisher, "t"),
        )
        assert outcome.html == "<i>hi</i>"
        assert renderer.calls == []
        ops = publisher.only().operations
        assert [(o["selector"], o["html"]) for o in ops] == [("#x", "<i>hi</i>"), ("#y", "<i>hi</i>")]

    @pytest.mark.asyncio
    async def test_none_mode_never_renders(self) -> None:
        publisher = RecordingPublisher()
        renderer = PageRenderer(_PAGE)
        outcome = await RenderController(renderer).run(
            Reflex(None), _message(renderMode="none"), io.StringIO(),
            BroadcastDispatcher(publisher, "t"),
        )
        assert outcome.outcome == "none"
        assert renderer.calls == []
        assert _subject(publisher) == "none"

    @pytest.mark.asyncio
    async def test_profiler_stages_recorded(self) -> None:
        profiler = MagicMock(spec=PipelineProfiler(EventLog()))
        await RenderController(PageRenderer(_PAGE)).run(
            Reflex(None), _message(), io.StringIO(),
            BroadcastDispatcher(RecordingPublisher(), "t"), profiler,
        )
        started = [c.args[0] for c in profiler.start.call_args_list]
        assert started == ["render", "extract", "broadcast"]
