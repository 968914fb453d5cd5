"""Tests for whisker.channel.dispatcher — morph batches and server messages."""

from __future__ import annotations

import pytest

from whisker.channel.dispatcher import (
    DISPATCH_BROADCAST,
    MORPH_BROADCAST,
    SERVER_MESSAGE_EVENT,
    Broadcast,
    BroadcastDispatcher,
    MorphOperation,
    ServerMessage,
    build_morph_batch,
    build_server_message,
)

from .conftest import RecordingPublisher

_META = {"target": "counter#increment", "url": "/counter"}


class TestBuildMorphBatch:
    """build_morph_batch — one operation per fragment, last flagged."""

    def test_only_final_is_last(self) -> None:
        ops = build_morph_batch([("#a", "1"), ("#b", "2"), ("#c", "3")], _META)
        assert [op.last for op in ops] == [False, False, True]

    def test_single_operation_is_last(self) -> None:
        (op,) = build_morph_batch([("#a", "1")], _META)
        assert op.last is True
        assert op.children_only is True

    def test_duplicate_selectors_keep_one_last(self) -> None:
        ops = build_morph_batch([("#a", "1"), ("#a", "2")], _META)
        assert sum(op.last for op in ops) == 1
        assert ops[-1].html == "2"

    def test_metadata_merged(self) -> None:
        (op,) = build_morph_batch([("#a", "1")], _META, permanent_attribute_name="data-keep")
        assert op.metadata == {**_META, "last": True}
        assert op.permanent_attribute_name == "data-keep"

    def test_empty(self) -> None:
        assert build_morph_batch([], _META) == ()


class TestWireFormat:
    """to_wire / to_payload shapes."""

    def test_morph_operation(self) -> None:
        op = MorphOperation(selector="#a", html="<b>1</b>", metadata={"last": True})
        assert op.to_wire() == {
            "selector": "#a",
            "html": "<b>1</b>",
            "childrenOnly": True,
            "permanentAttributeName": None,
            "metadata": {"last": True},
        }

    def test_server_message(self) -> None:
        payload = build_server_message(ServerMessage("error", "boom"), _META)
        assert payload["name"] == SERVER_MESSAGE_EVENT
        assert payload["detail"]["serverMessage"] == {"subject": "error", "body": "boom"}
        assert payload["detail"]["target"] == "counter#increment"

    def test_broadcast_payload(self) -> None:
        broadcast = Broadcast(kind=MORPH_BROADCAST, operations=({"x": 1},))
        assert broadcast.to_payload() == {"type": "morph", "operations": [{"x": 1}]}


class TestBroadcastDispatcher:
    """BroadcastDispatcher — exactly one publish per call."""

    @pytest.mark.asyncio
    async def test_morphs_published_as_one_batch(self) -> None:
        publisher = RecordingPublisher()
        dispatcher = BroadcastDispatcher(publisher, "t")
        ops = await dispatcher.morphs([("#a", "1"), ("#b", "2")], _META)

        broadcast = publisher.only()
        assert publisher.published[0][0] == "t"
        assert broadcast.kind == MORPH_BROADCAST
        assert [o["selector"] for o in broadcast.operations] == ["#a", "#b"]
        assert broadcast.operations[-1]["metadata"]["last"] is True
        assert len(ops) == 2

    @pytest.mark.asyncio
    async def test_message_published_once(self) -> None:
        publisher = RecordingPublisher()
        dispatcher = BroadcastDispatcher(publisher, "t")
        await dispatcher.message(ServerMessage("halted"), _META)

        broadcast = publisher.only()
        assert broadcast.kind == DISPATCH_BROADCAST
        (op,) = broadcast.operations
        assert op["detail"]["serverMessage"] == {"subject": "halted", "body": None}

    def test_topic(self) -> None:
        assert BroadcastDispatcher(RecordingPublisher(), "room").topic == "room"
