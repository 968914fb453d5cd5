"""Tests for whisker.transport.client_script — script injection middleware."""

from __future__ import annotations

from dataclasses import dataclass
from unittest.mock import AsyncMock

import pytest

from whisker.transport.client_script import (
    CLIENT_SCRIPT,
    client_script_middleware,
    inject_client_script,
)


# ---------------------------------------------------------------------------
# Minimal response mock (frozen dataclass like Chirp's Response)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _MockResponse:
    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"


@dataclass(frozen=True, slots=True)
class _MockSSEResponse:
    event_stream: object = None
    content_type: str = "text/event-stream"


class TestInjectClientScript:
    """inject_client_script — placement rules."""

    def test_before_body_close(self) -> None:
        out = inject_client_script("<html><body><p>x</p></body></html>")
        assert out.index(CLIENT_SCRIPT) < out.index("</body>")

    def test_before_html_close_without_body(self) -> None:
        out = inject_client_script("<html><p>x</p></html>")
        assert out.endswith(CLIENT_SCRIPT + "</html>")

    def test_appended_to_fragment(self) -> None:
        assert inject_client_script("<p>x</p>") == "<p>x</p>" + CLIENT_SCRIPT

    def test_not_injected_twice(self) -> None:
        once = inject_client_script("<body></body>")
        assert inject_client_script(once) == once

    def test_script_posts_to_reflex_endpoint(self) -> None:
        assert "/__whisker/reflex" in CLIENT_SCRIPT
        assert "/__whisker/events" in CLIENT_SCRIPT
        assert "whisker:morph" in CLIENT_SCRIPT


class TestClientScriptMiddleware:
    """client_script_middleware — only HTML responses are touched."""

    @pytest.mark.asyncio
    async def test_html_response_injected(self) -> None:
        response = _MockResponse(body="<html><body>hi</body></html>")
        result = await client_script_middleware(object(), AsyncMock(return_value=response))
        assert "data-whisker-client" in result.body

    @pytest.mark.asyncio
    async def test_bytes_body_decoded(self) -> None:
        response = _MockResponse(body=b"<body>hi</body>")
        result = await client_script_middleware(object(), AsyncMock(return_value=response))
        assert "data-whisker-client" in result.body

    @pytest.mark.asyncio
    async def test_json_passes_through(self) -> None:
        response = _MockResponse(body="{}", content_type="application/json")
        result = await client_script_middleware(object(), AsyncMock(return_value=response))
        assert result is response

    @pytest.mark.asyncio
    async def test_sse_passes_through(self) -> None:
        response = _MockSSEResponse()
        result = await client_script_middleware(object(), AsyncMock(return_value=response))
        assert result is response
