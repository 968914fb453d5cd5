"""Shared test fixtures for whisker."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from whisker.channel.dispatcher import Broadcast
from whisker.channel.orchestrator import ReflexChannel
from whisker.observability import EventLog, StackCollector
from whisker.reflex import Reflex, after_reflex, before_reflex, rescue_from
from whisker.registry import ReflexRegistry


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class RecordingPublisher:
    """Publisher fake that keeps every ``(topic, broadcast)`` it is given."""

    def __init__(self, *, fail: Exception | None = None) -> None:
        self.published: list[tuple[str, Broadcast]] = []
        self._fail = fail

    async def publish(self, topic: str, broadcast: Broadcast) -> int:
        if self._fail is not None:
            raise self._fail
        self.published.append((topic, broadcast))
        return 1

    @property
    def broadcasts(self) -> list[Broadcast]:
        return [b for _, b in self.published]

    def only(self) -> Broadcast:
        """The single broadcast published; fails if there is not exactly one."""
        assert len(self.published) == 1, self.published
        return self.published[0][1]


class PageRenderer:
    """Renderer fake returning a fixed page and recording the reflexes it saw."""

    def __init__(self, html: str = "") -> None:
        self.html = html
        self.calls: list[Reflex] = []

    def __call__(self, reflex: Reflex) -> str:
        self.calls.append(reflex)
        return self.html


# ---------------------------------------------------------------------------
# Sample reflexes
# ---------------------------------------------------------------------------


class CounterReflex(Reflex):
    """Counter driven by the element's ``data-count`` attribute."""

    def increment(self, step=1):
        self.count = int(self.element.dataset.get("count", 0)) + step
        self.write(f"<span>{self.count}</span>")

    def set_to(self, value):
        self.count = value
        return f"<span>{value}</span>"

    async def reset(self):
        self.count = 0
        return "<span>0</span>"


class BrokenReflex(Reflex):
    """Reflex whose methods fail in user code."""

    def explode(self):
        return 1 / 0


class GuardedReflex(Reflex):
    """Halts before ``secret`` unless the element is marked as allowed."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.log: list[str] = []

    @before_reflex(only={"secret"})
    def check(self) -> None:
        self.log.append("check")
        if self.element.dataset.get("allowed") != "yes":
            self.halt()

    @after_reflex
    def audit(self) -> None:
        self.log.append("audit")

    def secret(self):
        self.log.append("secret")
        return "<p>secret</p>"


class RescuingReflex(Reflex):
    """Records exceptions handed to its rescue hook."""

    rescued: list[BaseException] = []

    @rescue_from(ValueError)
    def on_value_error(self, exc: BaseException) -> None:
        type(self).rescued.append(exc)

    def fail(self, message):
        raise ValueError(message)


class NotAReflex:
    """Registered, but lacks the reflex capability."""

    def go(self):
        return "never"


@pytest.fixture
def registry() -> ReflexRegistry:
    """Fresh registry holding the sample reflexes (frozen)."""
    reg = ReflexRegistry()
    for cls in (CounterReflex, BrokenReflex, GuardedReflex, RescuingReflex):
        reg.register(cls)
    reg.register(NotAReflex, name="PlainReflex")
    reg.freeze()
    RescuingReflex.rescued = []
    return reg


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def collector() -> StackCollector:
    return StackCollector(EventLog())


@pytest.fixture
def page_renderer() -> PageRenderer:
    return PageRenderer(
        "<html><body><div id='count'><span>5</span></div>"
        "<ul class='items'><li>a</li></ul></body></html>"
    )


@pytest.fixture
def channel(
    registry: ReflexRegistry,
    publisher: RecordingPublisher,
    collector: StackCollector,
    page_renderer: PageRenderer,
) -> ReflexChannel:
    return ReflexChannel(
        publisher,
        renderer=page_renderer,
        registry=registry,
        collector=collector,
    )


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    """Minimal application root with reflexes/ and templates/ dirs."""
    reflexes = tmp_path / "reflexes"
    reflexes.mkdir()
    (reflexes / "counter.py").write_text(
        "from whisker import Reflex\n\n\n"
        "class CounterReflex(Reflex):\n"
        "    def increment(self):\n"
        "        self.count = 1\n"
    )
    admin = reflexes / "admin"
    admin.mkdir()
    (admin / "users.py").write_text(
        "from whisker import Reflex\n\n\n"
        "class UsersReflex(Reflex):\n"
        "    def ban(self, user_id):\n"
        "        self.banned = user_id\n"
    )
    (reflexes / "_helpers.py").write_text("class Hidden:\n    pass\n")

    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "index.html").write_text(
        "<!DOCTYPE html>\n<html>\n<body><div id='count'>{{ count }}</div></body>\n</html>\n"
    )
    return tmp_path
