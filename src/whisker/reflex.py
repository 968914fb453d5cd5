"""Reflex — the server-side handler a client message invokes by name.

Subclass ``Reflex`` and define public methods; a client targets them as
``"counter#increment"``.  During a reflex the handler can:

- mutate its own public attributes (they become the template context in
  ``page`` render mode),
- write HTML to :attr:`Reflex.stream` or return a string (broadcast as-is in
  ``partial`` render mode),
- call :meth:`Reflex.halt` to stop all further processing.

Example::

    from whisker import Reflex, before_reflex, register

    @register
    class CounterReflex(Reflex):
        @before_reflex(only={"increment"})
        def load(self) -> None:
            self.count = int(self.element.dataset.get("count", 0))

        def increment(self, step: int = 1) -> str:
            self.count += step
            return f"<span>{self.count}</span>"

"""

from __future__ import annotations

import inspect
import io
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs, urlsplit

from whisker.element import Element

if TYPE_CHECKING:
    from whisker._types import RenderModeName, Selector

# Attributes set by the framework; excluded from template assigns.
_FRAMEWORK_FIELDS: frozenset[str] = frozenset({
    "connection",
    "url",
    "element",
    "morph_targets",
    "method_name",
    "render_mode",
    "params",
    "stream",
})


@dataclass(frozen=True, slots=True)
class ReflexRequest:
    """The page request a reflex acts on behalf of.

    Attributes:
        url: Full URL of the page the message came from.
        path: URL path component (e.g. ``/counter``).
        query: Parsed query string (first value per key).
        params: Form parameters sent with the message.
        session: Session object from the connection, if it carries one.

    """

    url: str
    path: str
    query: Mapping[str, str]
    params: Mapping[str, Any]
    session: Any = None

    @classmethod
    def from_url(cls, url: str, params: Mapping[str, Any], session: Any = None) -> ReflexRequest:
        parts = urlsplit(url)
        query = {k: v[0] for k, v in parse_qs(parts.query).items() if v}
        return cls(
            url=url,
            path=parts.path or "/",
            query=MappingProxyType(query),
            params=params,
            session=session,
        )


@dataclass(frozen=True, slots=True)
class _Callback:
    """A ``before_reflex`` / ``after_reflex`` registration."""

    name: str
    only: frozenset[str] | None
    exclude: frozenset[str]

    def applies_to(self, method_name: str) -> bool:
        if method_name in self.exclude:
            return False
        return self.only is None or method_name in self.only


def _callback_decorator(kind: str) -> Callable[..., Any]:
    def decorator(
        func: Callable[..., Any] | None = None,
        *,
        only: Iterable[str] | None = None,
        exclude: Iterable[str] = (),
    ) -> Any:
        def mark(f: Callable[..., Any]) -> Callable[..., Any]:
            f._whisker_callback = (  # type: ignore[attr-defined]
                kind,
                frozenset(only) if only is not None else None,
                frozenset(exclude),
            )
            return f

        if func is not None:
            return mark(func)
        return mark

    decorator.__name__ = f"{kind}_reflex"
    return decorator


before_reflex = _callback_decorator("before")
before_reflex.__doc__ = """Run the decorated method before the reflex method.

The callback may call ``self.halt()`` to skip the reflex method and any
``after_reflex`` callbacks.  Use ``only=`` / ``exclude=`` to limit which
reflex methods trigger it.
"""

after_reflex = _callback_decorator("after")
after_reflex.__doc__ = """Run the decorated method after the reflex method."""


def rescue_from(*exception_types: type[BaseException]) -> Callable[..., Any]:
    """Mark a method as the rescue hook for the given exception types.

    The hook receives the exception.  It runs when invoking or rendering
    the reflex fails; the client still receives an ``error`` message.
    """
    if not exception_types:
        msg = "rescue_from() requires at least one exception type"
        raise TypeError(msg)

    def mark(f: Callable[..., Any]) -> Callable[..., Any]:
        f._whisker_rescues = exception_types  # type: ignore[attr-defined]
        return f

    return mark


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Reflex:
    """Base class for every invocable reflex.

    Only ``Reflex`` subclasses can be targeted by clients.  Instances are
    created for a single message and discarded once it has been broadcast.

    Args:
        connection: Transport-level connection context (opaque).
        url: URL of the page that sent the message.
        element: The element that triggered the reflex.
        morph_targets: Selectors the client asked to morph.
        method_name: The reflex method being invoked.
        render_mode: ``"page"``, ``"partial"``, or ``"none"``.
        params: Form parameters sent with the message.

    """

    _before_callbacks: tuple[_Callback, ...] = ()
    _after_callbacks: tuple[_Callback, ...] = ()
    _rescue_handlers: tuple[tuple[tuple[type[BaseException], ...], str], ...] = ()
    _hook_names: frozenset[str] = frozenset()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        before = list(cls._before_callbacks)
        after = list(cls._after_callbacks)
        rescues: list[tuple[tuple[type[BaseException], ...], str]] = []
        hooks = set(cls._hook_names)

        for name, attr in vars(cls).items():
            marker = getattr(attr, "_whisker_callback", None)
            if marker is not None:
                kind, only, exclude = marker
                target = before if kind == "before" else after
                target.append(_Callback(name=name, only=only, exclude=exclude))
                hooks.add(name)
            exc_types = getattr(attr, "_whisker_rescues", None)
            if exc_types is not None:
                rescues.append((exc_types, name))
                hooks.add(name)

        cls._before_callbacks = tuple(before)
        cls._after_callbacks = tuple(after)
        # Latest declaration wins, and subclass hooks shadow inherited ones.
        cls._rescue_handlers = tuple(reversed(rescues)) + cls._rescue_handlers
        cls._hook_names = frozenset(hooks)

    def __init__(
        self,
        connection: Any,
        *,
        url: str = "",
        element: Element | None = None,
        morph_targets: tuple[Selector, ...] = ("body",),
        method_name: str | None = None,
        render_mode: RenderModeName = "page",
        params: Mapping[str, Any] | None = None,
    ) -> None:
        self.connection = connection
        self.url = url
        self.element = element if element is not None else Element()
        self.morph_targets = morph_targets
        self.method_name = method_name
        self.render_mode = render_mode
        self.params = params if params is not None else {}
        self.stream = io.StringIO()
        self._halted = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.method_name!r} url={self.url!r}>"

    # ----- Hooks for reflex authors -----

    @property
    def halted(self) -> bool:
        """True once :meth:`halt` has been called."""
        return self._halted

    def halt(self) -> None:
        """Stop processing: nothing is rendered, clients receive ``halted``."""
        self._halted = True

    def write(self, html: str) -> None:
        """Append HTML to the output stream used by ``partial`` renders."""
        self.stream.write(html)

    @property
    def request(self) -> ReflexRequest:
        """The page request this reflex acts on behalf of."""
        return ReflexRequest.from_url(
            self.url,
            self.params,
            session=getattr(self.connection, "session", None),
        )

    @property
    def session(self) -> Any:
        return getattr(self.connection, "session", None)

    def assigns(self) -> dict[str, Any]:
        """Public instance state, used as template context for page renders."""
        return {
            name: value
            for name, value in vars(self).items()
            if not name.startswith("_") and name not in _FRAMEWORK_FIELDS
        }

    # ----- Framework entry points -----

    @classmethod
    def hook_names(cls) -> frozenset[str]:
        """Names of callback and rescue methods (never client-invocable)."""
        return cls._hook_names

    async def process(self, method_name: str, *args: Any) -> io.StringIO:
        """Run callbacks around ``method_name(*args)`` and return the stream.

        A string returned by the reflex method is appended to the stream.
        Exceptions from user code propagate.

        """
        for callback in self._before_callbacks:
            if not callback.applies_to(method_name):
                continue
            await _maybe_await(getattr(self, callback.name)())
            if self._halted:
                return self.stream

        result = await _maybe_await(getattr(self, method_name)(*args))
        if isinstance(result, str):
            self.write(result)

        for callback in self._after_callbacks:
            if callback.applies_to(method_name):
                await _maybe_await(getattr(self, callback.name)())

        return self.stream

    async def rescue_with_handler(self, exc: BaseException) -> bool:
        """Run the first rescue hook matching ``exc``, awaiting async hooks.

        Returns:
            True if a hook handled the exception.

        """
        for exc_types, name in self._rescue_handlers:
            if isinstance(exc, exc_types):
                await _maybe_await(getattr(self, name)(exc))
                return True
        return False
