"""Reflex channel — receives a message and broadcasts exactly one outcome.

Flow for one inbound message::

    RECEIVED -> RESOLVING -> INVOKING -> (HALTED | RENDERING) -> BROADCASTING -> DONE
    RESOLVING/INVOKING failure -> ERROR_REPORTED -> DONE
    RENDERING failure          -> ERROR_REPORTED -> DONE

The channel is the error boundary of the reflex pipeline: every failure
(malformed message, unknown reflex, wrong arity, exceptions in user code,
template errors) is reported to the reflex's rescue hook, echoed to
stderr, recorded, and broadcast to the topic as a single ``error`` server
message.  Nothing propagates to the transport, so the connection stays
usable for the next message.
"""

from __future__ import annotations

import sys
import time
from typing import TYPE_CHECKING, Any

from whisker._errors import (
    HandlerExecutionError,
    MessageError,
    RenderError,
    WhiskerError,
)
from whisker.channel.arguments import normalize_arguments
from whisker.channel.dispatcher import BroadcastDispatcher, ServerMessage
from whisker.channel.failures import exception_location, root_cause, summarize_exception
from whisker.channel.invoker import invoke_reflex
from whisker.channel.message import DEFAULT_MORPH_TARGETS, InboundMessage
from whisker.channel.render_mode import RenderController
from whisker.channel.resolver import resolve_target
from whisker.element import Element
from whisker.registry import default_registry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from whisker._types import PageRenderer, Selector, Topic
    from whisker.channel.dispatcher import Publisher
    from whisker.channel.render_mode import RenderOutcome
    from whisker.observability.collector import StackCollector
    from whisker.observability.profiler import PipelineProfiler
    from whisker.reflex import Reflex
    from whisker.registry import ReflexRegistry


class ReflexChannel:
    """Processes reflex messages for any number of connections.

    A channel holds no per-message state; concurrent ``receive`` calls are
    independent.

    Args:
        publisher: Transport primitive used to broadcast to topics.
        renderer: Templating collaborator for ``page`` render mode.
        registry: Reflex registry to resolve targets against.
        collector: Optional observability collector.
        default_morph_targets: Targets used when a message names none.
        profile: Print a timing summary for every message.

    """

    __slots__ = (
        "_collector",
        "_controller",
        "_default_morph_targets",
        "_profile",
        "_publisher",
        "_registry",
    )

    def __init__(
        self,
        publisher: Publisher,
        *,
        renderer: PageRenderer | None = None,
        registry: ReflexRegistry | None = None,
        collector: StackCollector | None = None,
        default_morph_targets: tuple[Selector, ...] = DEFAULT_MORPH_TARGETS,
        profile: bool = False,
    ) -> None:
        self._publisher = publisher
        self._controller = RenderController(renderer, default_morph_targets=default_morph_targets)
        self._registry = registry if registry is not None else default_registry
        self._collector = collector
        self._default_morph_targets = tuple(default_morph_targets)
        self._profile = profile

    async def receive(self, data: Mapping[str, Any], topic: Topic, connection: Any = None) -> str:
        """Process one inbound wire payload and broadcast its outcome to ``topic``.

        Args:
            data: Inbound JSON payload.
            topic: Topic of the sending connection (computed by the transport).
            connection: Connection context handed to the reflex.

        Returns:
            The terminal outcome: ``"morph"``, ``"error"``, ``"halted"``,
            or ``"none"``.

        """
        t0 = time.perf_counter()
        dispatcher = BroadcastDispatcher(self._publisher, topic)
        profiler = self._new_profiler()
        reflex: Reflex | None = None

        try:
            message = InboundMessage.from_wire(
                data, default_morph_targets=self._default_morph_targets,
            )
        except MessageError as exc:
            message = InboundMessage.fallback(data)
            if profiler is not None:
                profiler.begin(message.target)
            return await self._report(exc, "invoke", message, dispatcher, None, t0, profiler)

        if profiler is not None:
            profiler.begin(message.target)

        # RESOLVING -> INVOKING
        try:
            if profiler is not None:
                profiler.start("resolve")
            resolved = resolve_target(message.target, self._registry)
            reflex = resolved.reflex_class(
                connection,
                url=message.url,
                element=Element.from_wire(message.metadata),
                morph_targets=message.morph_targets,
                method_name=resolved.method_name,
                render_mode=message.render_mode,
                params=message.params,
            )
            arguments = normalize_arguments(list(message.arguments))
            if profiler is not None:
                profiler.stop("resolve")
                profiler.start("invoke")
            stream = await self._invoke(reflex, resolved.method_name, arguments)
            if profiler is not None:
                profiler.stop("invoke")
        except Exception as exc:
            return await self._report(exc, "invoke", message, dispatcher, reflex, t0, profiler)

        # HALTED | RENDERING -> BROADCASTING
        try:
            outcome = await self._controller.run(reflex, message, stream, dispatcher, profiler)
        except Exception as exc:
            error = exc if isinstance(exc, WhiskerError) else RenderError(str(exc))
            if error is not exc:
                error.__cause__ = exc
            return await self._report(error, "render", message, dispatcher, reflex, t0, profiler)

        self._finish(message, dispatcher.topic, outcome, t0, profiler)
        return outcome.outcome

    async def _invoke(self, reflex: Reflex, method_name: str, arguments: list[Any]) -> Any:
        """Run the reflex; exceptions from user code become HandlerExecutionError."""
        try:
            return await invoke_reflex(reflex, method_name, arguments)
        except WhiskerError:
            raise
        except Exception as exc:
            msg = f"{type(reflex).__name__}#{method_name} raised {type(exc).__qualname__}: {exc}"
            raise HandlerExecutionError(msg) from exc

    async def _report(
        self,
        error: BaseException,
        phase: str,
        message: InboundMessage,
        dispatcher: BroadcastDispatcher,
        reflex: Reflex | None,
        t0: float,
        profiler: PipelineProfiler | None,
    ) -> str:
        """Run the rescue hook, log, record, and broadcast an ``error`` message."""
        original = root_cause(error)
        if reflex is not None:
            try:
                await reflex.rescue_with_handler(original)
            except Exception as hook_exc:
                print(
                    f"  Rescue hook error ({message.target}): {summarize_exception(hook_exc)}",
                    file=sys.stderr,
                )

        summary = summarize_exception(error)
        if phase == "render":
            body = f"Failed to re-render {message.url} {summary}"
        else:
            body = f"Failed to invoke {message.target}! {message.url} {summary}"
        print(f"  Reflex error: {body}", file=sys.stderr)

        if self._collector is not None:
            filename, lineno = exception_location(original)
            self._collector.record_failure(
                message.target,
                dispatcher.topic,
                phase=phase,
                error_kind=type(error).__name__,
                exception_type=type(original).__qualname__,
                message=str(original),
                location=f"{filename}:{lineno}" if filename else "",
            )

        try:
            if profiler is not None:
                profiler.start("broadcast")
            await dispatcher.message(ServerMessage(subject="error", body=body), message.metadata)
            if profiler is not None:
                profiler.stop("broadcast")
        except Exception as exc:
            print(
                f"  Broadcast error ({dispatcher.topic}): {summarize_exception(exc)}",
                file=sys.stderr,
            )

        self._finish_error(message, dispatcher.topic, t0, profiler)
        return "error"

    def _new_profiler(self) -> PipelineProfiler | None:
        if self._collector is None:
            return None
        from whisker.observability.profiler import PipelineProfiler

        return PipelineProfiler(self._collector.log, verbose=self._profile)

    def _finish(
        self,
        message: InboundMessage,
        topic: Topic,
        outcome: RenderOutcome,
        t0: float,
        profiler: PipelineProfiler | None,
    ) -> None:
        if self._collector is None:
            return
        self._collector.record_processed(
            message.target,
            topic,
            outcome=outcome.outcome,
            operations=len(outcome.operations),
            duration_ms=(time.perf_counter() - t0) * 1000,
        )
        if profiler is not None:
            profiler.finish(outcome=outcome.outcome)

    def _finish_error(
        self,
        message: InboundMessage,
        topic: Topic,
        t0: float,
        profiler: PipelineProfiler | None,
    ) -> None:
        if self._collector is None:
            return
        self._collector.record_processed(
            message.target,
            topic,
            outcome="error",
            duration_ms=(time.perf_counter() - t0) * 1000,
        )
        if profiler is not None:
            profiler.finish(outcome="error")
