"""Whisker application — wires the reflex channel into a Chirp app.

``create_app`` assembles the runtime (registry, renderer, broadcaster,
channel, observability) and registers the reflex endpoints; ``serve`` is
the blocking entry point used by the CLI.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from whisker._errors import ConfigError
from whisker.channel.orchestrator import ReflexChannel
from whisker.config import WhiskerConfig
from whisker.config_loader import load_config
from whisker.observability import EventLog, StackCollector
from whisker.registry import ReflexRegistry, default_registry, discover_reflexes
from whisker.transport.broadcaster import Broadcaster

if TYPE_CHECKING:
    from chirp import App

    from whisker._types import PageRenderer, SessionCommitter


@dataclass(frozen=True, slots=True)
class WhiskerRuntime:
    """Everything ``create_app`` built, for serving and for tests.

    Attributes:
        app: The Chirp application.
        channel: Reflex channel handling inbound messages.
        broadcaster: Topic broadcaster delivering outcomes over SSE.
        collector: Observability collector (also the server lifecycle collector).
        registry: The frozen reflex registry.
        reflex_count: Number of types discovered in the reflexes directory.

    """

    app: Any
    channel: ReflexChannel
    broadcaster: Broadcaster
    collector: StackCollector
    registry: ReflexRegistry
    reflex_count: int


def _load_reflexes(config: WhiskerConfig, registry: ReflexRegistry) -> int:
    """Discover reflex modules, then freeze the registry.

    Raises:
        ConfigError: If a reflex module cannot be imported.

    """
    count = discover_reflexes(config.reflexes_path, registry)
    registry.freeze()
    return count


def _create_chirp_app(config: WhiskerConfig, *, debug: bool = False) -> App:
    """Create the Chirp App serving pages and reflex endpoints."""
    from chirp import App, AppConfig

    app_config = AppConfig(
        template_dir=config.templates_path,
        debug=debug,
        host=config.host,
        port=config.port,
    )
    return App(config=app_config)


def _wire_session_middleware(app: App, config: WhiskerConfig) -> None:
    """Add Chirp session middleware when a session secret is configured.

    Reflexes then see the request session as ``self.session``.

    Raises:
        ConfigError: If Chirp was installed without session support.

    """
    if not config.session_secret:
        return
    try:
        from chirp.middleware.sessions import SessionConfig, SessionMiddleware
    except ImportError as exc:
        msg = (
            "session_secret requires chirp[sessions]. "
            "Install with: pip install chirp[sessions]"
        )
        raise ConfigError(msg) from exc
    app.add_middleware(SessionMiddleware(SessionConfig(secret_key=config.session_secret)))


def _default_renderer(
    config: WhiskerConfig,
    committer: SessionCommitter | None,
    collector: StackCollector,
    *,
    debug: bool,
) -> PageRenderer:
    from whisker.rendering import TemplateRenderer, create_environment

    env = create_environment(config.templates_path, debug=debug)
    return TemplateRenderer(env, committer=committer, collector=collector)


def create_app(
    config: WhiskerConfig,
    *,
    registry: ReflexRegistry | None = None,
    renderer: PageRenderer | None = None,
    committer: SessionCommitter | None = None,
    debug: bool = False,
) -> WhiskerRuntime:
    """Build the Chirp app with the reflex channel wired in.

    Args:
        config: Resolved WhiskerConfig.
        registry: Reflex registry (defaults to the process-wide one).
            It is populated from ``reflexes/`` and frozen here.
        renderer: Page renderer; defaults to a Kida ``TemplateRenderer``
            over ``config.templates_path``.
        committer: Session committer used by the default renderer.
        debug: Enable template auto-reload.

    """
    from whisker.transport.client_script import client_script_middleware
    from whisker.transport.endpoints import (
        register_events_endpoint,
        register_reflex_endpoint,
        register_stats_endpoint,
    )

    registry = registry if registry is not None else default_registry
    reflex_count = _load_reflexes(config, registry)

    collector = StackCollector(EventLog(max_events=config.max_events))
    if renderer is None:
        renderer = _default_renderer(config, committer, collector, debug=debug)

    broadcaster = Broadcaster()
    channel = ReflexChannel(
        broadcaster,
        renderer=renderer,
        registry=registry,
        collector=collector,
        default_morph_targets=(config.default_morph_target,),
        profile=config.profile,
    )

    app = _create_chirp_app(config, debug=debug)
    _wire_session_middleware(app, config)
    register_reflex_endpoint(app, channel, config)
    register_events_endpoint(app, broadcaster, config)
    register_stats_endpoint(app, collector)
    app.add_middleware(client_script_middleware)

    return WhiskerRuntime(
        app=app,
        channel=channel,
        broadcaster=broadcaster,
        collector=collector,
        registry=registry,
        reflex_count=reflex_count,
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def serve(root: str | Path = ".", *, debug: bool = False, **kwargs: object) -> None:
    """Run a reflex server for the application at ``root``.

    Args:
        root: Path to the application root directory.
        debug: Enable template auto-reload.
        **kwargs: Override WhiskerConfig fields.

    """
    from whisker.banner import print_banner

    config = load_config(Path(root), **kwargs)
    t0 = time.perf_counter()

    runtime = create_app(config, debug=debug)

    load_ms = (time.perf_counter() - t0) * 1000
    print_banner(config, runtime.reflex_count, load_ms=load_ms)

    runtime.app.run(host=config.host, port=config.port, lifecycle_collector=runtime.collector)
