"""Page rendering for ``page`` render mode.

``TemplateRenderer`` is the default templating collaborator: it picks a
Kida template from the reflex's request path and renders it with the
reflex's public state.  Any callable ``(reflex) -> str`` (or awaitable)
can be used instead.

Template resolution::

    /                 -> index.html
    /counter          -> counter.html
    /docs/intro/      -> docs/intro.html

After rendering, the optional session committer persists session changes
the render made.  Commit failures are reported and recorded, never raised:
the page has already been rendered and the morphs are still broadcast.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from whisker._errors import CommitError
from whisker.channel.failures import summarize_exception

if TYPE_CHECKING:
    from whisker._types import SessionCommitter
    from whisker.observability.collector import StackCollector
    from whisker.reflex import Reflex, ReflexRequest

_INDEX_TEMPLATE = "index.html"


def default_template_for(request: ReflexRequest) -> str:
    """Map a request path to a template name."""
    path = request.path.strip("/")
    if not path:
        return _INDEX_TEMPLATE
    if path.endswith(".html"):
        return path
    return f"{path}.html"


def create_environment(templates_dir: Path, *, debug: bool = False) -> Any:
    """Create a Kida environment loading templates from ``templates_dir``."""
    from kida import Environment, FileSystemLoader

    return Environment(
        loader=FileSystemLoader([str(templates_dir)]),
        autoescape=True,
        auto_reload=debug,
    )


def commit_session(
    committer: SessionCommitter,
    request: ReflexRequest,
    html: str,
    collector: StackCollector | None = None,
) -> bool:
    """Run ``committer(request, html)``; report failures instead of raising.

    Returns:
        True if the session was committed.

    """
    try:
        committer(request, html)
    except Exception as exc:
        error = CommitError(f"Failed to commit session! {summarize_exception(exc)}")
        print(f"  Session error ({request.url}): {error}", file=sys.stderr)
        if collector is not None:
            collector.record_commit_failure(request.url, str(error))
        return False
    return True


class TemplateRenderer:
    """Renders a reflex's page through a Kida template.

    The template context is the reflex's :meth:`~whisker.Reflex.assigns`
    plus ``request``, ``params``, and ``element``.

    Args:
        env: Kida ``Environment`` (anything with ``get_template(name)``).
        template_for: Maps a ``ReflexRequest`` to a template name.
        committer: Optional session committer run after each render.
        collector: Records session commit failures.

    """

    __slots__ = ("_collector", "_committer", "_env", "_template_for")

    def __init__(
        self,
        env: Any,
        *,
        template_for: Callable[[ReflexRequest], str] = default_template_for,
        committer: SessionCommitter | None = None,
        collector: StackCollector | None = None,
    ) -> None:
        self._env = env
        self._template_for = template_for
        self._committer = committer
        self._collector = collector

    def __call__(self, reflex: Reflex) -> str:
        request = reflex.request
        template = self._env.get_template(self._template_for(request))
        context = {
            **reflex.assigns(),
            "request": request,
            "params": request.params,
            "element": reflex.element,
        }
        html = template.render(**context)

        if self._committer is not None:
            commit_session(self._committer, request, html, self._collector)

        return html
