"""Inbound reflex messages, parsed from the wire JSON payload.

Wire format::

    {
      "url": "https://example.com/counter",
      "target": "counter#increment",
      "args": [1],
      "morphTarget": ["#count"],
      "renderMode": "partial",
      "params": {},
      "attrs": {"id": "inc", "data-count": "4"},
      "permanentAttributeName": "data-reflex-permanent"
    }

Every field is optional on the wire; defaults are applied here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, get_args

from whisker._errors import MessageError
from whisker._types import RenderModeName, Selector

DEFAULT_MORPH_TARGETS: tuple[Selector, ...] = ("body",)

RENDER_MODES: frozenset[str] = frozenset(get_args(RenderModeName))


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """A reflex invocation request from a client.

    Attributes:
        url: URL of the page that sent the message.
        target: ``"Reflex#method"`` string naming the handler.
        arguments: Positional arguments for the reflex method (raw JSON).
        morph_targets: Selectors to morph; never empty.
        render_mode: ``"page"``, ``"partial"``, or ``"none"``.
        params: Form parameters.
        permanent_attribute_name: Attribute marking elements the client
            must never morph, passed through to morph operations.
        metadata: The original wire payload, echoed back in broadcasts.

    """

    url: str
    target: str
    arguments: tuple[Any, ...] = ()
    morph_targets: tuple[Selector, ...] = DEFAULT_MORPH_TARGETS
    render_mode: RenderModeName = "page"
    params: Mapping[str, Any] = field(default_factory=dict)
    permanent_attribute_name: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_wire(
        cls,
        data: Mapping[str, Any],
        *,
        default_morph_targets: tuple[Selector, ...] = DEFAULT_MORPH_TARGETS,
    ) -> InboundMessage:
        """Parse and validate a wire payload.

        Raises:
            MessageError: If a field has the wrong shape or ``renderMode``
                is not a known mode.

        """
        if not isinstance(data, Mapping):
            msg = f"Reflex message must be a JSON object, got {type(data).__name__}"
            raise MessageError(msg)

        raw_targets = data.get("morphTarget") or []
        if isinstance(raw_targets, str):
            raw_targets = [raw_targets]
        if not isinstance(raw_targets, list):
            msg = "morphTarget must be a list of selectors"
            raise MessageError(msg)
        morph_targets = tuple(
            str(s).strip() for s in raw_targets if s is not None and str(s).strip()
        ) or default_morph_targets

        arguments = data.get("args") or []
        if not isinstance(arguments, list):
            msg = "args must be a list"
            raise MessageError(msg)

        for key in ("url", "target"):
            if data.get(key) is not None and not isinstance(data[key], str):
                msg = f"{key} must be a string, got {type(data[key]).__name__}"
                raise MessageError(msg)

        render_mode = data.get("renderMode") or "page"
        if not isinstance(render_mode, str) or render_mode not in RENDER_MODES:
            msg = f"Unknown renderMode {render_mode!r} (expected one of {sorted(RENDER_MODES)})"
            raise MessageError(msg)

        params = data.get("params") or {}
        if not isinstance(params, Mapping):
            msg = "params must be an object"
            raise MessageError(msg)

        permanent = data.get("permanentAttributeName") or data.get("permanent_attribute_name")

        return cls(
            url=data.get("url") or "",
            target=data.get("target") or "",
            arguments=tuple(arguments),
            morph_targets=morph_targets,
            render_mode=render_mode,
            params=MappingProxyType(dict(params)),
            permanent_attribute_name=str(permanent) if permanent else None,
            metadata=MappingProxyType({**data, "morphTarget": list(morph_targets)}),
        )

    @classmethod
    def fallback(cls, data: Any) -> InboundMessage:
        """Best-effort message for reporting a payload ``from_wire`` rejected."""
        if not isinstance(data, Mapping):
            return cls(url="", target="")
        return cls(
            url=str(data.get("url") or ""),
            target=str(data.get("target") or ""),
            metadata=MappingProxyType(dict(data)),
        )
