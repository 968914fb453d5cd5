"""Whisker — server-side reflexes with morph broadcasts.

A browser sends a message naming a reflex (``"counter#increment"``); the
server runs it and broadcasts the effect to everyone on the page's topic as
targeted DOM morphs, a full-page morph, or a silent acknowledgement.

Quick start::

    from whisker import Reflex, register

    @register
    class CounterReflex(Reflex):
        def increment(self, step=1):
            self.count = int(self.element.dataset.get("count", 0)) + step
            return f"<span>{self.count}</span>"

    import whisker
    whisker.serve("my-app/")

Reflex modules dropped into ``my-app/reflexes/`` are registered on startup.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whisker.channel.orchestrator import ReflexChannel
    from whisker.config import WhiskerConfig
    from whisker.element import Element
    from whisker.reflex import Reflex, after_reflex, before_reflex, rescue_from
    from whisker.registry import ReflexRegistry, register

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "Element",
    "Reflex",
    "ReflexChannel",
    "ReflexRegistry",
    "WhiskerConfig",
    "__version__",
    "after_reflex",
    "before_reflex",
    "create_app",
    "register",
    "rescue_from",
    "serve",
]

# Public name -> defining module, imported on first access.
_LAZY: dict[str, str] = {
    "Element": "whisker.element",
    "Reflex": "whisker.reflex",
    "after_reflex": "whisker.reflex",
    "before_reflex": "whisker.reflex",
    "rescue_from": "whisker.reflex",
    "ReflexRegistry": "whisker.registry",
    "register": "whisker.registry",
    "ReflexChannel": "whisker.channel.orchestrator",
    "WhiskerConfig": "whisker.config",
    "create_app": "whisker.app",
    "serve": "whisker.app",
}


def __getattr__(name: str) -> object:
    """Lazy imports for the public API, keeping ``import whisker`` fast."""
    module_name = _LAZY.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
