"""Reflex registry — the only types a client message can ever instantiate.

Clients name reflexes with untrusted strings, so resolution never touches
``importlib`` or ``globals()``.  Instead every candidate type is registered
up front, either explicitly::

    from whisker import Reflex, register

    @register
    class CounterReflex(Reflex): ...

or by scanning a ``reflexes/`` directory at startup::

    reflexes/counter.py          -> CounterReflex
    reflexes/admin/users.py      -> admin.UsersReflex

The registry is populated once, then frozen; lookups afterwards are
read-only and safe to share between workers.
"""

from __future__ import annotations

import importlib.util
import inspect
import sys
import threading
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

from whisker._errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

T = TypeVar("T", bound=type)


class ReflexRegistry:
    """Name -> type lookup, populate-once / read-many.

    Types of any kind may be registered; the resolver checks the capability
    contract (``Reflex`` ancestry) when a name is looked up.

    """

    __slots__ = ("_frozen", "_lock", "_types")

    def __init__(self) -> None:
        self._types: dict[str, type] = {}
        self._lock = threading.Lock()
        self._frozen = False

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, cls: T, *, name: str | None = None, namespace: str | None = None) -> T:
        """Register ``cls`` under ``name`` (default: its class name).

        Raises:
            ConfigError: If the registry is frozen or the name is taken
                by a different type.

        """
        key = name or cls.__name__
        if namespace:
            key = f"{namespace}.{key}"
        with self._lock:
            if self._frozen:
                msg = f"Cannot register {key!r}: reflex registry is frozen"
                raise ConfigError(msg)
            existing = self._types.get(key)
            if existing is not None and existing is not cls:
                msg = (
                    f"Duplicate reflex name {key!r}: "
                    f"{existing.__module__}.{existing.__qualname__} and "
                    f"{cls.__module__}.{cls.__qualname__}"
                )
                raise ConfigError(msg)
            self._types[key] = cls
        return cls

    def lookup(self, name: str) -> type | None:
        """Return the type registered under ``name``, or None."""
        return self._types.get(name)

    def freeze(self) -> None:
        """Make the registry read-only."""
        with self._lock:
            self._frozen = True

    def snapshot(self) -> Mapping[str, type]:
        """Read-only view of every registered name."""
        return MappingProxyType(dict(self._types))


# ---------------------------------------------------------------------------
# Default registry: populated at import/startup, frozen before serving
# ---------------------------------------------------------------------------

default_registry = ReflexRegistry()


def register(cls: Any = None, *, name: str | None = None, namespace: str | None = None) -> Any:
    """Class decorator registering a reflex on the default registry.

    Usable bare (``@register``) or with options (``@register(name=...)``).
    """

    def wrap(c: T) -> T:
        return default_registry.register(c, name=name, namespace=namespace)

    if cls is not None:
        return wrap(cls)
    return wrap


# ---------------------------------------------------------------------------
# Directory discovery
# ---------------------------------------------------------------------------


def discover_reflexes(reflexes_dir: Path, registry: ReflexRegistry | None = None) -> int:
    """Import every public module under ``reflexes_dir`` and register its classes.

    Skips ``__init__.py``, ``__pycache__`` directories, and files whose names
    start with ``_``.  Every class *defined* in a module is registered (not
    ones it imports); subdirectories become namespaces.  Returns the number of
    types registered; 0 when the directory does not exist.

    Raises:
        ConfigError: If a module fails to import or a name is duplicated.

    """
    registry = registry if registry is not None else default_registry
    if not reflexes_dir.is_dir():
        return 0

    count = 0
    for py_file in sorted(reflexes_dir.rglob("*.py")):
        if py_file.name.startswith("_"):
            continue
        if "__pycache__" in py_file.parts:
            continue

        module = _load_module(py_file, reflexes_dir)
        namespace = _derive_namespace(py_file, reflexes_dir)
        for _, cls in inspect.getmembers(module, inspect.isclass):
            if cls.__module__ != module.__name__ or cls.__name__.startswith("_"):
                continue
            registry.register(cls, namespace=namespace)
            count += 1

    return count


def _derive_namespace(py_file: Path, reflexes_dir: Path) -> str | None:
    """``reflexes/admin/users.py`` -> ``admin``; top-level files have none."""
    parents = py_file.relative_to(reflexes_dir).parent.parts
    return ".".join(parents) or None


def _load_module(py_file: Path, reflexes_dir: Path) -> Any:
    """Import a Python file as a module without touching ``sys.path``."""
    relative = py_file.relative_to(reflexes_dir)
    parts = list(relative.with_suffix("").parts)
    module_name = "whisker_reflexes." + ".".join(parts)

    spec = importlib.util.spec_from_file_location(module_name, py_file)
    if spec is None or spec.loader is None:
        msg = f"Failed to load reflex module {py_file}"
        raise ConfigError(msg)

    try:
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        msg = f"Failed to load reflex module {py_file}: {exc}"
        raise ConfigError(msg) from exc

    return module
