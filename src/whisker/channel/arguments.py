"""Argument normalizer — canonicalises reflex arguments from JSON.

Mappings are wrapped in ``IndifferentDict`` so reflex authors can read keys
as items or attributes; lists are normalized element-by-element in place;
scalars pass through unchanged.  Normalizing twice is a no-op.
"""

from __future__ import annotations

from typing import Any


class IndifferentDict(dict[str, Any]):
    """A dict whose string keys can also be read as attributes.

    Non-string keys are stored as their ``str()`` form, so ``d[1]`` and
    ``d["1"]`` address the same entry.  Nested values are normalized on
    construction.
    """

    __slots__ = ()

    def __init__(self, data: Any = (), /, **kwargs: Any) -> None:
        super().__init__()
        self.update(data, **kwargs)

    def __getitem__(self, key: Any) -> Any:
        return super().__getitem__(str(key))

    def __setitem__(self, key: Any, value: Any) -> None:
        super().__setitem__(str(key), normalize_argument(value))

    def __delitem__(self, key: Any) -> None:
        super().__delitem__(str(key))

    def __contains__(self, key: object) -> bool:
        return super().__contains__(str(key))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            msg = f"{type(self).__name__!r} object has no attribute {name!r}"
            raise AttributeError(msg) from None

    def get(self, key: Any, default: Any = None) -> Any:
        return super().get(str(key), default)

    def pop(self, key: Any, *default: Any) -> Any:
        return super().pop(str(key), *default)

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if key not in self:
            self[key] = default
        return self[key]

    def update(self, data: Any = (), /, **kwargs: Any) -> None:  # type: ignore[override]
        items = data.items() if hasattr(data, "items") else data
        for key, value in items:
            self[key] = value
        for key, value in kwargs.items():
            self[key] = value

    def copy(self) -> IndifferentDict:
        return IndifferentDict(self)


def normalize_argument(argument: Any) -> Any:
    """Normalize one argument (see module docstring)."""
    if isinstance(argument, IndifferentDict):
        return argument
    if isinstance(argument, dict):
        return IndifferentDict(argument)
    if isinstance(argument, list):
        argument[:] = [normalize_argument(item) for item in argument]
    return argument


def normalize_arguments(arguments: list[Any]) -> list[Any]:
    """Normalize every positional argument of a reflex call."""
    return [normalize_argument(argument) for argument in arguments]
