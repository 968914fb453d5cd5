"""Element — the DOM element that triggered a reflex.

The browser sends the triggering element's attributes alongside the reflex
message.  ``Element`` exposes them read-only, with ``data-*`` attributes
available through :attr:`Element.dataset`.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

_DATA_PREFIX = "data-"


def _dataset_key(attribute: str) -> str:
    """``data-user-id`` -> ``user_id``."""
    return attribute[len(_DATA_PREFIX):].replace("-", "_")


class Element(Mapping[str, Any]):
    """Read-only view of the triggering element's attributes.

    Args:
        attrs: Attribute name -> value mapping sent by the client.

    """

    __slots__ = ("_attrs", "_dataset")

    def __init__(self, attrs: Mapping[str, Any] | None = None) -> None:
        self._attrs: Mapping[str, Any] = MappingProxyType(dict(attrs or {}))
        self._dataset: Mapping[str, Any] = MappingProxyType({
            _dataset_key(name): value
            for name, value in self._attrs.items()
            if name.startswith(_DATA_PREFIX)
        })

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Element:
        """Build from an inbound message's ``attrs`` entry."""
        attrs = data.get("attrs")
        return cls(attrs if isinstance(attrs, Mapping) else None)

    def __getitem__(self, name: str) -> Any:
        return self._attrs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attrs)

    def __len__(self) -> int:
        return len(self._attrs)

    def __repr__(self) -> str:
        return f"Element({dict(self._attrs)!r})"

    @property
    def dataset(self) -> Mapping[str, Any]:
        """``data-*`` attributes with the prefix stripped, snake_cased."""
        return self._dataset

    @property
    def id(self) -> str | None:
        return self._attrs.get("id")

    @property
    def value(self) -> Any:
        return self._attrs.get("value")

    @property
    def checked(self) -> bool:
        return bool(self._attrs.get("checked", False))
