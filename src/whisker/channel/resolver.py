"""Selector resolver — ``"counter#increment"`` -> reflex class + method name.

The type part of the target is classified (``user_profile`` ->
``UserProfile``), suffixed with ``Reflex`` when missing, and looked up in the
reflex registry.  Resolution is restricted to registered ``Reflex``
subclasses and their own public methods: the target string comes from the
client and must never reach an arbitrary type or attribute.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from whisker._errors import InvalidTargetError, NotAHandlerError, UnknownHandlerError
from whisker.reflex import Reflex
from whisker.registry import ReflexRegistry

REFLEX_SUFFIX = "Reflex"

_NAMESPACE_SEPARATOR = re.compile(r"::|/|\.")
_WORD_SEPARATOR = re.compile(r"[_\-\s]+")


@dataclass(frozen=True, slots=True)
class ResolvedTarget:
    """A validated reflex target.

    Attributes:
        reflex_name: Registry name, e.g. ``"CounterReflex"``.
        method_name: Method to invoke, e.g. ``"increment"``.
        reflex_class: The registered ``Reflex`` subclass.

    """

    reflex_name: str
    method_name: str
    reflex_class: type[Reflex]


def classify(name: str) -> str:
    """Convert a snake/kebab-case name into a class-like name.

    ``counter`` -> ``Counter``, ``user-profile`` -> ``UserProfile``,
    ``admin/users`` -> ``admin.Users``.  Namespace segments keep their case,
    only the final segment is camel-cased.  Existing capitals are kept, so
    classifying a class name returns it unchanged.
    """
    segments = [s for s in _NAMESPACE_SEPARATOR.split(name.strip()) if s]
    if not segments:
        return ""
    *namespace, last = segments
    words = [w for w in _WORD_SEPARATOR.split(last) if w]
    classified = "".join(w[:1].upper() + w[1:] for w in words)
    return ".".join([*namespace, classified])


def reflex_name_for(type_part: str) -> str:
    """Classify ``type_part`` and append the ``Reflex`` suffix exactly once."""
    name = classify(type_part)
    if not name.endswith(REFLEX_SUFFIX):
        name = f"{name}{REFLEX_SUFFIX}"
    return name


def split_target(target: str, method_name: str | None = None) -> tuple[str, str]:
    """Split ``"Type#method"`` on the first ``#``.

    ``method_name`` is used when the target carries no method segment.

    Raises:
        InvalidTargetError: If the type part is empty or no method is known.

    """
    type_part, sep, method_part = target.partition("#")
    method = method_part if sep and method_part else method_name
    if not type_part.strip():
        msg = f"Invalid reflex target {target!r}: missing reflex name"
        raise InvalidTargetError(msg)
    if not method:
        msg = f"Invalid reflex target {target!r}: expected 'Reflex#method'"
        raise InvalidTargetError(msg)
    return type_part, method.strip()


def _check_method(reflex_class: type[Reflex], reflex_name: str, method_name: str) -> None:
    """Only public methods defined by the reflex subclass itself are invocable."""
    if not method_name.isidentifier() or method_name.startswith("_"):
        msg = f"{reflex_name}#{method_name} is not a public reflex method"
        raise InvalidTargetError(msg)
    if method_name in reflex_class.hook_names():
        msg = f"{reflex_name}#{method_name} is a callback, not a reflex method"
        raise InvalidTargetError(msg)

    for klass in reflex_class.__mro__:
        if klass is Reflex or klass is object:
            break
        if method_name in vars(klass):
            if callable(getattr(reflex_class, method_name, None)):
                return
            break

    msg = f"{reflex_name} has no reflex method {method_name!r}"
    raise InvalidTargetError(msg)


def resolve_target(
    target: str,
    registry: ReflexRegistry,
    *,
    method_name: str | None = None,
) -> ResolvedTarget:
    """Resolve a client-supplied target string against ``registry``.

    Raises:
        InvalidTargetError: Malformed target or non-invocable method.
        UnknownHandlerError: No type registered under the resolved name.
        NotAHandlerError: The registered type is not a ``Reflex`` subclass.

    """
    type_part, method = split_target(target, method_name)
    reflex_name = reflex_name_for(type_part)

    candidate = registry.lookup(reflex_name)
    if candidate is None:
        msg = f"Unknown reflex {reflex_name!r} (from target {target!r})"
        raise UnknownHandlerError(msg)
    if not (isinstance(candidate, type) and issubclass(candidate, Reflex)):
        msg = f"{reflex_name} is not a whisker Reflex"
        raise NotAHandlerError(msg)

    _check_method(candidate, reflex_name, method)
    return ResolvedTarget(reflex_name=reflex_name, method_name=method, reflex_class=candidate)
