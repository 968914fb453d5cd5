"""Handler invoker — arity-checks arguments and runs the reflex method.

Required (``R``) and optional (``O``) positional parameter counts are read
from the bound method's signature.  ``N`` supplied arguments are accepted
iff ``R <= N <= R + O``; ``*args`` and keyword-only parameters are not
counted, matching how the client can only send positional arguments.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from whisker._errors import ArityMismatchError

if TYPE_CHECKING:
    import io

    from whisker.reflex import Reflex

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(frozen=True, slots=True)
class Arity:
    """Positional parameter counts of a reflex method."""

    required: int
    optional: int

    def accepts(self, count: int) -> bool:
        return self.required <= count <= self.required + self.optional


def method_arity(method: Any) -> Arity:
    """Count required and optional positional parameters of a bound method."""
    params = [
        p for p in inspect.signature(method).parameters.values() if p.kind in _POSITIONAL
    ]
    required = sum(1 for p in params if p.default is inspect.Parameter.empty)
    return Arity(required=required, optional=len(params) - required)


async def invoke_reflex(reflex: Reflex, method_name: str, arguments: list[Any]) -> io.StringIO:
    """Invoke ``reflex.method_name`` with ``arguments`` spread positionally.

    Exceptions raised by the reflex propagate to the caller untouched.

    Returns:
        The reflex's output stream.

    Raises:
        ArityMismatchError: If the argument count does not fit the signature.

    """
    arity = method_arity(getattr(reflex, method_name))
    given = len(arguments)

    if given == 0 and arity.required == 0:
        return await reflex.process(method_name)
    if arity.accepts(given):
        return await reflex.process(method_name, *arguments)

    msg = (
        f"wrong number of arguments for {type(reflex).__name__}#{method_name} "
        f"(given {given}, expected {arity.required}, optional {arity.optional})"
    )
    raise ArityMismatchError(msg)
