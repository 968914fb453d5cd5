"""Exception summaries for error broadcasts.

Clients receive the exception type, message, and the innermost
``file:line`` — never the full traceback.
"""

from __future__ import annotations


def exception_location(exc: BaseException) -> tuple[str, int]:
    """Return the filename and line number where ``exc`` was raised."""
    tb = exc.__traceback__
    if tb is None:
        return "", 0

    while tb.tb_next is not None:
        tb = tb.tb_next

    return tb.tb_frame.f_code.co_filename, tb.tb_lineno


def root_cause(exc: BaseException) -> BaseException:
    """Unwrap an error raised ``from`` another to the original exception."""
    cause = exc.__cause__
    return cause if cause is not None else exc


def summarize_exception(exc: BaseException) -> str:
    """``"ZeroDivisionError: division by zero reflexes/counter.py:12"``."""
    exc = root_cause(exc)
    filename, lineno = exception_location(exc)
    summary = f"{type(exc).__qualname__}: {exc}"
    if filename:
        summary = f"{summary} {filename}:{lineno}"
    return summary
