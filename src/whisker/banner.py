"""Startup banner — status output for ``whisker serve``.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback to plain text.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whisker.config import WhiskerConfig


def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""


def print_banner(
    config: WhiskerConfig,
    reflex_count: int,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the Whisker startup banner to stderr.

    Args:
        config: Resolved WhiskerConfig.
        reflex_count: Number of types discovered in the reflexes directory.
        load_ms: Time spent building the app in milliseconds.
        warnings: Optional warning messages to display.

    """
    from whisker import __version__
    from whisker.transport.endpoints import EVENTS_ENDPOINT, REFLEX_ENDPOINT

    header = f"  {_BOLD}Whisker{_RESET} {_DIM}v{__version__}{_RESET}  {_CYAN}[serve]{_RESET}"
    label = "reflex" if reflex_count == 1 else "reflexes"
    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""

    lines = [
        "",
        header,
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} {reflex_count} {label} registered{timing}",
        f"  {_DIM}├─{_RESET} reflexes: {_DIM}{config.reflexes_path}{_RESET}",
        f"  {_DIM}├─{_RESET} templates: {_DIM}{config.templates_path}{_RESET}",
        f"  {_DIM}├─{_RESET} {_GREEN}live{_RESET} "
        f"— POST {_DIM}{REFLEX_ENDPOINT}{_RESET}, SSE {_DIM}{EVENTS_ENDPOINT}{_RESET}",
        f"  {_DIM}└─{_RESET} channel: {config.channel or '(none)'}",
        "",
        f"  {_BOLD}http://{config.host}:{config.port}{_RESET}",
    ]

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")
    print("\n".join(lines), file=sys.stderr)
