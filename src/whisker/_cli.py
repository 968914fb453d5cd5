"""Whisker CLI — ``whisker serve``.

Entry point for the ``whisker`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the whisker CLI."""
    parser = argparse.ArgumentParser(
        prog="whisker",
        description="Reflex runtime: server-side handlers, morphs over SSE.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the reflex server")
    serve_parser.add_argument("root", nargs="?", default=".", help="Application root directory")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=3000, help="Bind port")
    serve_parser.add_argument("--channel", default=None, help="Channel name prefixed to topics")
    serve_parser.add_argument(
        "--profile", action="store_true", help="Print per-reflex timing to stderr",
    )
    serve_parser.add_argument("--debug", action="store_true", help="Reload templates on change")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from whisker import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from whisker.app import serve

    if args.command == "serve":
        overrides: dict[str, object] = {"host": args.host, "port": args.port}
        if args.channel is not None:
            overrides["channel"] = args.channel
        if args.profile:
            overrides["profile"] = True
        serve(args.root, debug=args.debug, **overrides)


if __name__ == "__main__":
    main()
