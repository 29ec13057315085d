"""Command-line entry point for the Bug Snake site."""

from __future__ import annotations

import argparse
import logging
import sys

from bug_snake.config import Settings
from bug_snake.persistence import FileScoreStore, PersistenceUnavailable

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bug-snake",
        description="Serve the portfolio site and manage the snake best score.",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to a JSON settings file (environment still applies).",
    )
    # Also accepted after the subcommand; SUPPRESS keeps the root value.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", type=str, default=argparse.SUPPRESS,
        help="Path to a JSON settings file (environment still applies).",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands.")

    # --- serve ---
    serve_p = sub.add_parser(
        "serve", parents=[common], help="Run the web server.",
    )
    serve_p.add_argument("--host", type=str, default=None)
    serve_p.add_argument("--port", type=int, default=None)
    serve_p.add_argument("--static-dir", type=str, default=None)
    serve_p.add_argument("--score-file", type=str, default=None)
    serve_p.add_argument("--tick-ms", type=int, default=None)

    # --- best-score ---
    best_p = sub.add_parser(
        "best-score", parents=[common], help="Print the stored best score.",
    )
    best_p.add_argument("--score-file", type=str, default=None)

    # --- reset-best ---
    reset_p = sub.add_parser(
        "reset-best", parents=[common], help="Clear the stored best score.",
    )
    reset_p.add_argument("--score-file", type=str, default=None)

    return parser


def _settings(args: argparse.Namespace) -> Settings:
    base = Settings.load(args.config) if args.config else None
    settings = Settings.from_env(base=base)

    flag_map = {
        "host": "host",
        "port": "port",
        "static_dir": "static_dir",
        "score_file": "score_file",
        "tick_ms": "tick_rate_ms",
    }
    overrides: dict = {}
    for cli_name, cfg_name in flag_map.items():
        val = getattr(args, cli_name, None)
        if val is not None:
            overrides[cfg_name] = val
    if overrides:
        d = settings.to_dict()
        d.update(overrides)
        settings = Settings(**d)
    return settings


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from bug_snake.server.app import create_app

    settings = _settings(args)
    logger.info("Serving on http://%s:%d", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
    return 0


def _run_best_score(args: argparse.Namespace) -> int:
    store = FileScoreStore(_settings(args).score_file)
    try:
        value = store.load()
    except PersistenceUnavailable as exc:
        logger.error("%s", exc)
        return 2
    print(value if value is not None else 0)  # noqa: T201
    return 0


def _run_reset_best(args: argparse.Namespace) -> int:
    store = FileScoreStore(_settings(args).score_file)
    try:
        store.clear()
    except PersistenceUnavailable as exc:
        logger.error("%s", exc)
        return 2
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``bug-snake`` CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    handlers = {
        "serve": _run_serve,
        "best-score": _run_best_score,
        "reset-best": _run_reset_best,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
