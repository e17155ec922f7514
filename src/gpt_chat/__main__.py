"""CLI entrypoint for GPTTerm."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from importlib import metadata
from pathlib import Path

from .app import GptChatApp
from .config import ensure_config_dir


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gptterm",
        description="GPTTerm - terminal chat client for OpenAI-compatible APIs",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="Read configuration from PATH instead of ~/.config/gptterm/config.toml",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    return parser


def _installed_version() -> str:
    try:
        return metadata.version("gptterm")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def main(argv: Sequence[str] | None = None) -> None:
    """Handle CLI flags, make sure the config directory exists, run the TUI."""

    args = _build_parser().parse_args(list(argv) if argv is not None else None)
    if args.version:
        print(f"gptterm {_installed_version()}")
        return

    config_path = Path(args.config).expanduser() if args.config else None
    if config_path is None:
        ensure_config_dir()
    GptChatApp(config_path=config_path).run()


if __name__ == "__main__":
    main()
