"""CLI entrypoint for quick-chat."""

from __future__ import annotations

import argparse
from importlib import metadata
from pathlib import Path
import sys
from typing import Sequence

from .app import QuickChatApp
from .config import ensure_config_dir, load_config
from .persistence import EXPORT_FORMATS, ChatPersistence


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quick-chat", description="Quick Chat TUI")
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Read configuration from PATH instead of the default location",
    )
    parser.add_argument(
        "--export",
        choices=EXPORT_FORMATS,
        default=None,
        help="Print the saved conversation in the given format and exit",
    )
    return parser


def _export(config_path: Path | None, fmt: str) -> int:
    config = load_config(config_path)
    persistence = ChatPersistence.from_directory(
        Path(str(config["storage"]["directory"])).expanduser()
    )
    content = persistence.export_conversation(persistence.load_conversation(), fmt)
    if content is None:
        print(f"Unsupported export format: {fmt}", file=sys.stderr)
        return 2
    print(content)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Ensure configuration exists, handle CLI flags, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("quick-chat-tui")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"quick-chat {version}")
        return 0

    if args.export:
        return _export(args.config, args.export)

    if args.config is None:
        ensure_config_dir()

    app = QuickChatApp(config_path=args.config)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
