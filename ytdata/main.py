from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .config import (
    DEFAULT_LIKED_OUTPUT,
    DEFAULT_PLAYLISTS_OUTPUT,
    DEFAULT_SUBSCRIPTIONS_OUTPUT,
    VERSION,
    ExportConfig,
    get_default_credentials_path,
)
from .errors import FriendlyError
from .exporter import run_export
from .logutil import setup_logging
from .setup_wizard import run_setup


LOG = logging.getLogger("ytdata")

EXPORT_COMMANDS = [
    ("liked", DEFAULT_LIKED_OUTPUT, "Fetch all liked videos and export to JSONL format",
     "Output file for liked videos"),
    ("subscriptions", DEFAULT_SUBSCRIPTIONS_OUTPUT, "Fetch all subscriptions and export to JSONL format",
     "Output file for subscriptions"),
    ("playlists", DEFAULT_PLAYLISTS_OUTPUT, "Fetch all user created playlists and export to JSONL format",
     "Output file for playlists"),
]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ytdata",
        description="Export YouTube data including liked videos, subscriptions, and playlists")
    p.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    p.add_argument("--client-secret", default="",
                   help="Path to client secrets JSON file (auto-detected if not specified)")
    p.add_argument("--credentials", default=str(get_default_credentials_path()),
                   help="Path to credentials JSON file")
    p.add_argument("--verbose", action="store_true", help="Verbose logging")

    sub = p.add_subparsers(dest="command", metavar="command")
    sub.required = True

    sub.add_parser("setup", help="Interactive setup for YouTube API credentials")

    for name, default_out, help_text, out_help in EXPORT_COMMANDS:
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("-o", "--output", default=default_out, help=out_help)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    setup_logging(args.verbose)

    try:
        if args.command == "setup":
            run_setup()
            return 0

        cfg = ExportConfig(
            output_path=args.output,
            client_secrets=args.client_secret.strip() or None,
            token_path=args.credentials.strip(),
            verbose=bool(args.verbose),
        )
        count = run_export(args.command, cfg)
    except FriendlyError as e:
        LOG.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130

    print(f"Done. Wrote {count} records to {cfg.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
