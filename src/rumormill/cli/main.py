#!/usr/bin/env python3
"""
rumormill CLI - Anonymous, spam-resistant rumor board.

Commands:
  rumormill identity show           Show your pseudonymous handle
  rumormill post <content>          Mine proof of work and post a rumor
  rumormill vote <id> verify        Verify (or dispute) a rumor
  rumormill list                    List rumors with trust scores
  rumormill thread <id>             Show a rumor and its replies
  rumormill settle <id> dispute     Record an outcome, adjust reputations
  rumormill delete <id>             Delete one of your own rumors
"""

from __future__ import annotations

import argparse
import logging
import sys

from ..core.exceptions import ConfigException
from ..core.logging import configure_logging
from .commands import COMMAND_MODULES
from .output import output_error

logger = logging.getLogger(__name__)


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rumormill",
        description="Anonymous, spam-resistant rumor board",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rumormill post "The cafeteria closes early on Friday"
  rumormill post "Heard it from facilities too" --reply-to <id>
  rumormill vote <id> dispute
  rumormill list --filter verified --sort hottest
  rumormill thread <id>

Environment:
  RUMORMILL_STORE_URL, RUMORMILL_STORE_KEY   Record store (required)
  RUMORMILL_POW_DIFFICULTY                   Leading zeros per write (default 3)
        """,
    )
    parser.add_argument("--log-level", help="Override RUMORMILL_LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in COMMAND_MODULES:
        module.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = app()
    args = parser.parse_args(argv)

    try:
        configure_logging(level=args.log_level)
        return args.func(args)
    except ConfigException as e:
        output_error(e.message)
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
