"""Identity commands: show and reset the local pseudonymous identity."""

from __future__ import annotations

import argparse

from ..output import output_json
from ..utils import get_identity_manager


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the identity commands on the CLI parser."""
    identity_parser = subparsers.add_parser("identity", help="Show or reset your pseudonymous identity")
    identity_sub = identity_parser.add_subparsers(dest="identity_command", required=True)

    show_parser = identity_sub.add_parser("show", help="Show handle and public key (creates one if needed)")
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")
    show_parser.set_defaults(func=cmd_identity_show)

    reset_parser = identity_sub.add_parser("reset", help="Discard the identity; the next write creates a new one")
    reset_parser.add_argument("--yes", "-y", action="store_true", help="Confirm without prompting")
    reset_parser.set_defaults(func=cmd_identity_reset)


def cmd_identity_show(args: argparse.Namespace) -> int:
    identity = get_identity_manager().get_or_create_identity()
    if args.json:
        output_json({"handle": identity.handle, "public_key": identity.public_key_hex})
    else:
        print(f"🪪 {identity.handle}")
        print(f"   Public key: {identity.public_key_hex}")
    return 0


def cmd_identity_reset(args: argparse.Namespace) -> int:
    """Delete the persisted identity. Past posts and votes stay under the old key."""
    if not args.yes:
        print("❌ Resetting abandons your current handle and history. Re-run with --yes to confirm.")
        return 1
    get_identity_manager().reset()
    print("✅ Identity reset")
    return 0
