"""Rumor commands: post, list, thread and delete."""

from __future__ import annotations

import argparse
import asyncio

from ...board.service import ListFilter, ListSort
from ...core.exceptions import ValidationException
from ..output import MiningProgress, format_claim_line, output_error, output_json
from ..utils import get_board, short_id


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the rumor commands on the CLI parser."""
    post_parser = subparsers.add_parser("post", help="Post a rumor (or a reply)")
    post_parser.add_argument("content", help="Rumor text")
    post_parser.add_argument("--reply-to", "-r", dest="parent_id", help="ID of the rumor to reply to")
    post_parser.add_argument("--json", action="store_true", help="Output as JSON")
    post_parser.set_defaults(func=cmd_post)

    list_parser = subparsers.add_parser("list", help="List rumors with trust scores")
    list_parser.add_argument(
        "--filter",
        "-f",
        choices=[f.value for f in ListFilter],
        default=ListFilter.ALL.value,
        help="Show all, verified, or unverified rumors",
    )
    list_parser.add_argument(
        "--sort",
        "-s",
        choices=[s.value for s in ListSort],
        default=ListSort.NEWEST.value,
        help="Sort order (hottest = highest trust score)",
    )
    list_parser.add_argument("--limit", "-n", type=int, default=20, help="Max results")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    list_parser.set_defaults(func=cmd_list)

    thread_parser = subparsers.add_parser("thread", help="Show a rumor and its replies")
    thread_parser.add_argument("claim_id", help="Rumor ID")
    thread_parser.add_argument("--json", action="store_true", help="Output as JSON")
    thread_parser.set_defaults(func=cmd_thread)

    delete_parser = subparsers.add_parser("delete", help="Delete one of your own rumors")
    delete_parser.add_argument("claim_id", help="Rumor ID")
    delete_parser.set_defaults(func=cmd_delete)


def cmd_post(args: argparse.Namespace) -> int:
    """Mine proof of work and post a rumor."""
    board = get_board()
    progress = MiningProgress(enabled=not args.json)
    try:
        claim = asyncio.run(board.post_claim(args.content, parent_id=args.parent_id, on_progress=progress))
    except ValidationException as e:
        output_error(e.message)
        return 1
    finally:
        progress.done()
        board.store.close()

    if claim is None:
        output_error("Failed to post rumor (see log)")
        return 1

    if args.json:
        output_json(claim.to_record())
    else:
        kind = "Reply" if claim.parent_id else "Rumor"
        print(f"✅ {kind} posted as {claim.author_handle}: {claim.id}")
        print(f"   PoW: nonce={claim.pow_nonce} hash={claim.pow_hash[:16]}...")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List rumors with fresh trust scores."""
    board = get_board()
    try:
        views = board.list_claims(filter=args.filter, sort=args.sort)
    finally:
        board.store.close()
    views = views[: args.limit]

    if args.json:
        output_json([v.to_dict() for v in views])
        return 0

    if not views:
        print("No rumors found")
        return 0

    print(f"📰 Rumors ({args.filter}, {args.sort})")
    print("─" * 60)
    for view in views:
        print(format_claim_line(view.to_dict()))
    return 0


def cmd_thread(args: argparse.Namespace) -> int:
    """Show a rumor with its replies, indented by depth."""
    board = get_board()
    try:
        entries = board.thread(args.claim_id)
        trust = {e.claim.id: board.trust_for(e.claim.id) for e in entries}
    finally:
        board.store.close()

    if not entries:
        output_error(f"Rumor not found: {args.claim_id}")
        return 1

    if args.json:
        output_json(
            [
                {
                    **e.claim.to_record(),
                    "depth": e.depth,
                    "trust_percentage": trust[e.claim.id].percentage if trust[e.claim.id] else None,
                }
                for e in entries
            ]
        )
        return 0

    for entry in entries:
        score = trust[entry.claim.id]
        pct = f"{score.percentage:5.1f}%" if score else "  ?  "
        pad = "  " * entry.depth
        print(f"{pad}{'↳ ' if entry.depth else ''}{pct} {short_id(entry.claim.id)} {entry.claim.author_handle}:")
        print(f"{pad}   {entry.claim.content}")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Soft-delete one of your own rumors."""
    board = get_board()
    try:
        deleted = board.delete_claim(args.claim_id)
    except ValidationException as e:
        output_error(e.message)
        return 1
    finally:
        board.store.close()

    if not deleted:
        output_error("Failed to delete rumor (see log)")
        return 1
    print(f"🗑️  Deleted {args.claim_id}")
    return 0
