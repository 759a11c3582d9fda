"""Vote commands: verify/dispute a rumor and settle judged outcomes."""

from __future__ import annotations

import argparse
import asyncio

from ...core.exceptions import ValidationException
from ...core.models import VoteKind
from ..output import MiningProgress, output_error, output_json
from ..utils import get_board


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the vote commands on the CLI parser."""
    vote_parser = subparsers.add_parser("vote", help="Verify or dispute a rumor")
    vote_parser.add_argument("claim_id", help="Rumor ID")
    vote_parser.add_argument("kind", choices=[k.value for k in VoteKind], help="Your vote")
    vote_parser.add_argument("--json", action="store_true", help="Output as JSON")
    vote_parser.set_defaults(func=cmd_vote)

    settle_parser = subparsers.add_parser(
        "settle",
        help="Record the real-world outcome of a rumor and adjust voter reputations",
    )
    settle_parser.add_argument("claim_id", help="Rumor ID")
    settle_parser.add_argument(
        "resolution",
        choices=[k.value for k in VoteKind],
        help="'verify' if the rumor turned out true, 'dispute' if false",
    )
    settle_parser.set_defaults(func=cmd_settle)


def cmd_vote(args: argparse.Namespace) -> int:
    """Mine proof of work and cast a vote."""
    board = get_board()
    progress = MiningProgress(enabled=not args.json)
    try:
        vote = asyncio.run(board.cast_vote(args.claim_id, args.kind, on_progress=progress))
        trust = board.trust_for(args.claim_id) if vote is not None else None
    except ValidationException as e:
        output_error(e.message)
        return 1
    finally:
        progress.done()
        board.store.close()

    if vote is None:
        output_error("Vote not recorded (see log)")
        return 1

    if args.json:
        output_json({**vote.to_record(), "trust_percentage": trust.percentage if trust else None})
    else:
        print(f"✅ {vote.kind.value.capitalize()} recorded on {vote.claim_id}")
        if trust is not None:
            print(f"   Trust now {trust.percentage:.1f}% (+{trust.verify_count}/-{trust.dispute_count})")
    return 0


def cmd_settle(args: argparse.Namespace) -> int:
    """Judge every vote on a rumor against the given resolution."""
    board = get_board()
    try:
        settled = board.settle_claim(args.claim_id, args.resolution)
    except ValidationException as e:
        output_error(e.message)
        return 1
    finally:
        board.store.close()
    print(f"⚖️  Settled {settled} vote(s) on {args.claim_id} as {args.resolution}")
    return 0
