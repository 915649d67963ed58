#!/usr/bin/env python3
"""
RAC CLI — Inspect a RoyaltyAutoClaim storage region.

Usage:
    python -m tools.rac_cli status <title> [--db PATH]
    python -m tools.rac_cli submissions [--db PATH]
    python -m tools.rac_cli events [--name NAME] [--json] [--db PATH]
    python -m tools.rac_cli verify [--db PATH]
    python -m tools.rac_cli selectors

Commands:
    status       — Show one submission and whether it is claimable
    submissions  — List every stored submission
    events       — Render the event log
    verify       — Recompute event hashes and check chain integrity
    selectors    — Print the selector table used for relayed requests

The database path defaults to $RAC_DB_PATH (see rac_core.config.Settings).
"""

import argparse
import logging
import os
import sys

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rac_core.abi import FUNCTIONS
from rac_core.chain import verify_event_chain
from rac_core.config import REQUIRED_REVIEWS, Settings
from rac_core.record import SubmissionStatus
from rac_core.storage import Storage


STATUS_ICONS = {
    SubmissionStatus.NOT_EXIST: "·",
    SubmissionStatus.REGISTERED: "📝",
    SubmissionStatus.CLAIMED: "💰",
}


def fmt_hash(h: str | None, length: int = 16) -> str:
    """Abbreviate a hash for display."""
    if h is None:
        return "(genesis)"
    return f"{h[:length]}..."


# ============================================================
# Commands
# ============================================================

def cmd_status(storage: Storage, title: str) -> None:
    """Show one submission."""
    sub = storage.get_submission(title)
    icon = STATUS_ICONS[sub.status]
    print(f"━━━ Submission: {title!r} ━━━")
    print(f"  {icon} Status:    {sub.status.value}")
    print(f"  Recipient:  {sub.royalty_recipient}")
    print(f"  Reviews:    {sub.review_count}")
    print(f"  Level sum:  {sub.total_royalty_level}")
    if sub.review_count:
        print(f"  Average:    {sub.total_royalty_level / sub.review_count:.2f}")
    claimable = (
        sub.status == SubmissionStatus.REGISTERED
        and sub.review_count >= REQUIRED_REVIEWS
    )
    print(f"  Claimable:  {'yes' if claimable else 'no'}")


def cmd_submissions(storage: Storage) -> None:
    subs = storage.list_submissions()
    if not subs:
        print("  (no submissions)")
        return
    for sub in subs:
        icon = STATUS_ICONS[sub.status]
        print(f"  {icon} {sub.title:30s} {sub.status.value:11s} "
              f"reviews={sub.review_count} sum={sub.total_royalty_level}")


def cmd_events(storage: Storage, name: str = "", as_json: bool = False) -> None:
    events = storage.get_events(name)
    if not events:
        print("  (empty event log)")
        return
    if as_json:
        for event in events:
            print(event.to_json())
        return
    for event in events:
        ts = event.timestamp.isoformat()[:19] + "Z"
        print(f"\n[{event.sequence_number}] {event.name} | {ts}")
        for key, value in event.data.items():
            print(f"    {key}: {value}")


def cmd_verify(storage: Storage) -> None:
    events = storage.get_events()
    result = verify_event_chain(events)
    print(f"━━━ Event Log Verification ━━━")
    print(f"Events: {result['total_events']}")
    for item in result["invalid_events"]:
        print(f"  ✗ seq #{item['sequence_number']} HASH MISMATCH "
              f"({item['name']}, stored {fmt_hash(item['stored_hash'])})")
    for item in result["broken_links"]:
        print(f"  ✗ seq #{item['sequence_number']} CHAIN LINK BROKEN "
              f"(expected prev: {fmt_hash(item['expected_previous_hash'])})")
    for item in result["sequence_gaps"]:
        print(f"  ✗ SEQUENCE GAP (expected {item['expected_sequence']}, "
              f"got {item['actual_sequence']})")
    print()
    if result["chain_valid"]:
        print(f"  Result: ✓ LOG INTACT ({result['total_events']} events verified)")
    else:
        print("  Result: ✗ LOG COMPROMISED")
        sys.exit(1)


def cmd_selectors() -> None:
    for spec in FUNCTIONS:
        print(f"  0x{spec.selector.hex()}  {spec.auth.value:8s}  {spec.signature}")


# ============================================================
# Main
# ============================================================

def main(argv: list[str] | None = None) -> None:
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(
        description="RAC CLI — RoyaltyAutoClaim storage inspector",
        prog="python -m tools.rac_cli",
    )
    parser.add_argument("--db", default=settings.db_path,
                        help="Path to the storage region (SQLite file)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_status = sub.add_parser("status", help="Show one submission")
    p_status.add_argument("title")
    sub.add_parser("submissions", help="List all submissions")
    p_events = sub.add_parser("events", help="Render the event log")
    p_events.add_argument("--name", default="", help="Only events with this name")
    p_events.add_argument("--json", action="store_true",
                          help="Print each event as stored JSON")
    sub.add_parser("verify", help="Check event log integrity")
    sub.add_parser("selectors", help="Print the selector table")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.command == "selectors":
        cmd_selectors()
        return

    if not os.path.exists(args.db):
        print(f"  ERROR: File not found: {args.db}")
        sys.exit(1)

    with Storage(args.db) as storage:
        if args.command == "status":
            cmd_status(storage, args.title)
        elif args.command == "submissions":
            cmd_submissions(storage)
        elif args.command == "events":
            cmd_events(storage, args.name, args.json)
        elif args.command == "verify":
            cmd_verify(storage)


if __name__ == "__main__":
    main()
