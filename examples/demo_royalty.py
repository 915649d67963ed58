#!/usr/bin/env python3
"""
RoyaltyAutoClaim Demo — Register, review and claim through the relay

Demonstrates the full lifecycle:
  1. Deploy a token and the contract; fund the contract
  2. Admin registers a submission (relayed, signed by the admin)
  3. Two reviewers review it at levels 20 and 40 (relayed)
  4. The recipient claims: (20 + 40) / 2 = 30 tokens
  5. A second claim is rejected; the event log is verified

Run:
    python examples/demo_royalty.py [--db PATH]

Requirements:
    pip install pydantic cryptography jcs

No network, no keys on disk: every key is generated for the run.
"""

import argparse
import logging
import os
import sys

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rac_core import (
    MockToken,
    Runtime,
    Settings,
    Storage,
    encode_function_data,
    generate_keypair,
    public_key_to_address,
    verify_event_chain,
)
from rac_contract import RoyaltyAutoClaim
from rac_relay import RelayClient, TrustedRelay

CONTRACT_ADDRESS = "0x" + "ac" * 20
TOKEN_ADDRESS = "0x" + "70" * 20
UNIT = 10 ** 18


def _account():
    private_key, public_key = generate_keypair()
    return private_key, public_key_to_address(public_key)


def run(db_path: str) -> None:
    runtime = Runtime(Storage(db_path))
    token = MockToken(TOKEN_ADDRESS)
    runtime.deploy(TOKEN_ADDRESS, token)

    owner_key, owner = _account()
    reviewer2_key, reviewer2 = _account()
    recipient = owner

    rac = RoyaltyAutoClaim(runtime, CONTRACT_ADDRESS)
    # The owner doubles as admin and first reviewer, as in the Sepolia run
    rac.initialize(owner, owner, TOKEN_ADDRESS, [owner, reviewer2])
    token.mint(CONTRACT_ADDRESS, 1000 * UNIT)

    relay = TrustedRelay(runtime)
    as_owner = RelayClient(relay, CONTRACT_ADDRESS, owner_key)
    as_reviewer2 = as_owner.connect(reviewer2_key)

    print("━━━ RoyaltyAutoClaim demo ━━━")
    print(f"Contract:  {CONTRACT_ADDRESS}")
    print(f"Owner:     {owner}")
    print(f"Reviewer2: {reviewer2}")

    steps = [
        ("register", as_owner,
         encode_function_data("registerSubmission", "test_title", recipient)),
        ("review 20", as_owner,
         encode_function_data("reviewSubmission", "test_title", 20)),
        ("review 40", as_reviewer2,
         encode_function_data("reviewSubmission", "test_title", 40)),
        ("claim", as_owner,
         encode_function_data("claimRoyalty", "test_title")),
        ("claim again", as_owner,
         encode_function_data("claimRoyalty", "test_title")),
    ]

    before = token.balance_of(recipient)
    for label, client, call_data in steps:
        receipt = client.send_calldata(call_data)
        mark = "✓" if receipt.success else "✗"
        detail = "" if receipt.success else f" ({receipt.revert_reason})"
        print(f"  {mark} {label:12s} hash {receipt.request_hash[:16]}...{detail}")

    paid = token.balance_of(recipient) - before
    print(f"\nRecipient received {paid / UNIT:g} tokens")
    print(f"Status: {rac.submissions('test_title').status.value}")

    result = verify_event_chain(rac.events())
    print(f"Event log: {result['total_events']} events, "
          f"{'intact' if result['chain_valid'] else 'COMPROMISED'}")


def main() -> None:
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="RoyaltyAutoClaim demo")
    parser.add_argument("--db", default=":memory:",
                        help="SQLite path (default: in-memory)")
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level,
                        format="%(name)s %(levelname)s %(message)s")
    run(args.db)


if __name__ == "__main__":
    main()
