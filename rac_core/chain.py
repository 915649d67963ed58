"""
rac_core/chain.py — Request hashing and the hash-chained event log.

Request hash:  canonicalize(request without signature, relay, chain id)
               → SHA-256
Seal event:    set previous_hash → canonicalize → SHA-256
Verify:        walk the log, recompute hashes, check links and sequence

The event log is per contract and append-only: every successful
state-changing operation appends its events inside the same atomic frame,
so a rolled-back operation leaves no event behind.
"""

from __future__ import annotations

from typing import Optional

from .canonical import canonicalize
from .crypto import sha256_hex
from .record import LedgerEvent, UserOperation


# ---------------------------------------------------------------------------
# Request hashing
# ---------------------------------------------------------------------------

def compute_request_hash(
    request: UserOperation,
    relay_address: str,
    chain_id: int,
) -> str:
    """Hash a relayed request, binding it to one relay and one chain."""
    payload = {
        "request": request.hashable_dict(),
        "relay": relay_address,
        "chain_id": chain_id,
    }
    return sha256_hex(canonicalize(payload))


# ---------------------------------------------------------------------------
# Sealing
# ---------------------------------------------------------------------------

def seal_event(event: LedgerEvent) -> LedgerEvent:
    """Compute event_hash over the canonical event.

    The caller sets sequence_number and previous_hash (storage knows the
    chain head).  Returns a new LedgerEvent; the input is not mutated.
    """
    event_hash = sha256_hex(canonicalize(event.hashable_dict()))
    return event.model_copy(update={"event_hash": event_hash})


def verify_event(event: LedgerEvent) -> bool:
    """True if the stored event_hash matches the recomputed one."""
    expected = sha256_hex(canonicalize(event.hashable_dict()))
    return expected == event.event_hash


# ---------------------------------------------------------------------------
# Log verification
# ---------------------------------------------------------------------------

def verify_event_chain(events: list[LedgerEvent]) -> dict:
    """Verify an entire event log.

    For each event in sequence order:
    - recomputes the hash
    - checks previous_hash links to the prior event_hash
    - checks sequence_number continuity from 0

    Returns a result dict with chain_valid and per-category findings.
    """
    result = {
        "chain_valid": True,
        "total_events": len(events),
        "broken_links": [],
        "invalid_events": [],
        "sequence_gaps": [],
    }

    prev_hash: Optional[str] = None
    expected_seq = 0

    for event in sorted(events, key=lambda e: e.sequence_number):
        seq = event.sequence_number

        if not verify_event(event):
            result["chain_valid"] = False
            result["invalid_events"].append({
                "sequence_number": seq,
                "name": event.name,
                "stored_hash": event.event_hash,
            })

        if event.previous_hash != prev_hash:
            result["chain_valid"] = False
            result["broken_links"].append({
                "sequence_number": seq,
                "expected_previous_hash": prev_hash,
                "actual_previous_hash": event.previous_hash,
            })

        if seq != expected_seq:
            result["chain_valid"] = False
            result["sequence_gaps"].append({
                "expected_sequence": expected_seq,
                "actual_sequence": seq,
            })

        # Link against the STORED hash so a single tampered event shows up
        # once as invalid, not again as a broken link on its successor.
        prev_hash = event.event_hash
        expected_seq = seq + 1

    return result
