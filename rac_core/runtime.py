"""
rac_core/runtime.py — Serialized execution environment.

One top-level request runs to completion before the next begins.  The
runtime provides what the contract needs from its surroundings:

- frame():   an all-or-nothing call frame (nested SQLite savepoints);
             transient slots are wiped when the outermost frame exits
- tstore/tload: call-scoped values, keyed by (account, slot)
- native balances and best-effort value sends
- an account registry, so an address (e.g. the payout token) resolves
  to the object deployed there

Token and native balances sit outside the storage region.  Callers move
value only as the last step of a frame.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Tuple

from .crypto import normalize_address
from .storage import Storage

logger = logging.getLogger("rac_core.runtime")


class Runtime:
    """Execution environment shared by the contract, token and relay."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._depth = 0
        self._transient: Dict[Tuple[str, str], Any] = {}
        self._native: Dict[str, int] = defaultdict(int)
        self._accounts: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Call frames
    # ------------------------------------------------------------------

    @property
    def depth(self) -> int:
        """Number of open frames; 0 outside any execution."""
        return self._depth

    @contextmanager
    def frame(self) -> Iterator[None]:
        """Open a call frame.

        Storage writes inside the frame commit only if the frame exits
        normally.  When the outermost frame exits, success or failure,
        every transient slot is cleared.
        """
        outermost = self._depth == 0
        self._depth += 1
        try:
            with self.storage.savepoint():
                yield
        finally:
            self._depth -= 1
            if outermost and self._transient:
                logger.debug(f"Clearing {len(self._transient)} transient slot(s)")
                self._transient.clear()

    # ------------------------------------------------------------------
    # Transient slots
    # ------------------------------------------------------------------

    def tstore(self, account: str, slot: str, value: Any) -> None:
        if value is None:
            self._transient.pop((account, slot), None)
        else:
            self._transient[(account, slot)] = value

    def tload(self, account: str, slot: str) -> Optional[Any]:
        return self._transient.get((account, slot))

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def deploy(self, address: str, account: Any) -> None:
        """Register the object living at address."""
        self._accounts[normalize_address(address)] = account

    def resolve(self, address: str) -> Any:
        try:
            return self._accounts[normalize_address(address)]
        except KeyError:
            raise LookupError(f"No account deployed at {address}") from None

    # ------------------------------------------------------------------
    # Native balances
    # ------------------------------------------------------------------

    def balance_of(self, address: str) -> int:
        return self._native.get(normalize_address(address), 0)

    def mint_native(self, address: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._native[normalize_address(address)] += amount

    def send_value(self, sender: str, to: str, amount: int) -> bool:
        """Move native value; False (no change) when it cannot be covered."""
        sender = normalize_address(sender)
        to = normalize_address(to)
        if amount < 0 or self._native.get(sender, 0) < amount:
            return False
        self._native[sender] -= amount
        self._native[to] += amount
        return True
