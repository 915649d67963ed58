"""
rac_core/token.py — Fungible token interface used for payouts.

The contract consumes a token only through balance_of, decimals and
transfer.  MockToken is a minimal in-memory implementation for demos and
tests; production deployments point the contract at a real token.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict

from .crypto import normalize_address
from .errors import TokenTransferFailed


class FungibleToken(ABC):
    """Standard fungible-token surface (balance, decimals, transfer)."""

    address: str

    @abstractmethod
    def decimals(self) -> int:
        ...

    @abstractmethod
    def balance_of(self, account: str) -> int:
        ...

    @abstractmethod
    def transfer(self, to: str, amount: int, *, sender: str) -> bool:
        """Move amount from sender to `to`; False when it cannot."""


def safe_transfer(token: FungibleToken, to: str, amount: int, *, sender: str) -> None:
    """Transfer or raise TokenTransferFailed; a False return is a failure."""
    if not token.transfer(to, amount, sender=sender):
        raise TokenTransferFailed(token.address)


class MockToken(FungibleToken):
    """In-memory token with owner-less minting."""

    def __init__(self, address: str, name: str = "Mock Token",
                 symbol: str = "MOCK", decimals: int = 18) -> None:
        self.address = normalize_address(address)
        self.name = name
        self.symbol = symbol
        self._decimals = decimals
        self._balances: Dict[str, int] = defaultdict(int)

    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def total_supply(self) -> int:
        return sum(self._balances.values())

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._balances[normalize_address(to)] += amount

    def transfer(self, to: str, amount: int, *, sender: str) -> bool:
        sender = normalize_address(sender)
        to = normalize_address(to)
        if amount < 0 or self._balances.get(sender, 0) < amount:
            return False
        self._balances[sender] -= amount
        self._balances[to] += amount
        return True
