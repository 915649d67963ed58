"""
rac_core/record.py — RoyaltyAutoClaim Data Model

Canonical data structures for submissions, relayed requests and ledger
events.  These Pydantic models are the single source of truth: storage
rows and request hashes are derived from them, never hand-assembled.
"""

# NOTE: `from __future__ import annotations` is intentionally omitted.
# Pydantic v2 resolves the field annotations at class creation.

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .config import ROYALTY_LEVELS, ZERO_ADDRESS
from .errors import MalformedCallData


_ADDRESS_PATTERN = r"^0x[0-9a-f]{40}$"
_HEX_PATTERN = r"^(?:[0-9a-f]{2})*$"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SubmissionStatus(str, Enum):
    """Lifecycle states of a submission.

    NOT_EXIST → REGISTERED → CLAIMED, with REGISTERED → NOT_EXIST only
    through an admin revoke (the record is deleted).  CLAIMED is terminal.
    """
    NOT_EXIST = "not_exist"
    REGISTERED = "registered"
    CLAIMED = "claimed"


class RoyaltyLevel(int, Enum):
    """The only weights a reviewer may assign."""
    LEVEL_20 = 20
    LEVEL_40 = 40
    LEVEL_60 = 60
    LEVEL_80 = 80

    @classmethod
    def is_valid(cls, level: Any) -> bool:
        return (
            isinstance(level, int)
            and not isinstance(level, bool)
            and level in ROYALTY_LEVELS
        )


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

class Submission(BaseModel):
    """Per-title submission record.

    A record in NOT_EXIST state with non-zero totals can exist: reviews
    are accumulated without checking the submission's status.
    """

    title: str
    royalty_recipient: str = Field(
        default=ZERO_ADDRESS,
        pattern=_ADDRESS_PATTERN,
    )
    total_royalty_level: int = Field(default=0, ge=0)
    review_count: int = Field(default=0, ge=0)
    status: SubmissionStatus = SubmissionStatus.NOT_EXIST

    @classmethod
    def missing(cls, title: str) -> "Submission":
        """The zero-valued record returned for an unknown title."""
        return cls(title=title)


# ---------------------------------------------------------------------------
# Relayed requests
# ---------------------------------------------------------------------------

class RequestSignature(BaseModel):
    """Signature over a request's signed-message digest.

    Self-describing: the algorithm and the signer's public key travel
    with the signature value, so the signer address can be recovered
    without any out-of-band key lookup.
    """

    algorithm: str = Field(default="Ed25519")
    public_key: str = Field(
        ...,
        description="Hex-encoded raw public key of the signer.",
        pattern=_HEX_PATTERN,
    )
    value: str = Field(
        ...,
        description="Hex-encoded signature bytes.",
        pattern=_HEX_PATTERN,
    )


class UserOperation(BaseModel):
    """A request submitted by the trusted relay on behalf of a signer."""

    sender: str = Field(
        ...,
        description="Account (contract) address the request targets.",
        pattern=_ADDRESS_PATTERN,
    )
    nonce: int = Field(default=0, ge=0)
    call_data: str = Field(
        default="",
        description="Hex-encoded selector + arguments.",
        pattern=_HEX_PATTERN,
    )
    paymaster_and_data: str = Field(
        default="",
        description="Hex-encoded fee-delegation data. Must be empty.",
        pattern=_HEX_PATTERN,
    )
    signature: Optional[RequestSignature] = Field(default=None)

    @field_validator("sender", mode="before")
    @classmethod
    def lowercase_sender(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @property
    def call_data_bytes(self) -> bytes:
        try:
            return bytes.fromhex(self.call_data)
        except ValueError as e:
            raise MalformedCallData(f"call data is not hex ({e})") from e

    def hashable_dict(self) -> dict:
        """The request without its signature (what gets signed)."""
        d = self.model_dump(mode="json")
        d.pop("signature", None)
        return d


# ---------------------------------------------------------------------------
# Ledger events
# ---------------------------------------------------------------------------

class LedgerEvent(BaseModel):
    """One entry in the contract's append-only, hash-chained event log.

    event_hash is populated by chain.py at append time, not by the caller.
    """

    sequence_number: int = Field(..., ge=0)
    name: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    previous_hash: Optional[str] = Field(default=None)
    event_hash: Optional[str] = Field(default=None)

    @model_validator(mode="after")
    def validate_genesis(self) -> "LedgerEvent":
        if self.sequence_number == 0 and self.previous_hash is not None:
            raise ValueError(
                "Genesis event (sequence_number=0) must not have a previous_hash"
            )
        if self.sequence_number > 0 and self.previous_hash is None:
            raise ValueError("Non-genesis event must have a previous_hash")
        return self

    def hashable_dict(self) -> dict:
        d = self.model_dump(mode="json")
        d.pop("event_hash", None)
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=indent)
