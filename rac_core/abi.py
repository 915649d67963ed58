"""
rac_core/abi.py — Function table for selector dispatch.

Every operation that can be reached through call data (directly via
execute() or through the relay) is listed here with its signature,
parameter types, the contract method it maps to and the authorization
class the request validator enforces for it.

The table is built once at import.  Selectors not in the table are
rejected by both the validator and the dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from .canonical import (
    decode_arguments,
    encode_arguments,
    function_selector,
    split_call_data,
)
from .errors import UnsupportedSelector


class AuthClass(str, Enum):
    """Who must have signed a relayed request for a selector."""
    OWNER = "owner"        # signer must be the owner
    ADMIN = "admin"        # signer must be the admin
    REVIEWER = "reviewer"  # signer must be a reviewer; signer is handed off
    OPEN = "open"          # any signer


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    param_types: Tuple[str, ...]
    method: str
    auth: AuthClass

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.param_types)})"

    @property
    def selector(self) -> bytes:
        return function_selector(self.signature)


FUNCTIONS: Tuple[FunctionSpec, ...] = (
    # Owner-class
    FunctionSpec("upgradeToAndCall", ("address", "bytes"),
                 "upgrade_to_and_call", AuthClass.OWNER),
    FunctionSpec("changeAdmin", ("address",),
                 "change_admin", AuthClass.OWNER),
    FunctionSpec("changeRoyaltyToken", ("address",),
                 "change_royalty_token", AuthClass.OWNER),
    FunctionSpec("transferOwnership", ("address",),
                 "transfer_ownership", AuthClass.OWNER),
    FunctionSpec("emergencyWithdraw", ("address", "uint256"),
                 "emergency_withdraw", AuthClass.OWNER),
    # Admin-class
    FunctionSpec("updateReviewers", ("address[]", "bool[]"),
                 "update_reviewers", AuthClass.ADMIN),
    FunctionSpec("registerSubmission", ("string", "address"),
                 "register_submission", AuthClass.ADMIN),
    FunctionSpec("updateRoyaltyRecipient", ("string", "address"),
                 "update_royalty_recipient", AuthClass.ADMIN),
    FunctionSpec("revokeSubmission", ("string",),
                 "revoke_submission", AuthClass.ADMIN),
    # Reviewer-class
    FunctionSpec("reviewSubmission", ("string", "uint256"),
                 "review_submission", AuthClass.REVIEWER),
    # Open
    FunctionSpec("claimRoyalty", ("string",),
                 "claim_royalty", AuthClass.OPEN),
)

SELECTOR_TABLE: Dict[bytes, FunctionSpec] = {f.selector: f for f in FUNCTIONS}
_BY_NAME: Dict[str, FunctionSpec] = {f.name: f for f in FUNCTIONS}

if len(SELECTOR_TABLE) != len(FUNCTIONS):
    raise RuntimeError("Selector collision in function table")


def lookup(selector: bytes) -> FunctionSpec:
    """Resolve a selector or raise UnsupportedSelector."""
    spec = SELECTOR_TABLE.get(selector)
    if spec is None:
        raise UnsupportedSelector(selector)
    return spec


def encode_function_data(name: str, *args: Any) -> bytes:
    """Build call data for a table function, e.g.
    encode_function_data("registerSubmission", "title", recipient).
    """
    spec = _BY_NAME.get(name)
    if spec is None:
        raise ValueError(f"Unknown function: {name}")
    return spec.selector + encode_arguments(spec.param_types, args)


def decode_function_data(call_data: bytes) -> tuple[FunctionSpec, list[Any]]:
    """Split call data into its table entry and decoded arguments."""
    selector, payload = split_call_data(call_data)
    spec = lookup(selector)
    return spec, decode_arguments(spec.param_types, payload)
