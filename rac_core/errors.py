"""
rac_core/errors.py — Error taxonomy for RoyaltyAutoClaim.

Every error aborts the call frame that raised it; no partial state
survives and nothing is retried.  Errors that name an offending value
(caller, level, selector) carry it as an attribute so callers and the
relay can report it without parsing messages.
"""


class RoyaltyAutoClaimError(Exception):
    """Base class for all contract-level failures."""


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------

class ZeroAddress(RoyaltyAutoClaimError):
    def __init__(self) -> None:
        super().__init__("Zero address not allowed")


class InvalidArrayLength(RoyaltyAutoClaimError):
    def __init__(self) -> None:
        super().__init__("Array lengths must be equal and non-zero")


class EmptyTitle(RoyaltyAutoClaimError):
    def __init__(self) -> None:
        super().__init__("Submission title must not be empty")


class InvalidRoyaltyLevel(RoyaltyAutoClaimError):
    def __init__(self, level: int) -> None:
        self.level = level
        super().__init__(f"Invalid royalty level: {level}")


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

class Unauthorized(RoyaltyAutoClaimError):
    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(f"Unauthorized: {caller}")


class RenounceOwnershipDisabled(RoyaltyAutoClaimError):
    def __init__(self) -> None:
        super().__init__("Renouncing ownership is disabled")


class AlreadyInitialized(RoyaltyAutoClaimError):
    def __init__(self) -> None:
        super().__init__("Contract is already initialized")


# ---------------------------------------------------------------------------
# Submission lifecycle
# ---------------------------------------------------------------------------

class AlreadyRegistered(RoyaltyAutoClaimError):
    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"Submission already registered: {title!r}")


class SubmissionNotExist(RoyaltyAutoClaimError):
    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"Submission does not exist: {title!r}")


class SubmissionNotRegistered(RoyaltyAutoClaimError):
    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"Submission is not in registered state: {title!r}")


class AlreadyReviewed(RoyaltyAutoClaimError):
    def __init__(self, title: str, reviewer: str) -> None:
        self.title = title
        self.reviewer = reviewer
        super().__init__(f"{reviewer} already reviewed {title!r}")


class NotEnoughReviews(RoyaltyAutoClaimError):
    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"Not enough reviews to claim {title!r}")


class AlreadyClaimed(RoyaltyAutoClaimError):
    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"Royalty already claimed for {title!r}")


# ---------------------------------------------------------------------------
# Payout
# ---------------------------------------------------------------------------

class ReentrantCall(RoyaltyAutoClaimError):
    def __init__(self) -> None:
        super().__init__("Reentrant call")


class TokenTransferFailed(RoyaltyAutoClaimError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"Token transfer failed: {token}")


class NativeTransferFailed(RoyaltyAutoClaimError):
    def __init__(self) -> None:
        super().__init__("Native transfer failed")


# ---------------------------------------------------------------------------
# Relayed requests
# ---------------------------------------------------------------------------

class NotFromRelay(RoyaltyAutoClaimError):
    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(f"Not from relay: {caller}")


class ForbiddenFeeDelegation(RoyaltyAutoClaimError):
    def __init__(self) -> None:
        super().__init__("Fee delegation (paymaster data) is forbidden")


class UnsupportedSelector(RoyaltyAutoClaimError):
    def __init__(self, selector: bytes) -> None:
        self.selector = selector
        super().__init__(f"Unsupported selector: 0x{selector.hex()}")


class InvalidSignature(RoyaltyAutoClaimError):
    def __init__(self, reason: str = "signature does not verify") -> None:
        super().__init__(f"Invalid signature: {reason}")


class MalformedCallData(RoyaltyAutoClaimError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Malformed call data: {reason}")
