"""
rac_contract — The RoyaltyAutoClaim contract.

An administrator registers content submissions, reviewers each assign a
royalty level, and once two reviews are in, anyone can trigger the claim
that pays the averaged royalty to the submission's recorded recipient.

Sections:
- RoleRegistry:      owner / admin / reviewers / payout token
- SubmissionLedger:  register, update recipient, revoke
- ReviewAggregator:  one review per (title, reviewer), running totals
- PayoutEngine:      claim (non-reentrant), emergency withdraw
- RequestAuthorizer: validate_user_op for requests submitted by the
                     trusted relay, plus selector dispatch (execute)

Every external method takes the direct caller as `sender` and runs in
its own Runtime frame: it either commits all of its storage writes and
events, or none of them.

Two call paths:
    Direct:   caller → method(sender=caller) → role check → mutate
    Relayed:  relay → validate_user_op (recover signer, check role,
              hand reviewer identity to the transient slot)
              relay → execute(call_data, sender=relay) → method
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

from rac_core.abi import AuthClass, decode_function_data, lookup
from rac_core.canonical import split_call_data
from rac_core.chain import seal_event
from rac_core.config import (
    NATIVE_TOKEN,
    REENTRANCY_GUARD_SLOT,
    RELAY_ADDRESS,
    REQUIRED_REVIEWS,
    SIG_VALIDATION_SUCCESS,
    TRANSIENT_SIGNER_SLOT,
    ZERO_ADDRESS,
)
from rac_core.crypto import (
    normalize_address,
    recover_signer,
    to_signed_message_digest,
)
from rac_core.errors import (
    AlreadyClaimed,
    AlreadyInitialized,
    AlreadyRegistered,
    AlreadyReviewed,
    EmptyTitle,
    ForbiddenFeeDelegation,
    InvalidArrayLength,
    InvalidRoyaltyLevel,
    NativeTransferFailed,
    NotEnoughReviews,
    NotFromRelay,
    ReentrantCall,
    RenounceOwnershipDisabled,
    RoyaltyAutoClaimError,
    SubmissionNotExist,
    SubmissionNotRegistered,
    Unauthorized,
    ZeroAddress,
)
from rac_core.record import (
    LedgerEvent,
    RoyaltyLevel,
    Submission,
    SubmissionStatus,
    UserOperation,
)
from rac_core.runtime import Runtime
from rac_core.token import FungibleToken, safe_transfer

logger = logging.getLogger("rac_contract")


def external(method):
    """Run an external method inside its own all-or-nothing frame."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.runtime.frame():
            return method(self, *args, **kwargs)
    return wrapper


class RoyaltyAutoClaim:
    """Royalty submission, review and payout contract.

    Args:
        runtime: Execution environment; its storage is this contract's
                 storage region.
        address: Address the contract is deployed at.  The contract is
                 registered in the runtime under this address.
    """

    def __init__(self, runtime: Runtime, address: str) -> None:
        self.runtime = runtime
        self.storage = runtime.storage
        self.address = normalize_address(address)
        runtime.deploy(self.address, self)

    # ==================================================================
    # Initialization
    # ==================================================================

    @external
    def initialize(
        self,
        owner: str,
        admin: str,
        token: str,
        reviewers: Sequence[str] = (),
    ) -> None:
        """One-time setup.  Raises AlreadyInitialized on a second call."""
        if self.storage.get_config("initialized"):
            raise AlreadyInitialized()
        owner = self._nonzero(owner)
        admin = self._nonzero(admin)
        token = self._nonzero(token)

        self.storage.set_config("initialized", "1")
        self.storage.set_config("owner", owner)
        self.storage.set_config("admin", admin)
        self.storage.set_config("token", token)
        self.storage.set_config("implementation", self.address)
        for reviewer in reviewers:
            self.storage.set_reviewer(normalize_address(reviewer), True)

        self._emit("Initialized", version=1)
        self._emit("OwnershipTransferred",
                   previous_owner=ZERO_ADDRESS, new_owner=owner)
        logger.info(f"Initialized contract {self.address} (owner {owner}, "
                    f"admin {admin}, {len(reviewers)} reviewer(s))")

    # ==================================================================
    # Read-only projections
    # ==================================================================

    def owner(self) -> str:
        return self.storage.get_config("owner") or ZERO_ADDRESS

    def admin(self) -> str:
        return self.storage.get_config("admin") or ZERO_ADDRESS

    def token(self) -> str:
        return self.storage.get_config("token") or ZERO_ADDRESS

    def implementation(self) -> str:
        return self.storage.get_config("implementation") or ZERO_ADDRESS

    def entry_point(self) -> str:
        """The fixed trusted relay address."""
        return RELAY_ADDRESS

    def is_reviewer(self, address: str) -> bool:
        return self.storage.is_reviewer(normalize_address(address))

    def submissions(self, title: str) -> Submission:
        return self.storage.get_submission(title)

    def has_reviewed(self, title: str, reviewer: str) -> bool:
        return self.storage.has_reviewed(title, normalize_address(reviewer))

    def is_submission_claimable(self, title: str) -> bool:
        return self._claim_error(self.storage.get_submission(title)) is None

    def get_royalty(self, title: str) -> int:
        """Payout the claim would make now, or 0 when not claimable."""
        submission = self.storage.get_submission(title)
        if self._claim_error(submission) is not None:
            return 0
        return self._royalty_amount(submission)

    def events(self, name: str = "") -> List[LedgerEvent]:
        return self.storage.get_events(name)

    # ==================================================================
    # RoleRegistry (owner-class)
    # ==================================================================

    @external
    def upgrade_to_and_call(
        self, new_implementation: str, data: bytes = b"", *, sender: str
    ) -> None:
        """Point the storage region at a new implementation.

        The region itself is untouched; `data`, when present, is executed
        with the same sender right after the switch.
        """
        self._require_owner(sender)
        new_implementation = self._nonzero(new_implementation)
        self.storage.set_config("implementation", new_implementation)
        self._emit("Upgraded", implementation=new_implementation)
        logger.info(f"Upgraded {self.address} to {new_implementation}")
        if data:
            self.execute(data, sender=sender)

    @external
    def change_admin(self, new_admin: str, *, sender: str) -> None:
        self._require_owner(sender)
        new_admin = self._nonzero(new_admin)
        old_admin = self.admin()
        self.storage.set_config("admin", new_admin)
        self._emit("AdminChanged", old_admin=old_admin, new_admin=new_admin)
        logger.info(f"Admin changed: {old_admin} -> {new_admin}")

    @external
    def change_royalty_token(self, new_token: str, *, sender: str) -> None:
        self._require_owner(sender)
        new_token = self._nonzero(new_token)
        old_token = self.token()
        self.storage.set_config("token", new_token)
        self._emit("RoyaltyTokenChanged", old_token=old_token, new_token=new_token)
        logger.info(f"Royalty token changed: {old_token} -> {new_token}")

    @external
    def transfer_ownership(self, new_owner: str, *, sender: str) -> None:
        self._require_owner(sender)
        new_owner = self._nonzero(new_owner)
        previous = self.owner()
        self.storage.set_config("owner", new_owner)
        self._emit("OwnershipTransferred",
                   previous_owner=previous, new_owner=new_owner)
        logger.info(f"Ownership transferred: {previous} -> {new_owner}")

    def renounce_ownership(self, *, sender: Optional[str] = None) -> None:
        """Always fails: the owner role can never be emptied."""
        raise RenounceOwnershipDisabled()

    # ==================================================================
    # RoleRegistry (admin-class)
    # ==================================================================

    @external
    def update_reviewers(
        self,
        reviewers: Sequence[str],
        status: Sequence[bool],
        *,
        sender: str,
    ) -> None:
        """Bulk set/unset reviewer membership; last write for an address wins."""
        self._require_admin(sender)
        if len(reviewers) != len(status) or len(reviewers) == 0:
            raise InvalidArrayLength()
        for reviewer, flag in zip(reviewers, status):
            reviewer = normalize_address(reviewer)
            self.storage.set_reviewer(reviewer, bool(flag))
            self._emit("ReviewerStatusUpdated", reviewer=reviewer, status=bool(flag))
        logger.info(f"Updated {len(reviewers)} reviewer flag(s)")

    # ==================================================================
    # SubmissionLedger (admin-class)
    # ==================================================================

    @external
    def register_submission(
        self, title: str, royalty_recipient: str, *, sender: str
    ) -> None:
        self._require_admin(sender)
        if not title:
            raise EmptyTitle()
        royalty_recipient = self._nonzero(royalty_recipient)
        current = self.storage.get_submission(title)
        if current.status != SubmissionStatus.NOT_EXIST:
            raise AlreadyRegistered(title)

        self.storage.put_submission(Submission(
            title=title,
            royalty_recipient=royalty_recipient,
            status=SubmissionStatus.REGISTERED,
        ))
        self._emit("SubmissionRegistered",
                   title=title, royalty_recipient=royalty_recipient)
        logger.info(f"Registered submission {title!r} for {royalty_recipient}")

    @external
    def update_royalty_recipient(
        self, title: str, new_recipient: str, *, sender: str
    ) -> None:
        self._require_admin(sender)
        new_recipient = self._nonzero(new_recipient)
        submission = self._require_registered(title)
        old_recipient = submission.royalty_recipient
        self.storage.put_submission(
            submission.model_copy(update={"royalty_recipient": new_recipient})
        )
        self._emit("SubmissionRoyaltyRecipientUpdated", title=title,
                   old_recipient=old_recipient, new_recipient=new_recipient)
        logger.info(f"Recipient of {title!r}: {old_recipient} -> {new_recipient}")

    @external
    def revoke_submission(self, title: str, *, sender: str) -> None:
        """Delete a registered submission.  Review flags are left in place."""
        self._require_admin(sender)
        self._require_registered(title)
        self.storage.delete_submission(title)
        self._emit("SubmissionRevoked", title=title)
        logger.info(f"Revoked submission {title!r}")

    # ==================================================================
    # ReviewAggregator (reviewer-class)
    # ==================================================================

    @external
    def review_submission(self, title: str, royalty_level: int, *, sender: str) -> None:
        """Record one review and add its level to the running total.

        The submission's status is not checked: reviewing an unknown,
        revoked or claimed title still accumulates onto its record.
        """
        self._require_reviewer(sender)
        if not RoyaltyLevel.is_valid(royalty_level):
            raise InvalidRoyaltyLevel(royalty_level)

        reviewer = self._effective_reviewer(sender)
        if self.storage.has_reviewed(title, reviewer):
            raise AlreadyReviewed(title, reviewer)

        submission = self.storage.get_submission(title)
        self.storage.mark_reviewed(title, reviewer)
        self.storage.put_submission(submission.model_copy(update={
            "review_count": submission.review_count + 1,
            "total_royalty_level": submission.total_royalty_level + royalty_level,
        }))
        self._emit("SubmissionReviewed",
                   title=title, reviewer=reviewer, royalty_level=royalty_level)
        logger.info(f"{reviewer} reviewed {title!r} at level {royalty_level}")

    def _effective_reviewer(self, sender: str) -> str:
        """Direct caller, or the signer the validator recorded for the relay."""
        if normalize_address(sender) != RELAY_ADDRESS:
            return normalize_address(sender)
        signer = self.runtime.tload(self.address, TRANSIENT_SIGNER_SLOT)
        if not signer or signer == ZERO_ADDRESS:
            raise ZeroAddress()
        return signer

    # ==================================================================
    # PayoutEngine
    # ==================================================================

    @external
    def claim_royalty(self, title: str, *, sender: str) -> int:
        """Pay the averaged royalty to the recorded recipient.

        Callable by anyone; the destination never depends on the caller.
        Status flips to CLAIMED before the token transfer, and the whole
        frame rolls back if the transfer fails.

        Returns:
            The amount transferred, in the token's smallest unit.
        """
        with self._non_reentrant():
            submission = self.storage.get_submission(title)
            error = self._claim_error(submission)
            if error is not None:
                raise error

            royalty = self._royalty_amount(submission)
            self.storage.put_submission(
                submission.model_copy(update={"status": SubmissionStatus.CLAIMED})
            )
            # uint256 amounts travel as strings in canonical JSON
            self._emit("RoyaltyClaimed", title=title,
                       recipient=submission.royalty_recipient,
                       amount=str(royalty))

            safe_transfer(self._token_contract(), submission.royalty_recipient,
                          royalty, sender=self.address)
            logger.info(f"Claimed {royalty} for {title!r} -> "
                        f"{submission.royalty_recipient} (caller {sender})")
            return royalty

    @external
    def emergency_withdraw(self, token: str, amount: int, *, sender: str) -> None:
        """Sweep a stuck balance to the owner.  NATIVE_TOKEN = native value."""
        self._require_owner(sender)
        token = normalize_address(token)
        owner = self.owner()
        self._emit("EmergencyWithdraw", token=token, amount=str(amount))
        if token == NATIVE_TOKEN:
            if not self.runtime.send_value(self.address, owner, amount):
                raise NativeTransferFailed()
        else:
            safe_transfer(self.runtime.resolve(token), owner, amount,
                          sender=self.address)
        logger.warning(f"Emergency withdraw of {amount} ({token}) to {owner}")

    def _claim_error(self, submission: Submission) -> Optional[RoyaltyAutoClaimError]:
        """Why submission cannot be claimed, or None when it can.

        Shared by claim_royalty and the read-only projections so the two
        can never disagree.
        """
        if submission.status == SubmissionStatus.NOT_EXIST:
            return SubmissionNotExist(submission.title)
        if submission.status == SubmissionStatus.CLAIMED:
            return AlreadyClaimed(submission.title)
        if submission.review_count < REQUIRED_REVIEWS:
            return NotEnoughReviews(submission.title)
        return None

    def _royalty_amount(self, submission: Submission) -> int:
        decimals = self._token_contract().decimals()
        return (submission.total_royalty_level * 10 ** decimals) // submission.review_count

    def _token_contract(self) -> FungibleToken:
        return self.runtime.resolve(self.token())

    @contextmanager
    def _non_reentrant(self) -> Iterator[None]:
        if self.runtime.tload(self.address, REENTRANCY_GUARD_SLOT):
            raise ReentrantCall()
        self.runtime.tstore(self.address, REENTRANCY_GUARD_SLOT, True)
        try:
            yield
        finally:
            self.runtime.tstore(self.address, REENTRANCY_GUARD_SLOT, None)

    # ==================================================================
    # RequestAuthorizer
    # ==================================================================

    @external
    def validate_user_op(
        self,
        user_op: UserOperation,
        user_op_hash: str,
        missing_funds: int,
        *,
        sender: str,
    ) -> int:
        """Authorize a relayed request.

        Recovers the signer from the request signature and checks it
        against the role the target selector requires.  For
        reviewSubmission the signer is written to the transient slot so
        the execution that follows in the same top-level frame knows who
        actually reviewed.

        Returns:
            SIG_VALIDATION_SUCCESS (0).  Every rejection raises.

        Raises:
            NotFromRelay, ForbiddenFeeDelegation, MalformedCallData,
            InvalidSignature, Unauthorized, UnsupportedSelector.
        """
        if normalize_address(sender) != RELAY_ADDRESS:
            raise NotFromRelay(sender)
        if user_op.paymaster_and_data:
            raise ForbiddenFeeDelegation()

        selector, _ = split_call_data(user_op.call_data_bytes)
        digest = to_signed_message_digest(user_op_hash)
        signer = recover_signer(digest, user_op.signature)

        spec = lookup(selector)
        if spec.auth == AuthClass.OWNER:
            if signer != self.owner():
                raise Unauthorized(signer)
        elif spec.auth == AuthClass.ADMIN:
            if signer != self.admin():
                raise Unauthorized(signer)
        elif spec.auth == AuthClass.REVIEWER:
            if not self.storage.is_reviewer(signer):
                raise Unauthorized(signer)
            self.runtime.tstore(self.address, TRANSIENT_SIGNER_SLOT, signer)
        logger.debug(f"Validated {spec.name} request signed by {signer}")

        self._pay_prefund(missing_funds, sender)
        return SIG_VALIDATION_SUCCESS

    def _pay_prefund(self, missing_funds: int, relay: str) -> None:
        """Best effort; the relay checks whether it was actually funded."""
        if missing_funds <= 0:
            return
        if not self.runtime.send_value(self.address, relay, missing_funds):
            logger.warning(f"Could not forward prefund of {missing_funds} to relay")

    @external
    def execute(self, call_data: bytes, *, sender: str) -> Any:
        """Dispatch call data to the matching operation, keeping the sender."""
        spec, args = decode_function_data(call_data)
        logger.debug(f"Dispatching {spec.name} from {sender}")
        return getattr(self, spec.method)(*args, sender=sender)

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _require_owner(self, sender: str) -> None:
        sender = normalize_address(sender)
        if sender != RELAY_ADDRESS and sender != self.owner():
            raise Unauthorized(sender)

    def _require_admin(self, sender: str) -> None:
        sender = normalize_address(sender)
        if sender != RELAY_ADDRESS and sender != self.admin():
            raise Unauthorized(sender)

    def _require_reviewer(self, sender: str) -> None:
        sender = normalize_address(sender)
        if sender != RELAY_ADDRESS and not self.storage.is_reviewer(sender):
            raise Unauthorized(sender)

    def _require_registered(self, title: str) -> Submission:
        submission = self.storage.get_submission(title)
        if submission.status != SubmissionStatus.REGISTERED:
            raise SubmissionNotRegistered(title)
        return submission

    @staticmethod
    def _nonzero(address: str) -> str:
        address = normalize_address(address)
        if address == ZERO_ADDRESS:
            raise ZeroAddress()
        return address

    def _emit(self, name: str, **data: Any) -> LedgerEvent:
        """Seal and append an event to the log inside the current frame."""
        last = self.storage.last_event()
        event = seal_event(LedgerEvent(
            sequence_number=0 if last is None else last.sequence_number + 1,
            name=name,
            data=data,
            previous_hash=None if last is None else last.event_hash,
        ))
        self.storage.save_event(event)
        return event
