"""
test/test_contract.py — Tests for rac_contract.RoyaltyAutoClaim (direct calls)

Run:  pytest test/test_contract.py -v
  or: python test/test_contract.py

Test structure:
  1. Initialization and role registry
  2. Submission lifecycle
  3. Reviews
  4. Payout (amounts, atomicity, reentrancy)
  5. Emergency withdraw, upgrade, dispatch
  6. Event log
"""

import os
import sys

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rac_core import (
    RELAY_ADDRESS,
    ZERO_ADDRESS,
    AlreadyClaimed,
    AlreadyInitialized,
    AlreadyRegistered,
    AlreadyReviewed,
    EmptyTitle,
    InvalidArrayLength,
    InvalidRoyaltyLevel,
    MockToken,
    NativeTransferFailed,
    NotEnoughReviews,
    ReentrantCall,
    RenounceOwnershipDisabled,
    Runtime,
    Storage,
    SubmissionNotExist,
    SubmissionNotRegistered,
    SubmissionStatus,
    TokenTransferFailed,
    Unauthorized,
    UnsupportedSelector,
    ZeroAddress,
    encode_function_data,
    function_selector,
    verify_event_chain,
)
from rac_contract import RoyaltyAutoClaim


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

CONTRACT = "0x" + "ac" * 20
TOKEN = "0x" + "70" * 20
OWNER = "0x" + "01" * 20
ADMIN = "0x" + "02" * 20
REVIEWER1 = "0x" + "11" * 20
REVIEWER2 = "0x" + "12" * 20
REVIEWER3 = "0x" + "13" * 20
RECIPIENT = "0x" + "ee" * 20
STRANGER = "0x" + "99" * 20
UNIT = 10 ** 18

_PASS = 0
_FAIL = 0


def _ok(name: str) -> None:
    global _PASS
    _PASS += 1
    print(f"  PASS: {name}")


def _fail(name: str, err: Exception) -> None:
    global _FAIL
    _FAIL += 1
    print(f"  FAIL: {name} — {err}")


def _expect(exc_type, fn, *args, **kwargs):
    """Call fn and return the raised exc_type instance; fail otherwise."""
    try:
        fn(*args, **kwargs)
    except exc_type as e:
        return e
    raise AssertionError(f"Expected {exc_type.__name__}")


def _deploy(fund: int = 1000 * UNIT, token: MockToken = None):
    runtime = Runtime(Storage(":memory:"))
    token = token or MockToken(TOKEN)
    runtime.deploy(token.address, token)
    rac = RoyaltyAutoClaim(runtime, CONTRACT)
    rac.initialize(OWNER, ADMIN, token.address, [REVIEWER1, REVIEWER2, REVIEWER3])
    token.mint(CONTRACT, fund)
    return rac, token


def _registered(title: str = "A", levels=(), **deploy_kwargs):
    """Deploy, register title for RECIPIENT and apply one review per level."""
    rac, token = _deploy(**deploy_kwargs)
    rac.register_submission(title, RECIPIENT, sender=ADMIN)
    for reviewer, level in zip((REVIEWER1, REVIEWER2, REVIEWER3), levels):
        rac.review_submission(title, level, sender=reviewer)
    return rac, token


# ==================================================================
# 1. Initialization and role registry
# ==================================================================

def test_initialize_sets_roles():
    rac, _ = _deploy()
    assert rac.owner() == OWNER
    assert rac.admin() == ADMIN
    assert rac.token() == TOKEN
    assert rac.entry_point() == RELAY_ADDRESS
    assert rac.implementation() == CONTRACT
    for reviewer in (REVIEWER1, REVIEWER2, REVIEWER3):
        assert rac.is_reviewer(reviewer)
    assert not rac.is_reviewer(STRANGER)
    _ok("test_initialize_sets_roles")


def test_initialize_only_once():
    rac, _ = _deploy()
    _expect(AlreadyInitialized, rac.initialize, STRANGER, STRANGER, TOKEN, [])
    assert rac.owner() == OWNER
    _ok("test_initialize_only_once")


def test_initialize_rejects_zero_roles():
    for owner, admin, token in (
        (ZERO_ADDRESS, ADMIN, TOKEN),
        (OWNER, ZERO_ADDRESS, TOKEN),
        (OWNER, ADMIN, ZERO_ADDRESS),
    ):
        rac = RoyaltyAutoClaim(Runtime(Storage(":memory:")), CONTRACT)
        _expect(ZeroAddress, rac.initialize, owner, admin, token, [])
        # Nothing was committed, so a correct initialize still works
        rac.initialize(OWNER, ADMIN, TOKEN, [])
        assert rac.owner() == OWNER
    _ok("test_initialize_rejects_zero_roles")


def test_change_admin():
    rac, _ = _deploy()
    e = _expect(Unauthorized, rac.change_admin, STRANGER, sender=ADMIN)
    assert e.caller == ADMIN
    _expect(ZeroAddress, rac.change_admin, ZERO_ADDRESS, sender=OWNER)
    rac.change_admin(STRANGER, sender=OWNER)
    assert rac.admin() == STRANGER
    # Old admin lost admin-class rights
    _expect(Unauthorized, rac.register_submission, "A", RECIPIENT, sender=ADMIN)
    rac.register_submission("A", RECIPIENT, sender=STRANGER)
    _ok("test_change_admin")


def test_change_royalty_token():
    rac, _ = _deploy()
    new_token = "0x" + "71" * 20
    _expect(Unauthorized, rac.change_royalty_token, new_token, sender=ADMIN)
    _expect(ZeroAddress, rac.change_royalty_token, ZERO_ADDRESS, sender=OWNER)
    rac.change_royalty_token(new_token, sender=OWNER)
    assert rac.token() == new_token
    _ok("test_change_royalty_token")


def test_transfer_ownership():
    rac, _ = _deploy()
    _expect(Unauthorized, rac.transfer_ownership, STRANGER, sender=STRANGER)
    _expect(ZeroAddress, rac.transfer_ownership, ZERO_ADDRESS, sender=OWNER)
    rac.transfer_ownership(STRANGER, sender=OWNER)
    assert rac.owner() == STRANGER
    _expect(Unauthorized, rac.change_admin, OWNER, sender=OWNER)
    rac.change_admin(OWNER, sender=STRANGER)
    assert rac.admin() == OWNER
    _ok("test_transfer_ownership")


def test_renounce_ownership_always_fails():
    rac, _ = _deploy()
    for caller in (OWNER, ADMIN, STRANGER, RELAY_ADDRESS, None):
        _expect(RenounceOwnershipDisabled, rac.renounce_ownership, sender=caller)
    assert rac.owner() == OWNER
    _ok("test_renounce_ownership_always_fails")


def test_update_reviewers():
    rac, _ = _deploy()
    _expect(Unauthorized, rac.update_reviewers, [STRANGER], [True], sender=OWNER)
    _expect(InvalidArrayLength, rac.update_reviewers, [], [], sender=ADMIN)
    _expect(InvalidArrayLength, rac.update_reviewers,
            [STRANGER, REVIEWER1], [True], sender=ADMIN)

    rac.update_reviewers([STRANGER, REVIEWER1], [True, False], sender=ADMIN)
    assert rac.is_reviewer(STRANGER)
    assert not rac.is_reviewer(REVIEWER1)

    # Repeated address: last write wins
    rac.update_reviewers([STRANGER, STRANGER], [False, True], sender=ADMIN)
    assert rac.is_reviewer(STRANGER)
    rac.update_reviewers([STRANGER, STRANGER], [True, False], sender=ADMIN)
    assert not rac.is_reviewer(STRANGER)
    _ok("test_update_reviewers")


def test_trusted_relay_passes_role_checks():
    """The relay only reaches these methods after validate_user_op."""
    rac, _ = _deploy()
    rac.change_admin(STRANGER, sender=RELAY_ADDRESS)
    assert rac.admin() == STRANGER
    rac.register_submission("A", RECIPIENT, sender=RELAY_ADDRESS)
    assert rac.submissions("A").status == SubmissionStatus.REGISTERED
    _ok("test_trusted_relay_passes_role_checks")


# ==================================================================
# 2. Submission lifecycle
# ==================================================================

def test_register_submission():
    rac, _ = _deploy()
    _expect(Unauthorized, rac.register_submission, "A", RECIPIENT, sender=OWNER)
    _expect(EmptyTitle, rac.register_submission, "", RECIPIENT, sender=ADMIN)
    _expect(ZeroAddress, rac.register_submission, "A", ZERO_ADDRESS, sender=ADMIN)

    rac.register_submission("A", RECIPIENT, sender=ADMIN)
    sub = rac.submissions("A")
    assert sub.status == SubmissionStatus.REGISTERED
    assert sub.royalty_recipient == RECIPIENT
    assert sub.review_count == 0
    assert sub.total_royalty_level == 0

    e = _expect(AlreadyRegistered, rac.register_submission, "A", STRANGER, sender=ADMIN)
    assert e.title == "A"
    assert rac.submissions("A").royalty_recipient == RECIPIENT
    _ok("test_register_submission")


def test_unknown_title_reads_as_not_exist():
    rac, _ = _deploy()
    sub = rac.submissions("nothing")
    assert sub.status == SubmissionStatus.NOT_EXIST
    assert sub.royalty_recipient == ZERO_ADDRESS
    assert sub.review_count == 0
    _ok("test_unknown_title_reads_as_not_exist")


def test_update_royalty_recipient():
    rac, _ = _registered()
    _expect(Unauthorized, rac.update_royalty_recipient, "A", STRANGER, sender=STRANGER)
    _expect(ZeroAddress, rac.update_royalty_recipient, "A", ZERO_ADDRESS, sender=ADMIN)
    _expect(SubmissionNotRegistered, rac.update_royalty_recipient,
            "missing", STRANGER, sender=ADMIN)

    rac.update_royalty_recipient("A", STRANGER, sender=ADMIN)
    assert rac.submissions("A").royalty_recipient == STRANGER
    assert rac.submissions("A").status == SubmissionStatus.REGISTERED
    _ok("test_update_royalty_recipient")


def test_update_recipient_after_claim_fails():
    rac, _ = _registered(levels=(20, 40))
    rac.claim_royalty("A", sender=STRANGER)
    _expect(SubmissionNotRegistered, rac.update_royalty_recipient,
            "A", STRANGER, sender=ADMIN)
    _ok("test_update_recipient_after_claim_fails")


def test_revoke_submission():
    rac, _ = _registered(levels=(20,))
    _expect(Unauthorized, rac.revoke_submission, "A", sender=REVIEWER1)
    rac.revoke_submission("A", sender=ADMIN)

    sub = rac.submissions("A")
    assert sub.status == SubmissionStatus.NOT_EXIST
    assert sub.review_count == 0
    _expect(SubmissionNotRegistered, rac.revoke_submission, "A", sender=ADMIN)
    _expect(SubmissionNotExist, rac.claim_royalty, "A", sender=STRANGER)

    # Revoked titles can be registered again from scratch
    rac.register_submission("A", STRANGER, sender=ADMIN)
    assert rac.submissions("A").royalty_recipient == STRANGER
    assert rac.submissions("A").review_count == 0
    _ok("test_revoke_submission")


def test_revoke_keeps_review_flags():
    rac, _ = _registered(levels=(20,))
    rac.revoke_submission("A", sender=ADMIN)
    rac.register_submission("A", RECIPIENT, sender=ADMIN)
    assert rac.has_reviewed("A", REVIEWER1)
    _expect(AlreadyReviewed, rac.review_submission, "A", 40, sender=REVIEWER1)
    _ok("test_revoke_keeps_review_flags")


def test_revoke_claimed_fails():
    rac, _ = _registered(levels=(20, 40))
    rac.claim_royalty("A", sender=STRANGER)
    _expect(SubmissionNotRegistered, rac.revoke_submission, "A", sender=ADMIN)
    assert rac.submissions("A").status == SubmissionStatus.CLAIMED
    _ok("test_revoke_claimed_fails")


# ==================================================================
# 3. Reviews
# ==================================================================

def test_review_accumulates():
    rac, _ = _registered()
    rac.review_submission("A", 20, sender=REVIEWER1)
    rac.review_submission("A", 80, sender=REVIEWER2)
    sub = rac.submissions("A")
    assert sub.review_count == 2
    assert sub.total_royalty_level == 100
    assert rac.has_reviewed("A", REVIEWER1)
    assert rac.has_reviewed("A", REVIEWER2)
    assert not rac.has_reviewed("A", REVIEWER3)
    _ok("test_review_accumulates")


def test_review_rejects_invalid_levels():
    rac, _ = _registered()
    for level in (0, 10, 30, 50, 100, -20, 2 ** 64, True):
        e = _expect(InvalidRoyaltyLevel, rac.review_submission,
                    "A", level, sender=REVIEWER1)
        assert e.level == level
    assert rac.submissions("A").review_count == 0
    rac.review_submission("A", 60, sender=REVIEWER1)
    assert rac.submissions("A").total_royalty_level == 60
    _ok("test_review_rejects_invalid_levels")


def test_review_requires_reviewer():
    rac, _ = _registered()
    e = _expect(Unauthorized, rac.review_submission, "A", 20, sender=STRANGER)
    assert e.caller == STRANGER
    _expect(Unauthorized, rac.review_submission, "A", 20, sender=ADMIN)
    _ok("test_review_requires_reviewer")


def test_review_once_per_reviewer():
    rac, _ = _registered()
    rac.review_submission("A", 20, sender=REVIEWER1)
    e = _expect(AlreadyReviewed, rac.review_submission, "A", 80, sender=REVIEWER1)
    assert e.reviewer == REVIEWER1
    sub = rac.submissions("A")
    assert sub.review_count == 1
    assert sub.total_royalty_level == 20
    _ok("test_review_once_per_reviewer")


def test_relay_review_without_signer_fails():
    """Direct relay call with no validated signer in this execution."""
    rac, _ = _registered()
    _expect(ZeroAddress, rac.review_submission, "A", 20, sender=RELAY_ADDRESS)
    assert rac.submissions("A").review_count == 0
    _ok("test_relay_review_without_signer_fails")


def test_review_of_unregistered_title_is_accepted():
    """Reviews do not check the submission status.

    Reviewing an unknown title leaves a dangling NOT_EXIST record with
    non-zero totals.  It still cannot be claimed.
    """
    rac, _ = _deploy()
    rac.review_submission("ghost", 40, sender=REVIEWER1)
    rac.review_submission("ghost", 80, sender=REVIEWER2)

    sub = rac.submissions("ghost")
    assert sub.status == SubmissionStatus.NOT_EXIST
    assert sub.review_count == 2
    assert sub.total_royalty_level == 120
    assert not rac.is_submission_claimable("ghost")
    assert rac.get_royalty("ghost") == 0
    _expect(SubmissionNotExist, rac.claim_royalty, "ghost", sender=STRANGER)

    # Registration afterwards starts from a clean record
    rac.register_submission("ghost", RECIPIENT, sender=ADMIN)
    assert rac.submissions("ghost").review_count == 0
    _ok("test_review_of_unregistered_title_is_accepted")


def test_review_of_claimed_title_is_accepted():
    rac, _ = _registered(levels=(20, 40))
    rac.claim_royalty("A", sender=STRANGER)
    rac.review_submission("A", 80, sender=REVIEWER3)
    sub = rac.submissions("A")
    assert sub.status == SubmissionStatus.CLAIMED
    assert sub.review_count == 3
    _expect(AlreadyClaimed, rac.claim_royalty, "A", sender=STRANGER)
    _ok("test_review_of_claimed_title_is_accepted")


# ==================================================================
# 4. Payout
# ==================================================================

def test_claim_example_scenario():
    """Levels 20 and 40 with 18 decimals pay exactly 30 tokens."""
    rac, token = _registered(levels=(20,))
    assert not rac.is_submission_claimable("A")
    assert rac.get_royalty("A") == 0

    rac.review_submission("A", 40, sender=REVIEWER2)
    assert rac.is_submission_claimable("A")
    assert rac.get_royalty("A") == 30 * UNIT

    contract_before = token.balance_of(CONTRACT)
    supply_before = token.total_supply()
    paid = rac.claim_royalty("A", sender=RECIPIENT)
    assert token.total_supply() == supply_before
    assert paid == 30 * UNIT
    assert token.balance_of(RECIPIENT) == 30 * UNIT
    assert contract_before - token.balance_of(CONTRACT) == 30 * UNIT
    assert rac.submissions("A").status == SubmissionStatus.CLAIMED
    assert not rac.is_submission_claimable("A")
    assert rac.get_royalty("A") == 0

    e = _expect(AlreadyClaimed, rac.claim_royalty, "A", sender=RECIPIENT)
    assert e.title == "A"
    assert token.balance_of(RECIPIENT) == 30 * UNIT
    _ok("test_claim_example_scenario")


def test_claim_average_rounds_down():
    rac, token = _registered(levels=(20, 40, 80))
    expected = (140 * UNIT) // 3
    assert rac.get_royalty("A") == expected
    rac.claim_royalty("A", sender=STRANGER)
    assert token.balance_of(RECIPIENT) == expected
    _ok("test_claim_average_rounds_down")


def test_claim_uses_token_decimals():
    rac, token = _registered(levels=(60, 80), token=MockToken(TOKEN, decimals=6))
    assert rac.get_royalty("A") == 70 * 10 ** 6
    rac.claim_royalty("A", sender=STRANGER)
    assert token.balance_of(RECIPIENT) == 70 * 10 ** 6
    _ok("test_claim_uses_token_decimals")


def test_claim_preconditions():
    rac, _ = _deploy()
    e = _expect(SubmissionNotExist, rac.claim_royalty, "A", sender=STRANGER)
    assert e.title == "A"

    rac.register_submission("A", RECIPIENT, sender=ADMIN)
    _expect(NotEnoughReviews, rac.claim_royalty, "A", sender=STRANGER)
    rac.review_submission("A", 20, sender=REVIEWER1)
    _expect(NotEnoughReviews, rac.claim_royalty, "A", sender=STRANGER)
    rac.review_submission("A", 20, sender=REVIEWER2)
    rac.claim_royalty("A", sender=STRANGER)
    _ok("test_claim_preconditions")


def test_claim_pays_recipient_not_caller():
    rac, token = _registered(levels=(40, 40))
    rac.claim_royalty("A", sender=STRANGER)
    assert token.balance_of(STRANGER) == 0
    assert token.balance_of(RECIPIENT) == 40 * UNIT
    _ok("test_claim_pays_recipient_not_caller")


def test_claim_failed_transfer_rolls_back():
    """No Claimed status without a transfer, and no event either."""
    rac, token = _registered(levels=(20, 40), fund=10 * UNIT)
    events_before = len(rac.events())
    _expect(TokenTransferFailed, rac.claim_royalty, "A", sender=STRANGER)
    assert rac.submissions("A").status == SubmissionStatus.REGISTERED
    assert token.balance_of(RECIPIENT) == 0
    assert len(rac.events()) == events_before
    assert rac.is_submission_claimable("A")

    token.mint(CONTRACT, 100 * UNIT)
    rac.claim_royalty("A", sender=STRANGER)
    assert token.balance_of(RECIPIENT) == 30 * UNIT
    _ok("test_claim_failed_transfer_rolls_back")


class ReentrantToken(MockToken):
    """Calls back into claim_royalty while paying out."""

    def __init__(self, address: str) -> None:
        super().__init__(address)
        self.contract = None
        self.title = None
        self.reentry_errors = []

    def transfer(self, to, amount, *, sender):
        if self.contract is not None and sender == self.contract.address:
            try:
                self.contract.claim_royalty(self.title, sender=to)
            except ReentrantCall as e:
                self.reentry_errors.append(e)
        return super().transfer(to, amount, sender=sender)


def test_claim_reentrancy_blocked():
    token = ReentrantToken(TOKEN)
    rac, _ = _registered(levels=(20, 40), token=token)
    token.contract = rac
    token.title = "A"

    rac.claim_royalty("A", sender=STRANGER)
    assert len(token.reentry_errors) == 1
    assert token.balance_of(RECIPIENT) == 30 * UNIT
    assert rac.submissions("A").status == SubmissionStatus.CLAIMED
    assert len(rac.events("RoyaltyClaimed")) == 1

    # The guard is released once the outer claim finishes
    token.contract = None
    rac.register_submission("B", RECIPIENT, sender=ADMIN)
    rac.review_submission("B", 20, sender=REVIEWER1)
    rac.review_submission("B", 20, sender=REVIEWER2)
    rac.claim_royalty("B", sender=STRANGER)
    _ok("test_claim_reentrancy_blocked")


# ==================================================================
# 5. Emergency withdraw, upgrade, dispatch
# ==================================================================

def test_emergency_withdraw_token():
    rac, token = _deploy(fund=50 * UNIT)
    _expect(Unauthorized, rac.emergency_withdraw, TOKEN, 10 * UNIT, sender=ADMIN)
    rac.emergency_withdraw(TOKEN, 10 * UNIT, sender=OWNER)
    assert token.balance_of(OWNER) == 10 * UNIT
    assert token.balance_of(CONTRACT) == 40 * UNIT
    _expect(TokenTransferFailed, rac.emergency_withdraw, TOKEN, 41 * UNIT, sender=OWNER)
    _ok("test_emergency_withdraw_token")


def test_emergency_withdraw_native():
    rac, _ = _deploy()
    rac.runtime.mint_native(CONTRACT, 500)
    rac.emergency_withdraw(ZERO_ADDRESS, 200, sender=OWNER)
    assert rac.runtime.balance_of(OWNER) == 200
    assert rac.runtime.balance_of(CONTRACT) == 300
    events_before = len(rac.events())
    _expect(NativeTransferFailed, rac.emergency_withdraw, ZERO_ADDRESS, 301, sender=OWNER)
    assert len(rac.events()) == events_before
    _ok("test_emergency_withdraw_native")


def test_upgrade_to_and_call():
    rac, _ = _registered(levels=(20,))
    new_impl = "0x" + "b2" * 20
    _expect(Unauthorized, rac.upgrade_to_and_call, new_impl, sender=ADMIN)
    _expect(ZeroAddress, rac.upgrade_to_and_call, ZERO_ADDRESS, sender=OWNER)

    data = encode_function_data("changeAdmin", STRANGER)
    rac.upgrade_to_and_call(new_impl, data, sender=OWNER)
    assert rac.implementation() == new_impl
    assert rac.admin() == STRANGER
    # State survives the upgrade
    assert rac.submissions("A").review_count == 1
    _ok("test_upgrade_to_and_call")


def test_failed_upgrade_call_rolls_back_upgrade():
    rac, _ = _deploy()
    data = encode_function_data("changeAdmin", ZERO_ADDRESS)
    _expect(ZeroAddress, rac.upgrade_to_and_call, "0x" + "b2" * 20, data, sender=OWNER)
    assert rac.implementation() == CONTRACT
    _ok("test_failed_upgrade_call_rolls_back_upgrade")


def test_execute_dispatches_with_sender():
    rac, _ = _deploy()
    rac.execute(encode_function_data("registerSubmission", "A", RECIPIENT), sender=ADMIN)
    assert rac.submissions("A").status == SubmissionStatus.REGISTERED
    _expect(Unauthorized, rac.execute,
            encode_function_data("revokeSubmission", "A"), sender=STRANGER)
    rac.execute(encode_function_data("updateReviewers", [STRANGER], [True]), sender=ADMIN)
    assert rac.is_reviewer(STRANGER)
    _ok("test_execute_dispatches_with_sender")


def test_execute_rejects_unknown_selector():
    rac, _ = _deploy()
    selector = function_selector("renounceOwnership()")
    e = _expect(UnsupportedSelector, rac.execute, selector + b"[]", sender=OWNER)
    assert e.selector == selector
    _ok("test_execute_rejects_unknown_selector")


# ==================================================================
# 6. Event log
# ==================================================================

def test_event_log_records_lifecycle():
    rac, _ = _registered(levels=(20, 40))
    rac.claim_royalty("A", sender=STRANGER)
    names = [e.name for e in rac.events()]
    assert names[:2] == ["Initialized", "OwnershipTransferred"]
    assert names[2:] == [
        "SubmissionRegistered",
        "SubmissionReviewed",
        "SubmissionReviewed",
        "RoyaltyClaimed",
    ]
    claimed = rac.events("RoyaltyClaimed")[0]
    assert claimed.data["amount"] == str(30 * UNIT)
    assert claimed.data["recipient"] == RECIPIENT

    result = verify_event_chain(rac.events())
    assert result["chain_valid"], result
    _ok("test_event_log_records_lifecycle")


def test_failed_operations_leave_no_events():
    rac, _ = _deploy()
    before = len(rac.events())
    _expect(EmptyTitle, rac.register_submission, "", RECIPIENT, sender=ADMIN)
    _expect(Unauthorized, rac.change_admin, STRANGER, sender=STRANGER)
    _expect(InvalidArrayLength, rac.update_reviewers, [STRANGER], [], sender=ADMIN)
    assert len(rac.events()) == before
    assert verify_event_chain(rac.events())["chain_valid"]
    _ok("test_failed_operations_leave_no_events")


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    print("=" * 60)
    print("RoyaltyAutoClaim Contract Tests")
    print("=" * 60)

    tests = [v for k, v in list(globals().items())
             if k.startswith("test_") and callable(v)]

    for t in tests:
        try:
            t()
        except Exception as e:
            _fail(t.__name__, e)

    print("=" * 60)
    if _FAIL == 0:
        print(f"ALL {_PASS} TESTS PASSED")
    else:
        print(f"{_PASS} passed, {_FAIL} FAILED")
        sys.exit(1)
    print("=" * 60)
