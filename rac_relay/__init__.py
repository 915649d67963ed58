"""
rac_relay — Trusted relay stand-in and request client.

The relay is the only account the contract accepts relayed requests
from.  For each request it:

1. checks and consumes the sender account's nonce,
2. hashes the request (binding it to this relay and chain id),
3. asks the account to validate it (validate_user_op), telling it how
   much execution deposit is still missing,
4. verifies the forwarded deposit actually arrived,
5. executes the call data in a nested frame.

Steps 1-5 share one top-level frame, so the signer the validator hands
off through the transient slot is visible to step 5 and gone afterwards.
A failure in steps 1-4 aborts everything; a failing execution (5) is
reported in the receipt while validation effects stay committed.

RelayClient plays the part of a wallet: it builds a request for some
call data, signs its hash and submits it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
)

from rac_core.chain import compute_request_hash
from rac_core.config import DEFAULT_CHAIN_ID, RELAY_ADDRESS, SIG_VALIDATION_SUCCESS
from rac_core.crypto import normalize_address, public_key_to_address, sign_request_hash
from rac_core.errors import RoyaltyAutoClaimError
from rac_core.record import UserOperation
from rac_core.runtime import Runtime

logger = logging.getLogger("rac_relay")


class RelayError(Exception):
    """Request rejected by the relay itself."""


class InvalidNonce(RelayError):
    def __init__(self, expected: int, got: int) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"Invalid nonce: expected {expected}, got {got}")


class PrefundNotPaid(RelayError):
    def __init__(self, missing: int) -> None:
        self.missing = missing
        super().__init__(f"Account did not pay prefund ({missing} missing)")


class ValidationRejected(RelayError):
    def __init__(self, validation_data: int) -> None:
        self.validation_data = validation_data
        super().__init__(f"Validation returned {validation_data}")


@dataclass
class RelayReceipt:
    """Outcome of one relayed request."""
    request_hash: str
    sender: str
    nonce: int
    success: bool
    result: object = None
    revert_reason: Optional[str] = None


class TrustedRelay:
    """Sole permitted submitter of signature-validated requests.

    Args:
        runtime:          Shared execution environment.
        chain_id:         Chain id bound into every request hash.
        prefund_per_request: Execution deposit the relay requires per
                          request; accounts top it up from their native
                          balance during validation.
    """

    address = RELAY_ADDRESS

    def __init__(
        self,
        runtime: Runtime,
        chain_id: int = DEFAULT_CHAIN_ID,
        prefund_per_request: int = 0,
    ) -> None:
        self.runtime = runtime
        self.chain_id = chain_id
        self.prefund_per_request = prefund_per_request
        self._nonces: Dict[str, int] = {}
        self._deposits: Dict[str, int] = {}
        self.receipts: List[RelayReceipt] = []

    def get_nonce(self, account: str) -> int:
        return self._nonces.get(normalize_address(account), 0)

    def deposit_of(self, account: str) -> int:
        return self._deposits.get(normalize_address(account), 0)

    def request_hash(self, request: UserOperation) -> str:
        return compute_request_hash(request, self.address, self.chain_id)

    def handle_op(self, request: UserOperation) -> RelayReceipt:
        """Validate and execute one request as one top-level execution.

        Raises:
            RelayError / RoyaltyAutoClaimError: validation failed; nothing
                                                was committed.
        """
        account_address = request.sender
        account = self.runtime.resolve(account_address)

        with self.runtime.frame():
            expected = self.get_nonce(account_address)
            if request.nonce != expected:
                raise InvalidNonce(expected, request.nonce)

            request_hash = self.request_hash(request)
            deposit = self.deposit_of(account_address)
            missing = max(0, self.prefund_per_request - deposit)

            relay_before = self.runtime.balance_of(self.address)
            validation = account.validate_user_op(
                request, request_hash, missing, sender=self.address
            )
            if validation != SIG_VALIDATION_SUCCESS:
                raise ValidationRejected(validation)

            received = self.runtime.balance_of(self.address) - relay_before
            deposit += received
            if deposit < self.prefund_per_request:
                raise PrefundNotPaid(self.prefund_per_request - deposit)

            receipt = RelayReceipt(
                request_hash=request_hash,
                sender=account_address,
                nonce=request.nonce,
                success=True,
            )
            # Any execution failure reverts only the nested frame; the
            # request itself is still consumed and gets a receipt.
            try:
                with self.runtime.frame():
                    receipt.result = account.execute(
                        request.call_data_bytes, sender=self.address
                    )
            except RoyaltyAutoClaimError as e:
                receipt.success = False
                receipt.revert_reason = f"{type(e).__name__}: {e}"
                logger.info(f"Request {request_hash[:16]}... reverted: "
                            f"{receipt.revert_reason}")
            except Exception as e:
                receipt.success = False
                receipt.revert_reason = f"{type(e).__name__}: {e}"
                logger.warning(f"Request {request_hash[:16]}... failed "
                               f"unexpectedly: {receipt.revert_reason}")

        # Relay bookkeeping is applied only once the request's frame committed
        self._deposits[account_address] = deposit - self.prefund_per_request
        self._nonces[account_address] = expected + 1
        self.receipts.append(receipt)
        return receipt

    def handle_ops(self, requests: List[UserOperation]) -> List[RelayReceipt]:
        """Each request is its own top-level execution."""
        return [self.handle_op(r) for r in requests]


class RelayClient:
    """Builds, signs and submits requests for one account and signer."""

    def __init__(
        self,
        relay: TrustedRelay,
        account: str,
        private_key: Ed25519PrivateKey,
    ) -> None:
        self.relay = relay
        self.account = normalize_address(account)
        self.private_key = private_key

    @property
    def signer(self) -> str:
        return public_key_to_address(self.private_key.public_key())

    def connect(self, private_key: Ed25519PrivateKey) -> "RelayClient":
        """Same account, different signer."""
        return RelayClient(self.relay, self.account, private_key)

    def build_request(
        self, call_data: bytes, paymaster_and_data: bytes = b""
    ) -> UserOperation:
        """Unsigned-then-signed request for call_data at the current nonce."""
        request = UserOperation(
            sender=self.account,
            nonce=self.relay.get_nonce(self.account),
            call_data=call_data.hex(),
            paymaster_and_data=paymaster_and_data.hex(),
        )
        signature = sign_request_hash(
            self.private_key, self.relay.request_hash(request)
        )
        return request.model_copy(update={"signature": signature})

    def send_calldata(self, call_data: bytes) -> RelayReceipt:
        return self.relay.handle_op(self.build_request(call_data))
