"""
RAC Core — deterministic kernel of the RoyaltyAutoClaim ledger.

__version__ is the package version.  The storage layout is versioned
separately by config.SCHEMA_VERSION.
"""

__version__ = "0.1.0"

from .config import (
    DEFAULT_CHAIN_ID,
    NATIVE_TOKEN,
    RELAY_ADDRESS,
    REQUIRED_REVIEWS,
    ROYALTY_LEVELS,
    SIG_VALIDATION_SUCCESS,
    Settings,
    ZERO_ADDRESS,
)
from .errors import (
    RoyaltyAutoClaimError,
    ZeroAddress,
    Unauthorized,
    InvalidArrayLength,
    EmptyTitle,
    InvalidRoyaltyLevel,
    NotEnoughReviews,
    AlreadyClaimed,
    AlreadyRegistered,
    SubmissionNotExist,
    SubmissionNotRegistered,
    NotFromRelay,
    ForbiddenFeeDelegation,
    UnsupportedSelector,
    AlreadyReviewed,
    RenounceOwnershipDisabled,
    AlreadyInitialized,
    ReentrantCall,
    InvalidSignature,
    MalformedCallData,
    TokenTransferFailed,
    NativeTransferFailed,
)
from .record import (
    LedgerEvent,
    RequestSignature,
    RoyaltyLevel,
    Submission,
    SubmissionStatus,
    UserOperation,
)
from .crypto import (
    sha256_hex,
    generate_keypair,
    normalize_address,
    public_key_to_address,
    private_key_to_pem,
    private_key_from_pem,
    sign_request_hash,
    recover_signer,
    to_signed_message_digest,
)
from .canonical import canonicalize, function_selector
from .abi import (
    AuthClass,
    FunctionSpec,
    FUNCTIONS,
    SELECTOR_TABLE,
    encode_function_data,
    decode_function_data,
)
from .chain import (
    compute_request_hash,
    seal_event,
    verify_event,
    verify_event_chain,
)
from .storage import Storage, StorageNamespaceMismatch, storage_slot
from .runtime import Runtime
from .token import FungibleToken, MockToken, safe_transfer
