"""
rac_core/config.py — Configuration constants and settings for RoyaltyAutoClaim.

Constants are normative: changing any of them changes request hashes,
storage namespaces or payout amounts, so they are fixed per deployment.
"""

import os
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

ZERO_ADDRESS = "0x" + "00" * 20

# Well-known trusted relay (entry point). The only account allowed to call
# validate_user_op and the only caller trusted to act for a signer.
RELAY_ADDRESS = "0x0000000071727de22e5e9d8baf0edac6f37da032"

# emergency_withdraw uses the zero address to mean the native balance
NATIVE_TOKEN = ZERO_ADDRESS


# ---------------------------------------------------------------------------
# Royalty rules
# ---------------------------------------------------------------------------

ROYALTY_LEVELS = (20, 40, 60, 80)

# Minimum number of distinct reviews before a submission can be claimed
REQUIRED_REVIEWS = 2


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

SIG_VALIDATION_SUCCESS = 0

# Prefix for the signed-message digest over a 32-byte request hash
SIGNED_MESSAGE_PREFIX = b"\x19Royalty Signed Message:\n32"

# Sepolia, where the reference deployment lives
DEFAULT_CHAIN_ID = 11155111


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

STORAGE_NAMESPACE = "royaltyautoclaim.storage.main"
SCHEMA_VERSION = 1

DEFAULT_DB_PATH = "./royalty_autoclaim.db"

# Transient slot names (scoped per contract address)
TRANSIENT_SIGNER_SLOT = "royaltyautoclaim.userop.signer"
REENTRANCY_GUARD_SLOT = "royaltyautoclaim.reentrancy.guard"


@dataclass
class Settings:
    """Runtime settings for tools and demos."""
    db_path: str = DEFAULT_DB_PATH
    log_level: str = "INFO"
    chain_id: int = DEFAULT_CHAIN_ID

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from RAC_* environment variables."""
        return cls(
            db_path=os.environ.get("RAC_DB_PATH", DEFAULT_DB_PATH),
            log_level=os.environ.get("RAC_LOG_LEVEL", "INFO").upper(),
            chain_id=int(os.environ.get("RAC_CHAIN_ID", DEFAULT_CHAIN_ID)),
        )
