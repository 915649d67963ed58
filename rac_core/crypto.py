"""
rac_core/crypto.py — Cryptographic primitives for RoyaltyAutoClaim.

Uses Python `cryptography` library exclusively. No custom crypto.
- SHA-256 for request hashes, event hashes and address derivation
- Ed25519 for signing relayed requests
- Signer recovery: a RequestSignature carries the signer's public key;
  recovery verifies the signature against it and derives the address

All functions are deterministic and have no side effects.
"""

from __future__ import annotations

import hashlib
import re

from cryptography.exceptions import InvalidSignature as _CryptoInvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives import serialization

from .config import SIGNED_MESSAGE_PREFIX
from .errors import InvalidSignature
from .record import RequestSignature


_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

def sha256_hex(data: bytes) -> str:
    """Compute SHA-256 hash and return as lowercase hex string."""
    return hashlib.sha256(data).hexdigest()


def to_signed_message_digest(request_hash: str) -> bytes:
    """Digest actually signed for a request: prefix + 32-byte request hash.

    The prefix keeps a request signature from ever being valid as a
    signature over some other 32-byte payload.
    """
    raw = bytes.fromhex(request_hash)
    if len(raw) != 32:
        raise ValueError(f"Request hash must be 32 bytes, got {len(raw)}")
    return hashlib.sha256(SIGNED_MESSAGE_PREFIX + raw).digest()


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def normalize_address(address: str) -> str:
    """Lowercase and validate an address string."""
    if not isinstance(address, str):
        raise ValueError(f"Address must be a string, got {type(address).__name__}")
    lowered = address.lower()
    if not _ADDRESS_RE.match(lowered):
        raise ValueError(f"Malformed address: {address!r}")
    return lowered


def public_key_to_address(key: Ed25519PublicKey) -> str:
    """Address = last 20 bytes of SHA-256(raw public key)."""
    digest = hashlib.sha256(public_key_to_raw(key)).digest()
    return "0x" + digest[-20:].hex()


# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------

def generate_keypair() -> tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    """Generate a new Ed25519 keypair."""
    private_key = Ed25519PrivateKey.generate()
    return private_key, private_key.public_key()


def private_key_to_pem(key: Ed25519PrivateKey) -> bytes:
    """Serialize private key to PEM bytes."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def private_key_from_pem(pem_data: bytes) -> Ed25519PrivateKey:
    """Deserialize private key from PEM bytes."""
    key = serialization.load_pem_private_key(pem_data, password=None)
    if not isinstance(key, Ed25519PrivateKey):
        raise TypeError("Not an Ed25519 private key")
    return key


def public_key_to_raw(key: Ed25519PublicKey) -> bytes:
    """Extract raw 32-byte public key."""
    return key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


# ---------------------------------------------------------------------------
# Request signing and signer recovery
# ---------------------------------------------------------------------------

def sign_request_hash(
    private_key: Ed25519PrivateKey, request_hash: str
) -> RequestSignature:
    """Sign the signed-message digest of a request hash."""
    digest = to_signed_message_digest(request_hash)
    return RequestSignature(
        public_key=public_key_to_raw(private_key.public_key()).hex(),
        value=private_key.sign(digest).hex(),
    )


def recover_signer(digest: bytes, signature: RequestSignature | None) -> str:
    """Return the address that produced `signature` over `digest`.

    Raises:
        InvalidSignature: If the signature is absent, malformed, uses an
                          unknown algorithm, or does not verify.
    """
    if signature is None:
        raise InvalidSignature("missing signature")
    if signature.algorithm != "Ed25519":
        raise InvalidSignature(f"unsupported algorithm {signature.algorithm}")
    try:
        public_key = Ed25519PublicKey.from_public_bytes(
            bytes.fromhex(signature.public_key)
        )
        value = bytes.fromhex(signature.value)
    except ValueError as e:
        raise InvalidSignature(f"malformed signature ({e})") from e
    try:
        public_key.verify(value, digest)
    except _CryptoInvalidSignature as e:
        raise InvalidSignature() from e
    return public_key_to_address(public_key)
