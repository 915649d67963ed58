"""
rac_core/canonical.py — Canonical JSON and call-data codec.

Canonical JSON follows RFC 8785 (JSON Canonicalization Scheme) through
the `jcs` library.  Two implementations processing the same logical
request MUST produce byte-identical output, otherwise request hashes and
signatures diverge.

Call data layout:

    selector (4 bytes) || canonical JSON array of encoded arguments

The selector is the first 4 bytes of SHA-256 over the function signature
string, e.g. ``registerSubmission(string,address)``.

Reference: https://www.rfc-editor.org/rfc/rfc8785
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Sequence

import jcs

from .crypto import normalize_address
from .errors import MalformedCallData


SELECTOR_SIZE = 4

# IEEE 754 doubles lose precision above 2^53, so uint256 travels as a
# decimal string and bytes travel as lowercase hex.
_SCALAR_TYPES = {"string", "address", "uint256", "bool", "bytes"}


# ---------------------------------------------------------------------------
# Canonical JSON
# ---------------------------------------------------------------------------

def canonicalize(obj: Any) -> bytes:
    """Serialize a JSON-compatible Python object to canonical JSON bytes.

    This is the single entry point for all canonical serialization.
    Returns deterministic UTF-8 bytes suitable for hashing.
    """
    return jcs.canonicalize(obj)


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

def function_selector(signature: str) -> bytes:
    """First 4 bytes of SHA-256 over a function signature string."""
    return hashlib.sha256(signature.encode("ascii")).digest()[:SELECTOR_SIZE]


def split_call_data(call_data: bytes) -> tuple[bytes, bytes]:
    """Split call data into (selector, encoded argument bytes)."""
    if len(call_data) < SELECTOR_SIZE:
        raise MalformedCallData(
            f"expected at least {SELECTOR_SIZE} bytes, got {len(call_data)}"
        )
    return call_data[:SELECTOR_SIZE], call_data[SELECTOR_SIZE:]


# ---------------------------------------------------------------------------
# Argument codec
# ---------------------------------------------------------------------------

def encode_arguments(types: Sequence[str], args: Sequence[Any]) -> bytes:
    """Encode positional arguments for the given parameter types."""
    if len(types) != len(args):
        raise ValueError(f"Expected {len(types)} arguments, got {len(args)}")
    return canonicalize(
        [_encode_value(t, a) for t, a in zip(types, args)]
    )


def decode_arguments(types: Sequence[str], payload: bytes) -> list[Any]:
    """Decode canonical JSON argument bytes back into Python values."""
    try:
        values = json.loads(payload.decode("utf-8")) if payload else []
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedCallData(f"arguments are not JSON ({e})") from e
    if not isinstance(values, list) or len(values) != len(types):
        raise MalformedCallData(
            f"expected a list of {len(types)} arguments"
        )
    return [_decode_value(t, v) for t, v in zip(types, values)]


def _encode_value(typ: str, value: Any) -> Any:
    if typ.endswith("[]"):
        inner = typ[:-2]
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise ValueError(f"{typ} argument must be a sequence")
        return [_encode_value(inner, v) for v in value]
    if typ == "string":
        if not isinstance(value, str):
            raise ValueError("string argument must be str")
        return value
    if typ == "address":
        return normalize_address(value)
    if typ == "uint256":
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError("uint256 argument must be a non-negative int")
        return str(value)
    if typ == "bool":
        if not isinstance(value, bool):
            raise ValueError("bool argument must be bool")
        return value
    if typ == "bytes":
        if not isinstance(value, (bytes, bytearray)):
            raise ValueError("bytes argument must be bytes")
        return bytes(value).hex()
    raise ValueError(f"Unknown parameter type: {typ}")


def _decode_value(typ: str, value: Any) -> Any:
    if typ.endswith("[]"):
        if not isinstance(value, list):
            raise MalformedCallData(f"{typ} argument must be a list")
        return [_decode_value(typ[:-2], v) for v in value]
    if typ not in _SCALAR_TYPES:
        raise MalformedCallData(f"unknown parameter type {typ}")
    try:
        if typ == "string" and isinstance(value, str):
            return value
        if typ == "address":
            return normalize_address(value)
        if typ == "uint256" and isinstance(value, str) and value.isdigit():
            return int(value)
        if typ == "bool" and isinstance(value, bool):
            return value
        if typ == "bytes" and isinstance(value, str):
            return bytes.fromhex(value)
    except ValueError as e:
        raise MalformedCallData(f"bad {typ} argument ({e})") from e
    raise MalformedCallData(f"bad {typ} argument: {value!r}")
