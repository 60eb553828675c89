"""
Entropy Keys Cryptographic Primitives

Low-level helpers shared by the box, codec and key derivation modules.

SECURITY NOTES:
- All randomness from os.urandom (kernel CSPRNG)
- Hex input is decoded strictly; whitespace and separators are rejected

Dependencies:
- cryptography (SHA-256, HKDF)
"""

import os
import re
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.backends import default_backend


# Key and nonce sizes for the NaCl box construction
X25519_KEY_SIZE = 32  # bytes
XSALSA20_NONCE_SIZE = 24  # bytes

# secp256k1 compact signature size
COMPACT_SIGNATURE_SIZE = 64  # bytes (r || s)

_HEX_RE = re.compile(r"[0-9a-fA-F]*")


def random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of random bytes to generate

    Returns:
        bytes: Cryptographically secure random bytes

    Raises:
        ValueError: If length is negative
    """
    if length < 0:
        raise ValueError("Length must be non-negative")
    return os.urandom(length)


def sha256_digest(*parts: bytes) -> bytes:
    """
    Compute SHA-256 over the concatenation of parts.

    Args:
        parts: Byte strings hashed in order, with no framing

    Returns:
        bytes: 32-byte digest
    """
    digest = hashes.Hash(hashes.SHA256(), backend=default_backend())
    for part in parts:
        digest.update(part)
    return digest.finalize()


def hkdf_derive(
    input_key_material: bytes,
    length: int,
    info: bytes,
    salt: Optional[bytes] = None,
) -> bytes:
    """
    Derive key material using HKDF-SHA256 (RFC 5869).

    Args:
        input_key_material: Source key material
        length: Desired output length in bytes
        info: Context string for domain separation
        salt: Optional salt

    Returns:
        bytes: Derived key material
    """
    if length < 1:
        raise ValueError("Length must be at least 1")

    if length > 255 * 32:
        raise ValueError("Length too large for HKDF")

    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        info=info,
        backend=default_backend()
    )

    return hkdf.derive(input_key_material)


def strip_hex_prefix(value: str) -> str:
    """Remove a leading 0x/0X from a hex string."""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def hex_to_bytes(value: str) -> bytes:
    """
    Decode hex text, with or without a 0x prefix.

    Raises:
        ValueError: If value is not valid hex
    """
    if not isinstance(value, str):
        raise ValueError("Hex value must be a string")
    digits = strip_hex_prefix(value)
    if not _HEX_RE.fullmatch(digits):
        raise ValueError("Hex value contains non-hex characters")
    return bytes.fromhex(digits)


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as lowercase hex with a 0x prefix."""
    return "0x" + data.hex()
