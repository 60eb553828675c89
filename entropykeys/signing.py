"""
Entropy Keys Message Signing

secp256k1 ECDSA over SHA-256 of the raw UTF-8 message.

Signature format:
    "0x" || hex(r (32 bytes) || s (32 bytes))

Nonces follow RFC 6979, so the same key and message always give the same
signature. s is normalised to the lower half of the curve order.
"""

import hashlib
import logging

from ecdsa import SigningKey, VerifyingKey, SECP256k1, BadSignatureError, MalformedPointError
from ecdsa.util import sigencode_string_canonize, sigdecode_string

from .keys import KeyDerivation, KeyScope, KeyDerivationError
from .crypto.primitives import (
    sha256_digest,
    hex_to_bytes,
    bytes_to_hex,
    COMPACT_SIGNATURE_SIZE,
)


logger = logging.getLogger(__name__)


def message_digest(message: str) -> bytes:
    """SHA-256 of the UTF-8 message bytes, no prefix or framing."""
    if not isinstance(message, str):
        raise TypeError("message must be a string")
    return sha256_digest(message.encode("utf-8"))


def sign_digest(private_key: bytes, digest: bytes) -> bytes:
    """
    Sign a 32-byte digest with RFC 6979 deterministic ECDSA.

    Args:
        private_key: 32-byte secp256k1 private key
        digest: 32-byte message digest

    Returns:
        bytes: 64-byte compact signature (r || s), low-s
    """
    try:
        signing_key = SigningKey.from_string(private_key, curve=SECP256k1)
    except MalformedPointError as e:
        raise KeyDerivationError(f"Invalid secp256k1 private key: {e}") from e

    return signing_key.sign_digest_deterministic(
        digest,
        hashfunc=hashlib.sha256,
        sigencode=sigencode_string_canonize,
    )


def verify_signature(signature_hex: str, message: str, public_key_hex: str) -> bool:
    """
    Verify a compact signature produced by sign_message().

    Args:
        signature_hex: 0x-prefixed 64-byte compact signature
        message: Original message
        public_key_hex: 0x-prefixed compressed (or uncompressed) public key

    Returns:
        bool: True if signature is valid
    """
    try:
        signature = hex_to_bytes(signature_hex)
        public_key = hex_to_bytes(public_key_hex)
        if len(signature) != COMPACT_SIGNATURE_SIZE:
            return False
        verifying_key = VerifyingKey.from_string(public_key, curve=SECP256k1)
        return verifying_key.verify_digest(
            signature,
            message_digest(message),
            sigdecode=sigdecode_string,
        )
    except (BadSignatureError, MalformedPointError, ValueError, TypeError):
        return False


class SigningService:
    """
    Signs messages with a derived signing key.

    Usage:
        service = SigningService(KeyDerivation(provider))
        signature = await service.sign_message("metamask:hello", KeyScope("id1"))
    """

    def __init__(self, derivation: KeyDerivation):
        self._derivation = derivation

    async def sign_message(self, message: str, scope: KeyScope = KeyScope()) -> str:
        """
        Sign a message with the scope's signing key.

        Args:
            message: Text to sign (hashed as UTF-8)
            scope: Source and salt of the signing key

        Returns:
            str: 0x-prefixed lowercase hex compact signature
        """
        digest = message_digest(message)
        private_key = await self._derivation.derive_private_key(scope)
        signature = sign_digest(private_key, digest)
        logger.debug(f"Signed message for source={scope.entropy_source_id or '<primary>'}")
        return bytes_to_hex(signature)
