"""
Entropy Keys Key Derivation

Turns host entropy into usable key pairs.

Key Types:
- Signing Key: secp256k1 key pair; the private key IS the host entropy.
  Its compressed public key doubles as the SRP ID of the source.
- Encryption Key: X25519 key pair whose secret is
  SHA256(entropy || "metamask:snaps:encryption" || salt), so it never
  equals the signing key of the same source.

SECURITY NOTES:
- Private key material only enters through EntropyProvider.get_entropy
- Nothing is cached; every call re-derives from the host
- Private keys are never logged
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

from ecdsa import SigningKey, SECP256k1, MalformedPointError

from .entropy import (
    EntropyError,
    EntropyProvider,
    EntropyRequest,
    EntropySource,
    ENTROPY_SIZE,
)
from .crypto.box import public_key_from_secret
from .crypto.primitives import sha256_digest, hex_to_bytes, bytes_to_hex


logger = logging.getLogger(__name__)

# Domain tag separating encryption secrets from signing keys
KEY_PURPOSE_ENCRYPTION = "metamask:snaps:encryption"


class KeyDerivationError(EntropyError):
    """Exception raised when host entropy cannot be turned into a key."""
    pass


class KeyPurpose(str, Enum):
    """What a derived key pair is used for."""
    SIGNING = "signing"
    ENCRYPTION = "encryption"


@dataclass(frozen=True)
class KeyScope:
    """
    Which source and origin salt a key is derived for.

    entropy_source_id=None (or "") selects the host's primary source;
    salt=None (or "") applies no domain separation.
    """
    entropy_source_id: Optional[str] = None
    salt: Optional[str] = None

    def __post_init__(self):
        # "" means "not given" for both fields
        if not self.entropy_source_id:
            object.__setattr__(self, "entropy_source_id", None)
        if not self.salt:
            object.__setattr__(self, "salt", None)

    def with_source(self, entropy_source_id: Optional[str]) -> 'KeyScope':
        """Copy of this scope bound to another source."""
        return replace(self, entropy_source_id=entropy_source_id)


@dataclass(frozen=True)
class DerivedKeyPair:
    """
    A derived key pair.

    public_key is 33 bytes (compressed secp256k1) for signing keys and
    32 bytes for X25519 encryption keys.
    """
    private_key: bytes
    public_key: bytes
    purpose: KeyPurpose

    @property
    def public_key_hex(self) -> str:
        """Public key as 0x-prefixed lowercase hex."""
        return bytes_to_hex(self.public_key)

    def __repr__(self) -> str:
        return f"DerivedKeyPair(purpose={self.purpose.value}, public_key={self.public_key_hex})"


def secp256k1_public_key(private_key: bytes) -> bytes:
    """
    Compute the compressed secp256k1 public key.

    Args:
        private_key: 32-byte scalar in [1, n-1]

    Returns:
        bytes: 33-byte compressed public key

    Raises:
        KeyDerivationError: If the scalar is out of range
    """
    try:
        signing_key = SigningKey.from_string(private_key, curve=SECP256k1)
    except MalformedPointError as e:
        raise KeyDerivationError(f"Invalid secp256k1 private key: {e}") from e
    return signing_key.get_verifying_key().to_string("compressed")


def encryption_secret(private_entropy: bytes, salt: Optional[str] = None) -> bytes:
    """
    Derive the X25519 secret for a source.

    secret = SHA256(private_entropy || KEY_PURPOSE_ENCRYPTION || salt)
    """
    extra = salt.encode("utf-8") if salt else b""
    return sha256_digest(private_entropy, KEY_PURPOSE_ENCRYPTION.encode("utf-8"), extra)


def parse_entropy(entropy_hex: str) -> bytes:
    """
    Decode host entropy into 32 raw bytes.

    Raises:
        EntropyError: If the host answer is not 32 bytes of hex
    """
    try:
        data = hex_to_bytes(entropy_hex)
    except ValueError as e:
        raise EntropyError(f"Host returned invalid entropy: {e}") from e
    if len(data) != ENTROPY_SIZE:
        raise EntropyError(
            f"Host returned {len(data)} bytes of entropy (expected {ENTROPY_SIZE})"
        )
    return data


class KeyDerivation:
    """
    Derives per-source key pairs from an EntropyProvider.

    Usage:
        derivation = KeyDerivation(provider)
        signing = await derivation.derive_signing_key_pair(KeyScope("id1"))
        encryption = await derivation.derive_encryption_key_pair(KeyScope("id1"))
    """

    def __init__(self, provider: EntropyProvider):
        self._provider = provider

    @property
    def provider(self) -> EntropyProvider:
        return self._provider

    async def list_entropy_sources(self) -> List[EntropySource]:
        """Fresh enumeration from the host, in host order."""
        return list(await self._provider.list_entropy_sources())

    async def derive_private_key(self, scope: KeyScope = KeyScope()) -> bytes:
        """
        Request raw private key bytes from the host.

        Args:
            scope: Source and salt; defaults to primary source, no salt

        Returns:
            bytes: 32-byte private key
        """
        request = EntropyRequest(source=scope.entropy_source_id, salt=scope.salt)
        logger.debug(
            f"Requesting entropy: source={scope.entropy_source_id or '<primary>'} "
            f"salted={bool(scope.salt)}"
        )
        return parse_entropy(await self._provider.get_entropy(request))

    async def derive_signing_key_pair(self, scope: KeyScope = KeyScope()) -> DerivedKeyPair:
        """secp256k1 key pair; public key is the source's SRP ID."""
        private_key = await self.derive_private_key(scope)
        return DerivedKeyPair(
            private_key=private_key,
            public_key=secp256k1_public_key(private_key),
            purpose=KeyPurpose.SIGNING,
        )

    async def derive_encryption_key_pair(self, scope: KeyScope = KeyScope()) -> DerivedKeyPair:
        """X25519 key pair, domain-separated from the signing key."""
        private_entropy = await self.derive_private_key(scope)
        secret = encryption_secret(private_entropy, scope.salt)
        return DerivedKeyPair(
            private_key=secret,
            public_key=public_key_from_secret(secret),
            purpose=KeyPurpose.ENCRYPTION,
        )
