"""
Entropy Keys Cryptographic Module

Provides the encryption building blocks:
- NaCl-compatible box (X25519 + HSalsa20 + XSalsa20-Poly1305)
- ERC1024 versioned envelope codec
- Hashing, HKDF, randomness and hex helpers

Private keys never enter this module from anywhere but the caller;
nothing here stores or caches key material.
"""

from .primitives import (
    random_bytes,
    sha256_digest,
    hkdf_derive,
    hex_to_bytes,
    bytes_to_hex,
)

from .box import (
    BoxKeyPair,
    BoxError,
    InvalidKeyType,
    InvalidKeyLength,
    InvalidNonceLength,
    LowOrderPublicKey,
    InvalidTag,
    INVALID_TAG_MESSAGE,
    key_pair,
    shared_key,
    seal,
    open_box,
    public_key_from_secret,
)

from .erc1024 import (
    EncryptedEnvelope,
    EncryptionVersion,
    UnsupportedVersion,
    BadPublicKey,
    BadPrivateKey,
    MalformedEncoding,
    encrypt,
    decrypt,
)

__all__ = [
    # Primitives
    'random_bytes',
    'sha256_digest',
    'hkdf_derive',
    'hex_to_bytes',
    'bytes_to_hex',
    # Box
    'BoxKeyPair',
    'BoxError',
    'InvalidKeyType',
    'InvalidKeyLength',
    'InvalidNonceLength',
    'LowOrderPublicKey',
    'InvalidTag',
    'INVALID_TAG_MESSAGE',
    'key_pair',
    'shared_key',
    'seal',
    'open_box',
    'public_key_from_secret',
    # ERC1024
    'EncryptedEnvelope',
    'EncryptionVersion',
    'UnsupportedVersion',
    'BadPublicKey',
    'BadPrivateKey',
    'MalformedEncoding',
    'encrypt',
    'decrypt',
]
