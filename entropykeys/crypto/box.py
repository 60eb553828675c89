"""
Entropy Keys NaCl Box

NaCl-compatible `box` public-key authenticated encryption.

Construction:
    s = X25519(own_private, peer_public)
    k = HSalsa20(s, zero16, "expand 32-byte k")
    box = XSalsa20-Poly1305(k, nonce).seal(message)

The output layout matches crypto_box / tweetnacl:
    tag (16 bytes) || ciphertext

SECURITY NOTES:
- The shared key comes from libsodium crypto_box_beforenm; the raw
  X25519 point is never used as a cipher key
- Nonces must never repeat for the same key pair; callers draw them
  from the CSPRNG
- An authentication failure is always reported as InvalidTag so
  callers can tell "wrong key" apart from malformed input
"""

from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives import serialization
from nacl import bindings
from nacl.exceptions import CryptoError

from .primitives import X25519_KEY_SIZE, XSALSA20_NONCE_SIZE


PUBLIC_KEY_SIZE = X25519_KEY_SIZE
SECRET_KEY_SIZE = X25519_KEY_SIZE
NONCE_SIZE = XSALSA20_NONCE_SIZE

# Message callers match on when deciding whether to try another key
INVALID_TAG_MESSAGE = "invalid tag"


class BoxError(Exception):
    """Base class for box and envelope errors."""
    pass


class InvalidKeyType(BoxError, TypeError):
    """Key material is not a byte string."""
    pass


class InvalidKeyLength(BoxError, ValueError):
    """Key material has the wrong length."""
    pass


class InvalidNonceLength(BoxError, ValueError):
    """Nonce is not exactly 24 bytes."""
    pass


class LowOrderPublicKey(BoxError, ValueError):
    """Peer public key yields an all-zero shared point."""
    pass


class InvalidTag(BoxError):
    """Poly1305 authentication failed (tampering or wrong key)."""

    def __init__(self, message: str = INVALID_TAG_MESSAGE):
        super().__init__(message)


@dataclass(frozen=True)
class BoxKeyPair:
    """X25519 key pair in raw 32-byte form."""
    secret_key: bytes
    public_key: bytes


def _check_key_types(public_key, secret_key) -> None:
    if not isinstance(public_key, (bytes, bytearray)):
        raise InvalidKeyType("publicKey must be bytes")
    if not isinstance(secret_key, (bytes, bytearray)):
        raise InvalidKeyType("secretKey must be bytes")


def _check_key_lengths(public_key: bytes, secret_key: bytes) -> None:
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise InvalidKeyLength(f"publicKey must be {PUBLIC_KEY_SIZE} bytes long")
    if len(secret_key) != SECRET_KEY_SIZE:
        raise InvalidKeyLength(f"secretKey must be {SECRET_KEY_SIZE} bytes long")


def _check_nonce(nonce) -> None:
    if not isinstance(nonce, (bytes, bytearray)):
        raise InvalidNonceLength("nonce must be bytes")
    if len(nonce) != NONCE_SIZE:
        raise InvalidNonceLength(
            f"nonce must be {NONCE_SIZE} bytes long, got length={len(nonce)}"
        )


def public_key_from_secret(secret_key: bytes) -> bytes:
    """
    Compute the X25519 public key for a 32-byte secret.

    The secret is clamped by X25519 itself, so any 32 bytes are accepted.

    Args:
        secret_key: 32-byte X25519 secret

    Returns:
        bytes: 32-byte public key
    """
    if not isinstance(secret_key, (bytes, bytearray)):
        raise InvalidKeyType("secretKey must be bytes")
    if len(secret_key) != SECRET_KEY_SIZE:
        raise InvalidKeyLength(f"secretKey must be {SECRET_KEY_SIZE} bytes long")

    private = X25519PrivateKey.from_private_bytes(bytes(secret_key))
    return private.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )


def key_pair() -> BoxKeyPair:
    """
    Generate a fresh X25519 key pair.

    Returns:
        BoxKeyPair: New key pair (uses os.urandom via OpenSSL)
    """
    private = X25519PrivateKey.generate()
    secret = private.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption()
    )
    public = private.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )
    return BoxKeyPair(secret_key=secret, public_key=public)


def shared_key(peer_public_key: bytes, own_secret_key: bytes) -> bytes:
    """
    Compute the NaCl box shared key (crypto_box_beforenm).

    Args:
        peer_public_key: Peer's 32-byte X25519 public key
        own_secret_key: Own 32-byte X25519 secret key

    Returns:
        bytes: 32-byte XSalsa20-Poly1305 key

    Raises:
        LowOrderPublicKey: If the shared point is all zero
    """
    _check_key_types(peer_public_key, own_secret_key)
    _check_key_lengths(peer_public_key, own_secret_key)

    try:
        return bindings.crypto_box_beforenm(bytes(peer_public_key), bytes(own_secret_key))
    except CryptoError:
        raise LowOrderPublicKey("publicKey is a low-order point") from None


def seal(
    message: bytes,
    nonce: bytes,
    peer_public_key: bytes,
    own_secret_key: bytes,
) -> bytes:
    """
    Encrypt and authenticate a message for a peer.

    Args:
        message: Plaintext bytes
        nonce: 24-byte nonce, unique per (key pair, message)
        peer_public_key: Recipient's X25519 public key
        own_secret_key: Sender's X25519 secret key

    Returns:
        bytes: tag || ciphertext (len(message) + 16 bytes)
    """
    key = shared_key(peer_public_key, own_secret_key)
    _check_nonce(nonce)
    return bindings.crypto_secretbox(bytes(message), bytes(nonce), key)


def open_box(
    box: bytes,
    nonce: bytes,
    peer_public_key: bytes,
    own_secret_key: bytes,
) -> bytes:
    """
    Verify and decrypt a box.

    Args:
        box: tag || ciphertext as produced by seal()
        nonce: 24-byte nonce used at encryption time
        peer_public_key: Sender's X25519 public key
        own_secret_key: Recipient's X25519 secret key

    Returns:
        bytes: Decrypted plaintext

    Raises:
        InvalidTag: If authentication fails
    """
    key = shared_key(peer_public_key, own_secret_key)
    _check_nonce(nonce)

    try:
        return bindings.crypto_secretbox_open(bytes(box), bytes(nonce), key)
    except CryptoError:
        raise InvalidTag() from None
