"""
ERC1024 Encrypted Envelope

Versioned public-key encryption envelope as used by eth_decrypt /
eth-sig-util. Each envelope carries everything a recipient needs apart
from its own secret key.

Envelope format (all byte fields standard base64):
    {
        "version": "x25519-xsalsa20-poly1305",
        "nonce": base64(24 bytes),
        "ephemPublicKey": base64(32 bytes),
        "ciphertext": base64(tag || ciphertext)
    }

Each envelope is sealed with a fresh ephemeral X25519 key pair, so the
sender keeps no state and the recipient cannot tell senders apart.
"""

import base64
import binascii
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from . import box
from .box import BoxError, NONCE_SIZE, PUBLIC_KEY_SIZE
from .primitives import random_bytes, hex_to_bytes


KeyInput = Union[bytes, bytearray, str]


class EncryptionVersion(str, Enum):
    """Envelope algorithm identifiers."""
    X25519_XSALSA20_POLY1305 = "x25519-xsalsa20-poly1305"


DEFAULT_VERSION = EncryptionVersion.X25519_XSALSA20_POLY1305


class UnsupportedVersion(BoxError):
    """Envelope or request names an algorithm this module does not implement."""

    def __init__(self, version: Any, message: str):
        super().__init__(message)
        self.version = version


class BadPublicKey(BoxError, ValueError):
    """Receiver public key text is not valid hex."""
    pass


class BadPrivateKey(BoxError, ValueError):
    """Receiver private key text is not valid hex."""
    pass


class MalformedEncoding(BoxError, ValueError):
    """An envelope field is not valid base64 or has the wrong length."""
    pass


@dataclass(frozen=True)
class EncryptedEnvelope:
    """
    ERC1024 encrypted data object.

    `version` is kept as the raw string so envelopes naming unknown
    algorithms can still be represented and rejected on decrypt.
    """
    version: str
    nonce: str
    ephem_public_key: str
    ciphertext: str

    def to_dict(self) -> Dict[str, str]:
        """Serialize to the wire field names."""
        return {
            "version": self.version,
            "nonce": self.nonce,
            "ephemPublicKey": self.ephem_public_key,
            "ciphertext": self.ciphertext,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'EncryptedEnvelope':
        """Parse from the wire field names. Missing fields become None."""
        return cls(
            version=data.get("version"),
            nonce=data.get("nonce"),
            ephem_public_key=data.get("ephemPublicKey"),
            ciphertext=data.get("ciphertext"),
        )


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(field_name: str, value: Any, length: Optional[int] = None) -> bytes:
    if not isinstance(value, str):
        raise MalformedEncoding(f"{field_name} must be a base64 string")
    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedEncoding(f"{field_name}: invalid base64 ({e})") from e
    if length is not None and len(data) != length:
        raise MalformedEncoding(
            f"{field_name}: expected {length} bytes, got length={len(data)}"
        )
    return data


def _public_key_bytes(receiver_public_key: KeyInput) -> bytes:
    if isinstance(receiver_public_key, (bytes, bytearray)):
        return bytes(receiver_public_key)
    try:
        return hex_to_bytes(receiver_public_key)
    except ValueError:
        raise BadPublicKey("Bad public key") from None


def _private_key_bytes(receiver_private_key: KeyInput) -> bytes:
    if isinstance(receiver_private_key, (bytes, bytearray)):
        return bytes(receiver_private_key)
    try:
        return hex_to_bytes(receiver_private_key)
    except ValueError:
        raise BadPrivateKey("Bad private key") from None


def _encrypt_x25519_xsalsa20_poly1305(
    receiver_public_key: KeyInput,
    message: str,
) -> EncryptedEnvelope:
    ephemeral = box.key_pair()
    public_key = _public_key_bytes(receiver_public_key)

    message_bytes = message.encode("utf-8")
    nonce = random_bytes(NONCE_SIZE)

    sealed = box.seal(message_bytes, nonce, public_key, ephemeral.secret_key)

    return EncryptedEnvelope(
        version=EncryptionVersion.X25519_XSALSA20_POLY1305.value,
        nonce=_b64encode(nonce),
        ephem_public_key=_b64encode(ephemeral.public_key),
        ciphertext=_b64encode(sealed),
    )


def _decrypt_x25519_xsalsa20_poly1305(
    envelope: EncryptedEnvelope,
    receiver_private_key: KeyInput,
) -> str:
    secret_key = _private_key_bytes(receiver_private_key)

    nonce = _b64decode("nonce", envelope.nonce, NONCE_SIZE)
    ciphertext = _b64decode("ciphertext", envelope.ciphertext)
    ephem_public_key = _b64decode(
        "ephemPublicKey", envelope.ephem_public_key, PUBLIC_KEY_SIZE
    )

    plaintext = box.open_box(ciphertext, nonce, ephem_public_key, secret_key)
    return plaintext.decode("utf-8", errors="replace")


# One entry per EncryptionVersion member
_ENCRYPTORS: Dict[EncryptionVersion, Callable[[KeyInput, str], EncryptedEnvelope]] = {
    EncryptionVersion.X25519_XSALSA20_POLY1305: _encrypt_x25519_xsalsa20_poly1305,
}

_DECRYPTORS: Dict[EncryptionVersion, Callable[[EncryptedEnvelope, KeyInput], str]] = {
    EncryptionVersion.X25519_XSALSA20_POLY1305: _decrypt_x25519_xsalsa20_poly1305,
}


def _parse_version(version: Any) -> Optional[EncryptionVersion]:
    try:
        return EncryptionVersion(version)
    except ValueError:
        return None


def encrypt(
    receiver_public_key: KeyInput,
    message: str,
    version: Union[str, EncryptionVersion] = DEFAULT_VERSION,
) -> EncryptedEnvelope:
    """
    Encrypt a UTF-8 message for a receiver's X25519 public key.

    Args:
        receiver_public_key: 32 raw bytes or hex text (0x optional)
        message: Text to encrypt
        version: Algorithm identifier

    Returns:
        EncryptedEnvelope: Envelope with base64 fields

    Raises:
        UnsupportedVersion: If version is not implemented
        BadPublicKey: If the hex key cannot be decoded
        TypeError: If message is not a string
    """
    parsed = _parse_version(version)
    if parsed is None:
        raise UnsupportedVersion(
            version, f"Encryption type/version not supported {version}"
        )

    if not isinstance(message, str):
        raise TypeError("string expected")

    return _ENCRYPTORS[parsed](receiver_public_key, message)


def decrypt(
    envelope: Union[EncryptedEnvelope, Mapping[str, Any]],
    receiver_private_key: KeyInput,
) -> str:
    """
    Decrypt an envelope with the receiver's X25519 secret key.

    Args:
        envelope: EncryptedEnvelope or its wire dict
        receiver_private_key: 32 raw bytes or hex text (0x optional)

    Returns:
        str: Decrypted message; invalid UTF-8 becomes U+FFFD

    Raises:
        UnsupportedVersion: If envelope.version is not implemented
        BadPrivateKey: If the hex key cannot be decoded
        MalformedEncoding: If a field is not valid base64 or has the wrong size
        InvalidTag: If the key does not open the box
    """
    if not isinstance(envelope, EncryptedEnvelope):
        envelope = EncryptedEnvelope.from_dict(envelope)

    parsed = _parse_version(envelope.version)
    if parsed is None:
        raise UnsupportedVersion(
            envelope.version,
            f"Encryption type/version not supported ({envelope.version}).",
        )

    return _DECRYPTORS[parsed](envelope, receiver_private_key)
