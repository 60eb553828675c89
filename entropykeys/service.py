"""
Entropy Keys Service

The five operations exposed to the request layer. Each takes the origin
salt computed by the caller and threads it unchanged into derivation.
"""

from typing import Any, Mapping, Optional, Union

from .entropy import EntropyProvider
from .keys import KeyDerivation, KeyScope
from .resolver import MultiSourceResolver, SourceKeyMap
from .signing import SigningService
from .crypto.erc1024 import EncryptedEnvelope


class EntropyKeyService:
    """
    Facade over key derivation, signing and multi-source decryption.

    Usage:
        service = EntropyKeyService(provider)
        srp_id = await service.get_public_key()
        plaintext = await service.decrypt_message(envelope)
    """

    def __init__(self, provider: EntropyProvider):
        self._derivation = KeyDerivation(provider)
        self._resolver = MultiSourceResolver(self._derivation)
        self._signer = SigningService(self._derivation)

    @property
    def derivation(self) -> KeyDerivation:
        return self._derivation

    async def get_public_key(
        self,
        entropy_source_id: Optional[str] = None,
        salt: Optional[str] = None,
    ) -> str:
        """Signing public key (SRP ID) as 0x hex."""
        key_pair = await self._derivation.derive_signing_key_pair(
            KeyScope(entropy_source_id, salt)
        )
        return key_pair.public_key_hex

    async def get_all_public_keys(self, salt: Optional[str] = None) -> SourceKeyMap:
        """(source id, SRP ID) for every source, in host order."""
        return await self._resolver.all_public_keys(salt)

    async def sign_message(
        self,
        message: str,
        entropy_source_id: Optional[str] = None,
        salt: Optional[str] = None,
    ) -> str:
        """Compact secp256k1 signature as 0x hex."""
        return await self._signer.sign_message(message, KeyScope(entropy_source_id, salt))

    async def get_encryption_public_key(
        self,
        entropy_source_id: Optional[str] = None,
        salt: Optional[str] = None,
    ) -> str:
        """X25519 encryption public key as 0x hex."""
        key_pair = await self._derivation.derive_encryption_key_pair(
            KeyScope(entropy_source_id, salt)
        )
        return key_pair.public_key_hex

    async def decrypt_message(
        self,
        envelope: Union[EncryptedEnvelope, Mapping[str, Any]],
        entropy_source_id: Optional[str] = None,
        salt: Optional[str] = None,
    ) -> str:
        """Decrypt an ERC1024 envelope, trying all sources if none is given."""
        return await self._resolver.decrypt_with_any_source(
            envelope, KeyScope(entropy_source_id, salt)
        )
