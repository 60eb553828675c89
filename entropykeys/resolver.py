"""
Entropy Keys Multi-Source Resolver

Operations that span every entropy source the host exposes:

- all_public_keys(): SRP ID per source, derived concurrently, returned in
  enumeration order
- decrypt_with_any_source(): try each source's encryption key in
  enumeration order until one opens the envelope

Decryption failure policy:
    "invalid tag" means "wrong key, try the next source". Any other error
    (bad version, malformed field, ...) would recur for every source, so
    the first one seen is kept and raised if no source succeeds. Only when
    every source failed with "invalid tag" is InvalidTag raised.
"""

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Tuple, Union

from .crypto import erc1024
from .crypto.box import BoxError, InvalidTag
from .crypto.erc1024 import EncryptedEnvelope
from .keys import KeyDerivation, KeyScope


logger = logging.getLogger(__name__)

# Ordered (entropy source id, SRP ID hex) pairs
SourceKeyMap = List[Tuple[str, str]]


class MultiSourceResolver:
    """
    Runs key operations across all host entropy sources.

    Sources are enumerated afresh on every call.
    """

    def __init__(self, derivation: KeyDerivation):
        self._derivation = derivation

    async def _public_key_hex(self, scope: KeyScope) -> str:
        key_pair = await self._derivation.derive_signing_key_pair(scope)
        return key_pair.public_key_hex

    async def all_public_keys(self, salt: Optional[str] = None) -> SourceKeyMap:
        """
        Derive the signing public key of every source.

        Derivations run concurrently; asyncio.gather keeps results in
        argument order, which is enumeration order.

        Args:
            salt: Origin salt applied to every source

        Returns:
            SourceKeyMap: [(source_id, public_key_hex), ...]
        """
        sources = await self._derivation.list_entropy_sources()
        scope = KeyScope(salt=salt)

        public_keys = await asyncio.gather(
            *(self._public_key_hex(scope.with_source(source.id)) for source in sources)
        )

        logger.debug(f"Derived public keys for {len(sources)} entropy sources")
        return [(source.id, public_key) for source, public_key in zip(sources, public_keys)]

    async def decrypt_with_source(
        self,
        envelope: Union[EncryptedEnvelope, Mapping[str, Any]],
        scope: KeyScope,
    ) -> str:
        """Decrypt with one source's encryption key. Errors propagate as-is."""
        key_pair = await self._derivation.derive_encryption_key_pair(scope)
        return erc1024.decrypt(envelope, key_pair.private_key)

    async def decrypt_with_any_source(
        self,
        envelope: Union[EncryptedEnvelope, Mapping[str, Any]],
        scope: KeyScope = KeyScope(),
    ) -> str:
        """
        Decrypt an envelope, trying every source if none is named.

        Args:
            envelope: ERC1024 envelope
            scope: If scope.entropy_source_id is set only that source is used

        Returns:
            str: Decrypted message

        Raises:
            Exception: First non-tag error seen, else InvalidTag
        """
        if scope.entropy_source_id:
            return await self.decrypt_with_source(envelope, scope)

        sources = await self._derivation.list_entropy_sources()
        first_error: Optional[Exception] = None

        # One source at a time; returns on the first that opens the envelope
        for source in sources:
            key_pair = await self._derivation.derive_encryption_key_pair(
                scope.with_source(source.id)
            )
            try:
                return erc1024.decrypt(envelope, key_pair.private_key)
            except InvalidTag:
                logger.debug(f"Entropy source {source.id}: invalid tag")
            except (BoxError, ValueError) as e:
                logger.debug(f"Entropy source {source.id}: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error
        raise InvalidTag()
