"""
Entropy Keys - deterministic per-source keys from host entropy

Derives signing and encryption keys from opaque host entropy sources and
uses them to sign messages and decrypt ERC1024 envelopes.

This package contains:
- crypto/    : NaCl box and ERC1024 envelope codec
- entropy    : Host entropy provider interface
- keys       : Signing / encryption key derivation
- resolver   : Operations across all entropy sources
- signing    : secp256k1 message signing
- service    : The five public operations
- rpc/       : JSON-RPC request handling
- config     : TOML configuration
"""

__version__ = "0.1.0"
__author__ = "Entropy Keys Project"

from .entropy import (
    EntropyError,
    EntropyProvider,
    EntropyRequest,
    EntropySource,
    StaticEntropyProvider,
)
from .keys import (
    DerivedKeyPair,
    KeyDerivation,
    KeyDerivationError,
    KeyPurpose,
    KeyScope,
)
from .resolver import MultiSourceResolver
from .signing import SigningService, verify_signature
from .service import EntropyKeyService

__all__ = [
    'EntropyError',
    'EntropyProvider',
    'EntropyRequest',
    'EntropySource',
    'StaticEntropyProvider',
    'DerivedKeyPair',
    'KeyDerivation',
    'KeyDerivationError',
    'KeyPurpose',
    'KeyScope',
    'MultiSourceResolver',
    'SigningService',
    'verify_signature',
    'EntropyKeyService',
]
