"""
Entropy Keys Host Entropy Interface

The host (wallet) owns the root secrets. This module only describes how
to ask it for material:

- list_entropy_sources(): the sources the host is willing to expose
- get_entropy(request): 32 bytes of hex derived by the host from a source,
  optionally domain-separated by a salt

StaticEntropyProvider is an in-process stand-in used by the CLI and tests.
It keeps seeds in memory only.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .crypto.primitives import hkdf_derive, bytes_to_hex


logger = logging.getLogger(__name__)

# snap_getEntropy protocol version
ENTROPY_VERSION = 1
ENTROPY_SIZE = 32  # bytes


class EntropyError(Exception):
    """Exception raised when the host cannot supply usable entropy."""
    pass


class EntropySourceType(str, Enum):
    """Kind of root secret behind a source."""
    MNEMONIC = "mnemonic"


@dataclass(frozen=True)
class EntropySource:
    """A host-provided origin of private key material."""
    id: str
    name: str = ""
    type: EntropySourceType = EntropySourceType.MNEMONIC
    primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "primary": self.primary,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'EntropySource':
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            type=EntropySourceType(data.get("type", EntropySourceType.MNEMONIC.value)),
            primary=bool(data.get("primary", False)),
        )


@dataclass(frozen=True)
class EntropyRequest:
    """
    Parameters of a single get_entropy call.

    An empty salt is treated the same as no salt.
    """
    version: int = ENTROPY_VERSION
    source: Optional[str] = None
    salt: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        """Build the host request params."""
        params: Dict[str, Any] = {"version": self.version, "source": self.source}
        if self.salt:
            params["salt"] = self.salt
        return params


class EntropyProvider(Protocol):
    """Host capability that supplies entropy. Implementations may suspend."""

    async def list_entropy_sources(self) -> List[EntropySource]:
        ...

    async def get_entropy(self, request: EntropyRequest) -> str:
        ...


@dataclass
class StaticEntropyProvider:
    """
    In-memory entropy provider.

    Each source is backed by a seed; entropy for a request is
    HKDF-SHA256(seed, info="entropykeys:v<version>:<salt>").

    Usage:
        provider = StaticEntropyProvider.from_seeds({"id1": seed1, "id2": seed2})
        key_hex = await provider.get_entropy(EntropyRequest(source="id2"))
    """
    sources: List[EntropySource]
    seeds: Dict[str, bytes] = field(repr=False)

    def __post_init__(self):
        ids = [source.id for source in self.sources]
        if len(set(ids)) != len(ids):
            raise EntropyError("Duplicate entropy source id")
        missing = [source_id for source_id in ids if source_id not in self.seeds]
        if missing:
            raise EntropyError(f"No seed for entropy source: {missing[0]}")

    @classmethod
    def from_seeds(
        cls,
        seeds: Mapping[str, bytes],
        primary: Optional[str] = None,
    ) -> 'StaticEntropyProvider':
        """
        Build a provider from an ordered mapping of source id to seed.

        The first source is primary unless `primary` names another.
        """
        if not seeds:
            raise EntropyError("At least one entropy source is required")
        primary_id = primary if primary is not None else next(iter(seeds))
        sources = [
            EntropySource(id=source_id, name=source_id, primary=(source_id == primary_id))
            for source_id in seeds
        ]
        return cls(sources=sources, seeds=dict(seeds))

    @classmethod
    def from_sources(
        cls,
        sources: Sequence[EntropySource],
        seeds: Sequence[bytes],
    ) -> 'StaticEntropyProvider':
        """Pair sources with seeds by position."""
        if len(sources) != len(seeds):
            raise EntropyError(
                f"Expected {len(sources)} seeds, got {len(seeds)}"
            )
        return cls(
            sources=list(sources),
            seeds={source.id: seed for source, seed in zip(sources, seeds)},
        )

    def _primary_id(self) -> str:
        for source in self.sources:
            if source.primary:
                return source.id
        if not self.sources:
            raise EntropyError("No entropy sources available")
        return self.sources[0].id

    async def list_entropy_sources(self) -> List[EntropySource]:
        return list(self.sources)

    async def get_entropy(self, request: EntropyRequest) -> str:
        source_id = request.source if request.source is not None else self._primary_id()
        seed = self.seeds.get(source_id)
        if seed is None:
            raise EntropyError(f"Unknown entropy source: {source_id}")

        logger.debug(f"Static entropy request: source={source_id} salted={bool(request.salt)}")

        info = f"entropykeys:v{request.version}:{request.salt or ''}".encode("utf-8")
        return bytes_to_hex(hkdf_derive(seed, ENTROPY_SIZE, info))
