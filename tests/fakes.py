"""Fake entropy provider returning fixed hex per source."""

import asyncio
import hashlib
from typing import Dict, List, Optional

from entropykeys.entropy import EntropyError, EntropyRequest, EntropySource


MOCK_PRIVATE_KEY = "0xec180de430cef919666c2009b91ca3d3b7f6c471136abc9937fa40b89357bbb9"
MOCK_PUBLIC_KEY = "0x02c291ee55d10abcc46de22b775cb0782b06f386ced8b0d0fccb8007a686bbddad"

SOURCE_ENTROPY = {
    "id1": "0x" + "11" * 32,
    "id2": "0x" + "22" * 32,
    "id3": "0x" + "33" * 32,
}


class FakeEntropyProvider:
    """
    Provider returning fixed hex per source.

    Salted requests answer sha256(hex || salt) so salted and unsalted
    keys differ. `delays` lets derivations finish out of order.
    """

    def __init__(
        self,
        entropy: Dict[str, str],
        primary: Optional[str] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.entropy = dict(entropy)
        self.primary = primary or next(iter(entropy))
        self.delays = delays or {}
        self.requests: List[EntropyRequest] = []
        self.completed: List[str] = []

    async def list_entropy_sources(self) -> List[EntropySource]:
        return [
            EntropySource(id=source_id, name=source_id, primary=(source_id == self.primary))
            for source_id in self.entropy
        ]

    async def get_entropy(self, request: EntropyRequest) -> str:
        self.requests.append(request)
        source_id = request.source or self.primary
        if source_id not in self.entropy:
            raise EntropyError(f"Unknown entropy source: {source_id}")

        await asyncio.sleep(self.delays.get(source_id, 0))
        self.completed.append(source_id)

        value = self.entropy[source_id]
        if request.salt:
            value = "0x" + hashlib.sha256((value + request.salt).encode()).hexdigest()
        return value
