"""Nonce cache for the traffic client.

The cache keeps the most recently minted nonces so that a configurable share
of requests can reuse one of them and exercise duplicate detection at the
target.
"""

from typing import List, Optional, Set

import numpy as np

MAX_CACHED_NONCES = 1000


class NonceCache:
    """Bounded pool of recently minted 32-bit nonces.

    The cache is cleared wholesale once it holds ``capacity`` entries; there is
    no per-entry eviction.

    Attributes:
        capacity: Maximum number of cached nonces.
        rng: Random generator used to mint and pick nonces.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        capacity: int = MAX_CACHED_NONCES,
    ) -> None:
        if capacity <= 0:
            raise ValueError("Nonce cache capacity must be positive")
        self.capacity = capacity
        self.rng = rng if rng is not None else np.random.default_rng()
        self._nonces: List[int] = []
        self._members: Set[int] = set()

    def __len__(self) -> int:
        return len(self._nonces)

    def __contains__(self, nonce: int) -> bool:
        return nonce in self._members

    def snapshot(self) -> List[int]:
        """Return a copy of the cached nonces in minting order."""
        return list(self._nonces)

    def mint(self) -> int:
        """Mint a nonce that is not currently cached and remember it.

        Returns:
            The new nonce.
        """
        if len(self._nonces) >= self.capacity:
            self._nonces.clear()
            self._members.clear()

        nonce = self._random_word()
        while nonce in self._members:
            nonce = self._random_word()

        self._nonces.append(nonce)
        self._members.add(nonce)
        return nonce

    def reuse(self) -> int:
        """Return a uniformly chosen cached nonce, minting one if empty."""
        if not self._nonces:
            return self.mint()
        return self._nonces[int(self.rng.integers(len(self._nonces)))]

    def pick(self, duplication_percent: int) -> int:
        """Choose between reusing and minting a nonce.

        Args:
            duplication_percent: Chance (0..100) of reusing a cached nonce.

        Returns:
            The nonce to put on the next request.
        """
        if int(self.rng.integers(1, 101)) <= duplication_percent:
            return self.reuse()
        return self.mint()

    def _random_word(self) -> int:
        return int(self.rng.integers(0, 2**32, dtype=np.uint64))
