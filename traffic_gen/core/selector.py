"""Cumulative-weight pattern selection."""

from typing import List, Optional, Sequence

import numpy as np

from traffic_gen.core.pattern import TrafficPattern


class PatternSelector:
    """Maps a sampled key to a pattern index.

    The first pattern whose cumulative weight is at least the key wins, so
    lower-indexed patterns absorb ties. A key past the final cumulative weight
    selects nothing.

    Attributes:
        cumulative_weights: Prefix sums of the pattern weights in catalog order.
    """

    def __init__(self, patterns: Sequence[TrafficPattern]) -> None:
        weights: List[float] = [pattern.weight_percent for pattern in patterns]
        self.cumulative_weights = np.cumsum(np.asarray(weights, dtype=float))

    @property
    def total_weight(self) -> float:
        if len(self.cumulative_weights) == 0:
            return 0.0
        return float(self.cumulative_weights[-1])

    def select(self, key: float) -> Optional[int]:
        """Select the pattern for a key.

        Args:
            key: Sampled lookup key.

        Returns:
            Index of the selected pattern, or None if the key falls past the end.
        """
        index = int(np.searchsorted(self.cumulative_weights, key, side="left"))
        if index >= len(self.cumulative_weights):
            return None
        return index
