"""Distribution samplers for pattern selection.

Each scheduling tick draws one key from a sampler. The key is then matched
against the cumulative pattern weights by the PatternSelector.
"""

from abc import ABC, abstractmethod
import math
from typing import Optional

import numpy as np

from traffic_gen.core.enums import DistributionMode


class DistributionSampler(ABC):
    """Abstract base class for key samplers."""

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        """
        Initialize the sampler.

        Args:
            rng: Random generator for draws (a fresh one if not given).
        """
        self.name = "Base Sampler"
        self.rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def sample(self) -> float:
        """
        Draw the lookup key for one tick.

        Returns:
            The key to match against cumulative weights.
        """
        pass

    def __repr__(self) -> str:
        return self.name


class UniformSampler(DistributionSampler):
    """Uniform keys in (0, 100]."""

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        super().__init__(rng)
        self.name = "Uniform"

    def sample(self) -> float:
        # rng.uniform covers [0, 100); flip it to exclude zero
        return 100.0 - self.rng.uniform(0.0, 100.0)


class ZipfMandelbrotSampler(DistributionSampler):
    """Zipf-Mandelbrot ranks over a fixed number of patterns.

    Rank ``k`` in ``1..N`` is drawn with probability proportional to
    ``1 / (k + q) ** s``. The lookup key is the drawn rank ``k``.
    """

    def __init__(
        self,
        num_patterns: int,
        skew: float,
        offset: float,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        super().__init__(rng)
        self.name = "Zipf-Mandelbrot"
        if num_patterns <= 0:
            raise ValueError("Zipf-Mandelbrot sampling needs at least one pattern")
        if not (math.isfinite(skew) and math.isfinite(offset)):
            raise ValueError("Zipf-Mandelbrot parameters must be finite")
        if offset <= -1:
            raise ValueError("Zipf-Mandelbrot offset must be greater than -1")

        self.num_patterns = num_patterns
        self.skew = skew
        self.offset = offset

        ranks = np.arange(1, num_patterns + 1, dtype=float)
        weights = 1.0 / np.power(ranks + offset, skew)
        self.probabilities = weights / np.sum(weights)
        self._ranks = ranks

    def draw_rank(self) -> float:
        """Draw a rank ``k`` in ``1..N``."""
        return float(self.rng.choice(self._ranks, p=self.probabilities))

    def draw_offset_rank(self) -> float:
        """Draw ``k + q`` for a rank ``k`` in ``1..N``."""
        return self.draw_rank() + self.offset

    def sample(self) -> float:
        # keys are exact ranks
        return self.draw_rank()


def sampler_factory(
    mode: DistributionMode,
    num_patterns: int,
    skew: float,
    offset: float,
    rng: Optional[np.random.Generator] = None,
) -> DistributionSampler:
    """
    Factory function to create the sampler for a run.

    Args:
        mode: Distribution chosen for the run.
        num_patterns: Number of configured patterns.
        skew: Zipf-Mandelbrot skew factor s.
        offset: Zipf-Mandelbrot offset q.
        rng: Random generator shared by the run.

    Returns:
        An instance of the selected sampler.
    """
    if mode == DistributionMode.ZIPF_MANDELBROT:
        return ZipfMandelbrotSampler(num_patterns, skew, offset, rng)
    return UniformSampler(rng)
