"""Delay generators for the simulated forwarder.

This module provides functions returning callables that produce round-trip
delays in milliseconds: constant, uniform, exponential and Pareto.
"""

from typing import Callable, Optional

import numpy as np


def constant_delay(delay: float) -> Callable[[], float]:
    """Generate a constant delay.

    Args:
        delay: Delay in milliseconds.

    Returns:
        Function that returns the same delay every time.
    """
    return lambda: delay


def uniform_delay(
    min_delay: float, max_delay: float, rng: Optional[np.random.Generator] = None
) -> Callable[[], float]:
    """Generate uniformly distributed delays.

    Args:
        min_delay: Minimum delay in milliseconds.
        max_delay: Maximum delay in milliseconds.
        rng: Random generator (a fresh one if not given).

    Returns:
        Function that returns a delay between min_delay and max_delay.
    """
    rng = rng if rng is not None else np.random.default_rng()
    return lambda: float(rng.uniform(min_delay, max_delay))


def exponential_delay(
    mean_delay: float, rng: Optional[np.random.Generator] = None
) -> Callable[[], float]:
    """Generate exponentially distributed delays.

    Args:
        mean_delay: Mean delay in milliseconds.
        rng: Random generator (a fresh one if not given).

    Returns:
        Function that returns an exponentially distributed delay.
    """
    rng = rng if rng is not None else np.random.default_rng()
    return lambda: float(rng.exponential(mean_delay))


def pareto_delay(
    mean_delay: float, alpha: float = 1.5, rng: Optional[np.random.Generator] = None
) -> Callable[[], float]:
    """Generate Pareto (heavy-tailed) delays.

    Args:
        mean_delay: Mean delay in milliseconds.
        alpha: Shape parameter, must be greater than 1 (default: 1.5).
        rng: Random generator (a fresh one if not given).

    Returns:
        Function that returns a Pareto distributed delay.
    """
    if alpha <= 1:
        raise ValueError("Pareto shape must be greater than 1 for a finite mean")
    rng = rng if rng is not None else np.random.default_rng()
    scale = mean_delay * (alpha - 1) / alpha
    return lambda: float((rng.pareto(alpha) + 1) * scale)
