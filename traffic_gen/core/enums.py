"""Enumerations for the traffic client.

This module defines enumerations used throughout the traffic client.
"""

from enum import Enum


class DistributionMode(Enum):
    """Enum for pattern selection distributions.

    Attributes:
        UNIFORM: Uniform key in (0, 100] matched against cumulative weights.
        ZIPF_MANDELBROT: Rank drawn from a Zipf-Mandelbrot distribution.
    """

    UNIFORM = 1
    ZIPF_MANDELBROT = 2


class RunState(Enum):
    """Lifecycle states of a TrafficClient run."""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class Outcome(Enum):
    """Possible outcomes of a dispatched request.

    Attributes:
        DATA: A response carrying a payload arrived.
        NACK: The request was rejected with a reason.
        TIMEOUT: Nothing arrived within the request lifetime.
    """

    DATA = "data"
    NACK = "nack"
    TIMEOUT = "timeout"
