"""Request, correlation token and transport event types.

A Request is what the client hands to a transport. The CorrelationToken
travels alongside it and comes back inside the TransportEvent that reports the
request's outcome.
"""

from dataclasses import dataclass
from typing import Optional

from traffic_gen.core.enums import Outcome


@dataclass(frozen=True)
class Request:
    """A request built from a traffic pattern.

    Attributes:
        name: Full request name including appended components.
        nonce: 32-bit request identifier.
        can_be_prefix: Whether a response may have a longer name.
        must_be_fresh: Whether cached responses must be fresh.
        lifetime_ms: Request lifetime in milliseconds, None for the default.
        next_hop_face_id: Forced next hop, None when not set.
    """

    name: str
    nonce: int
    can_be_prefix: bool = False
    must_be_fresh: bool = False
    lifetime_ms: Optional[int] = None
    next_hop_face_id: Optional[int] = None


@dataclass(frozen=True)
class CorrelationToken:
    """Ties a dispatched request to its eventual outcome.

    Attributes:
        global_sequence: Run-wide sequence number, starting at 1.
        local_sequence: Sequence number within the pattern, starting at 1.
        pattern_id: Index of the pattern in the catalog.
        dispatched_at: Event loop time of dispatch in milliseconds.
    """

    global_sequence: int
    local_sequence: int
    pattern_id: int
    dispatched_at: float


@dataclass(frozen=True)
class TransportEvent:
    """An outcome reported by a transport.

    Attributes:
        outcome: Which of the three outcomes occurred.
        global_sequence: Global sequence of the request this event answers.
        name: Name of the request or of the returned response.
        payload: Response content for DATA events.
        reason: Rejection reason for NACK events.
    """

    outcome: Outcome
    global_sequence: int
    name: str
    payload: Optional[str] = None
    reason: Optional[str] = None
