"""Traffic pattern model for the traffic client.

This module defines the TrafficPattern class, which describes one class of
generated requests, and the TrafficStatistics counters kept for each pattern
and for the run as a whole.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class TrafficStatistics:
    """Counters accumulated while a run is in progress.

    Derived values (loss, inconsistency, average RTT) are computed on demand
    and are never stored pre-divided.

    Attributes:
        sent: Requests handed to the transport.
        received: Responses received.
        nacks: Rejections received.
        inconsistencies: Responses whose content differed from the expected one.
        min_rtt: Smallest round-trip time in milliseconds.
        max_rtt: Largest round-trip time in milliseconds.
        total_rtt: Sum of all round-trip times in milliseconds.
    """

    sent: int = 0
    received: int = 0
    nacks: int = 0
    inconsistencies: int = 0
    min_rtt: float = float("inf")
    max_rtt: float = 0.0
    total_rtt: float = 0.0

    def record_sent(self) -> None:
        """Count one dispatched request."""
        self.sent += 1

    def record_response(self, rtt: float, consistent: bool = True) -> None:
        """Count one response and fold its round-trip time into the totals.

        Args:
            rtt: Round-trip time in milliseconds.
            consistent: Whether the content matched the expected content.
        """
        self.received += 1
        if not consistent:
            self.inconsistencies += 1
        self.min_rtt = min(self.min_rtt, rtt)
        self.max_rtt = max(self.max_rtt, rtt)
        self.total_rtt += rtt

    def record_nack(self) -> None:
        """Count one rejection."""
        self.nacks += 1

    @property
    def loss_percent(self) -> float:
        if self.sent == 0:
            return 0.0
        return (self.sent - self.received) * 100.0 / self.sent

    @property
    def inconsistency_percent(self) -> float:
        if self.received == 0:
            return 0.0
        return self.inconsistencies * 100.0 / self.received

    @property
    def average_rtt(self) -> float:
        if self.received == 0:
            return 0.0
        return self.total_rtt / self.received

    @property
    def minimum_rtt(self) -> float:
        """Smallest RTT, or 0.0 when nothing was received."""
        return self.min_rtt if self.received else 0.0


@dataclass
class TrafficPattern:
    """Represents one configured request template.

    Attributes:
        weight_percent: Share of generated traffic (cumulative semantics).
        name: Name prefix of generated requests.
        append_bytes: Length of a random component appended to the name.
        append_sequence_number: Next sequence number appended to the name.
        can_be_prefix: Whether a response may have a longer name.
        must_be_fresh: Whether cached responses must be fresh.
        nonce_duplication_percent: Chance (0..100) to reuse a cached nonce.
        lifetime_ms: Request lifetime in milliseconds.
        next_hop_face_id: Forced next hop for the request.
        expected_content: Content every response is checked against.
        stats: Counters accumulated for this pattern.
    """

    weight_percent: float = 0.0
    name: str = ""
    append_bytes: Optional[int] = None
    append_sequence_number: Optional[int] = None
    can_be_prefix: bool = False
    must_be_fresh: bool = False
    nonce_duplication_percent: int = 0
    lifetime_ms: Optional[int] = None
    next_hop_face_id: Optional[int] = None
    expected_content: Optional[str] = None
    stats: TrafficStatistics = field(default_factory=TrafficStatistics, repr=False)

    def next_sequence_number(self) -> Optional[int]:
        """Return the current sequence number and advance the cursor.

        Returns:
            The sequence number to append, or None if the pattern has none.
        """
        if self.append_sequence_number is None:
            return None
        seq_num = self.append_sequence_number
        self.append_sequence_number = seq_num + 1
        return seq_num

    def describe(self) -> str:
        """Echo the pattern configuration in Key=Value form.

        Returns:
            Comma separated Key=Value pairs for every field that is set.
        """
        parts: List[str] = [
            f"TrafficPercentage={self.weight_percent:g}",
            f"Name={self.name}",
        ]
        if self.append_bytes is not None:
            parts.append(f"NameAppendBytes={self.append_bytes}")
        if self.append_sequence_number is not None:
            parts.append(f"NameAppendSequenceNumber={self.append_sequence_number}")
        if self.can_be_prefix:
            parts.append("CanBePrefix=1")
        if self.must_be_fresh:
            parts.append("MustBeFresh=1")
        if self.nonce_duplication_percent > 0:
            parts.append(f"NonceDuplicationPercentage={self.nonce_duplication_percent}")
        if self.lifetime_ms is not None:
            parts.append(f"InterestLifetime={self.lifetime_ms}")
        if self.next_hop_face_id is not None:
            parts.append(f"NextHopFaceId={self.next_hop_face_id}")
        if self.expected_content is not None:
            parts.append(f"ExpectedContent={self.expected_content}")
        return ", ".join(parts)
