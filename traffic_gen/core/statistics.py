"""Statistics aggregation for the traffic client.

This module defines the StatisticsAggregator, which folds request outcomes into
per-pattern and run-wide TrafficStatistics and writes the per-packet log lines.
"""

import logging
from typing import List, Optional

from traffic_gen.core.pattern import TrafficPattern, TrafficStatistics
from traffic_gen.core.request import CorrelationToken

logger = logging.getLogger(__name__)


class StatisticsAggregator:
    """Updates global and per-pattern counters as outcomes arrive.

    Attributes:
        patterns: Pattern catalog in configuration order.
        totals: Run-wide counters.
        quiet: Suppress per-response log lines.
        verbose: Log the RTT of every response.
    """

    def __init__(
        self,
        patterns: List[TrafficPattern],
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self.patterns = patterns
        self.totals = TrafficStatistics()
        self.quiet = quiet
        self.verbose = verbose

    def record_sent(self, pattern_id: int) -> None:
        """Count a request that the transport accepted.

        Args:
            pattern_id: Index of the pattern the request was built from.
        """
        self.totals.record_sent()
        self.patterns[pattern_id].stats.record_sent()

    def on_response(
        self, token: CorrelationToken, name: str, payload: Optional[str], now: float
    ) -> None:
        """Handle a response.

        Args:
            token: Token of the answered request.
            name: Name of the response.
            payload: Content of the response.
            now: Event loop time of arrival in milliseconds.
        """
        pattern = self.patterns[token.pattern_id]
        log_line = f"Data Received      - {_describe(token)}, Name={name}"

        consistent = True
        if pattern.expected_content is not None:
            consistent = payload == pattern.expected_content
            log_line += ", IsConsistent=" + ("Yes" if consistent else "No")
        else:
            log_line += ", IsConsistent=NotChecked"
        if not self.quiet:
            logger.info(log_line)

        rtt = now - token.dispatched_at
        if self.verbose:
            logger.info(f"RTT                - Name={name}, RTT={rtt:.6f}ms")

        self.totals.record_response(rtt, consistent)
        pattern.stats.record_response(rtt, consistent)

    def on_nack(self, token: CorrelationToken, name: str, reason: Optional[str]) -> None:
        """Handle a rejection. The reason is only logged."""
        logger.info(
            f"Request Nack'd     - {_describe(token)}, Name={name}, NackReason={reason}"
        )
        self.totals.record_nack()
        self.patterns[token.pattern_id].stats.record_nack()

    def on_timeout(self, token: CorrelationToken, name: str) -> None:
        """Handle a timeout. It only shows up later as loss."""
        logger.info(f"Request Timed Out  - {_describe(token)}, Name={name}")

    def has_anomaly(self) -> bool:
        """Whether any loss or content mismatch was observed."""
        return (
            self.totals.inconsistencies > 0
            or self.totals.sent != self.totals.received
        )


def _describe(token: CorrelationToken) -> str:
    return (
        f"PatternType={token.pattern_id + 1}, "
        f"GlobalID={token.global_sequence}, LocalID={token.local_sequence}"
    )
