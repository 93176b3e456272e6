"""Report utilities for the traffic client.

This module renders run statistics to the log and saves them as a CSV summary
with one row for the whole run and one row per traffic pattern.
"""

import csv
import logging
import os
from typing import Any, Dict, List, Sequence

from traffic_gen.core.pattern import TrafficPattern, TrafficStatistics
from traffic_gen.utils.logger import CONSOLE

logger = logging.getLogger(__name__)

SUMMARY_HEADER = [
    "PatternID",
    "RequestsSent",
    "ResponsesReceived",
    "Nacks",
    "RequestLoss(%)",
    "Inconsistency(%)",
    "TotalRTT(ms)",
    "AverageRTT(ms)",
    "MinRTT(ms)",
    "MaxRTT(ms)",
]


def summarize(stats: TrafficStatistics) -> Dict[str, Any]:
    """Compute the reported values for one set of counters.

    Args:
        stats: Counters of a pattern or of the whole run.

    Returns:
        Dictionary of counts and derived metrics.
    """
    return {
        "sent": stats.sent,
        "received": stats.received,
        "nacks": stats.nacks,
        "loss": stats.loss_percent,
        "inconsistency": stats.inconsistency_percent,
        "total_rtt": stats.total_rtt,
        "average_rtt": stats.average_rtt,
        "min_rtt": stats.minimum_rtt,
        "max_rtt": stats.max_rtt,
    }


def summary_rows(
    patterns: Sequence[TrafficPattern], totals: TrafficStatistics
) -> List[List[str]]:
    """Build the CSV rows, overall first, in SUMMARY_HEADER column order."""

    def row(label: str, stats: TrafficStatistics) -> List[str]:
        s = summarize(stats)
        return [
            label,
            str(s["sent"]),
            str(s["received"]),
            str(s["nacks"]),
            f"{s['loss']:.6f}",
            f"{s['inconsistency']:.6f}",
            f"{s['total_rtt']:.6f}",
            f"{s['average_rtt']:.6f}",
            f"{s['min_rtt']:.6f}",
            f"{s['max_rtt']:.6f}",
        ]

    rows = [row("Overall", totals)]
    for pattern_id, pattern in enumerate(patterns, start=1):
        rows.append(row(str(pattern_id), pattern.stats))
    return rows


def save_summary_to_csv(
    patterns: Sequence[TrafficPattern],
    totals: TrafficStatistics,
    filename: str = "log.csv",
) -> None:
    """Save the run summary to a CSV file.

    Args:
        patterns: Pattern catalog with its counters.
        totals: Run-wide counters.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(SUMMARY_HEADER)
        writer.writerows(summary_rows(patterns, totals))


def _log_counters(stats: TrafficStatistics) -> None:
    s = summarize(stats)
    logger.info(f"Total Requests Sent         = {s['sent']}", extra=CONSOLE)
    logger.info(f"Total Responses Received    = {s['received']}", extra=CONSOLE)
    logger.info(f"Total Nacks Received        = {s['nacks']}", extra=CONSOLE)
    logger.info(f"Total Request Loss          = {s['loss']:.6f}%", extra=CONSOLE)
    logger.info(f"Total Data Inconsistency    = {s['inconsistency']:.6f}%", extra=CONSOLE)
    logger.info(f"Total Round Trip Time       = {s['total_rtt']:.6f}ms", extra=CONSOLE)
    logger.info(f"Average Round Trip Time     = {s['average_rtt']:.6f}ms", extra=CONSOLE)
    if stats.received:
        logger.info(f"Minimum Round Trip Time     = {s['min_rtt']:.6f}ms", extra=CONSOLE)
        logger.info(f"Maximum Round Trip Time     = {s['max_rtt']:.6f}ms", extra=CONSOLE)


def log_statistics(patterns: Sequence[TrafficPattern], totals: TrafficStatistics) -> None:
    """Write the human readable traffic report to the log.

    Args:
        patterns: Pattern catalog with its counters.
        totals: Run-wide counters.
    """
    logger.info("== Traffic Report ==", extra=CONSOLE)
    logger.info(f"Total Traffic Pattern Types = {len(patterns)}", extra=CONSOLE)
    _log_counters(totals)

    for pattern_id, pattern in enumerate(patterns, start=1):
        logger.info(f"Traffic Pattern Type #{pattern_id}", extra=CONSOLE)
        logger.info(pattern.describe(), extra=CONSOLE)
        _log_counters(pattern.stats)
