"""Visualization utilities for traffic runs.

This module provides functions for charting per-pattern statistics of a
finished run and the selection frequencies produced by a sampler.
"""

import os
from typing import Dict, List, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from traffic_gen.core.pattern import TrafficPattern  # noqa: E402


def plot_pattern_statistics(
    patterns: Sequence[TrafficPattern],
    output_dir: str,
    filename: str = "traffic_report",
) -> str:
    """Plot and save request counts, loss and average RTT per pattern.

    Args:
        patterns: Pattern catalog with its counters.
        output_dir: Directory to save the chart in.
        filename: Base filename of the chart.

    Returns:
        Path of the saved chart.
    """
    labels = [f"#{i}" for i in range(1, len(patterns) + 1)]
    sent = [p.stats.sent for p in patterns]
    received = [p.stats.received for p in patterns]
    nacks = [p.stats.nacks for p in patterns]
    loss = [p.stats.loss_percent for p in patterns]
    rtts = [p.stats.average_rtt for p in patterns]

    fig, axes = plt.subplots(1, 3, figsize=(14, 5))

    x = np.arange(len(labels))
    width = 0.25

    # Request counts subplot
    axes[0].bar(x - width, sent, width=width, label="Sent")
    axes[0].bar(x, received, width=width, label="Received")
    axes[0].bar(x + width, nacks, width=width, label="Nacks")
    axes[0].set_ylabel("Requests")
    axes[0].set_title("Requests per Pattern")
    axes[0].set_xlabel("Pattern")
    axes[0].set_xticks(x)
    axes[0].set_xticklabels(labels)
    axes[0].legend()

    # Loss subplot
    axes[1].bar(x, loss, width=0.4, color="green")
    axes[1].set_ylabel("Request Loss (%)")
    axes[1].set_title("Request Loss per Pattern")
    axes[1].set_xlabel("Pattern")
    axes[1].set_xticks(x)
    axes[1].set_xticklabels(labels)
    axes[1].set_ylim(0, 100)

    # Average RTT subplot
    axes[2].bar(x, rtts, width=0.4, color="orange")
    axes[2].set_ylabel("Average RTT (ms)")
    axes[2].set_title("Average RTT per Pattern")
    axes[2].set_xlabel("Pattern")
    axes[2].set_xticks(x)
    axes[2].set_xticklabels(labels)

    plt.tight_layout()

    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, f"{filename}.png")
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_selection_frequencies(
    frequencies: Dict[str, List[float]],
    output_dir: str,
    filename: str = "selection_frequencies",
) -> str:
    """Plot and save how often each pattern was selected under several samplers.

    Args:
        frequencies: Selection share per pattern, keyed by sampler name.
        output_dir: Directory to save the chart in.
        filename: Base filename of the chart.

    Returns:
        Path of the saved chart.
    """
    fig, ax = plt.subplots(figsize=(10, 5))

    num_series = max(len(frequencies), 1)
    width = 0.8 / num_series
    for i, (label, shares) in enumerate(frequencies.items()):
        x = np.arange(1, len(shares) + 1)
        ax.bar(x + (i - (num_series - 1) / 2) * width, shares, width=width, label=label)

    ax.set_xlabel("Pattern")
    ax.set_ylabel("Share of Requests")
    ax.set_title("Pattern Selection Frequency")
    ax.grid(True, linestyle="--", alpha=0.7)
    ax.legend()

    plt.tight_layout()

    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, f"{filename}.png")
    fig.savefig(path)
    plt.close(fig)
    return path
