#!/usr/bin/env python3
"""Example traffic runs using the traffic_gen package.

This script builds a small pattern catalog in code and runs it against the
simulated forwarder once with uniform selection and once with Zipf-Mandelbrot
selection, then compares how traffic was spread across the patterns.
"""

from typing import Callable, Dict, List
import copy

import numpy as np
import simpy

from traffic_gen.core.client import TrafficClient
from traffic_gen.core.enums import DistributionMode
from traffic_gen.core.pattern import TrafficPattern
from traffic_gen.transport.delays import exponential_delay
from traffic_gen.transport.simulated import SimulatedForwarder
from traffic_gen.utils.config import RunConfig
from traffic_gen.utils.logger import setup_logging
from traffic_gen.utils.report import summarize
from traffic_gen.utils.visualization import (
    plot_pattern_statistics,
    plot_selection_frequencies,
)


def client_creator(
    patterns: List[TrafficPattern],
    loss_percent: float = 2.0,
    nack_percent: float = 1.0,
    mean_delay: float = 25.0,
    seed: int = 42,
) -> Callable[[RunConfig], TrafficClient]:
    """Create traffic clients that share a pattern catalog template.

    Args:
        patterns: Pattern template; every client gets its own copy.
        loss_percent: Share of requests the forwarder drops.
        nack_percent: Share of requests the forwarder rejects.
        mean_delay: Mean round-trip delay in milliseconds.
        seed: Random seed for reproducibility.

    Returns:
        A function that instantiates a TrafficClient for a run configuration.
    """

    def instantiate_client(config: RunConfig) -> TrafficClient:
        env = simpy.Environment()
        rng = np.random.default_rng(seed)
        catalog = copy.deepcopy(patterns)
        producers = {"/": ""}
        producers.update(
            {p.name: p.expected_content for p in catalog if p.expected_content is not None}
        )
        forwarder = SimulatedForwarder(
            env,
            producers=producers,
            delay=exponential_delay(mean_delay, rng),
            loss_percent=loss_percent,
            nack_percent=nack_percent,
            rng=rng,
        )
        return TrafficClient(env, catalog, forwarder, config, rng)

    return instantiate_client


def main() -> None:
    """Run a uniform and a Zipf-Mandelbrot run and compare them."""

    output_dir: str = "results"
    count: int = 2000

    setup_logging("example")

    patterns: List[TrafficPattern] = [
        TrafficPattern(weight_percent=1, name=f"/hot/{i}", expected_content=f"content-{i}")
        for i in range(1, 6)
    ]

    create_client = client_creator(patterns)

    runs: Dict[str, RunConfig] = {
        "Uniform": RunConfig(
            interval_ms=10, max_requests=count, mode=DistributionMode.UNIFORM, quiet=True
        ),
        "Zipf-Mandelbrot": RunConfig(
            interval_ms=10,
            max_requests=count,
            mode=DistributionMode.ZIPF_MANDELBROT,
            zipf_factor=1.2,
            q_value=0.0,
            quiet=True,
        ),
    }

    frequencies: Dict[str, List[float]] = {}
    for label, config in runs.items():
        print(f"Running {label} selection...")
        client = create_client(config)
        # Uniform keys above the total weight of 5 are skipped, so bound the run
        exit_code = client.run(duration=count * config.interval_ms * 30)

        totals = summarize(client.totals)
        print(f"  Requests sent:   {totals['sent']}")
        print(f"  Loss:            {totals['loss']:.2f}%")
        print(f"  Average RTT:     {totals['average_rtt']:.3f} ms")
        print(f"  Exit code:       {exit_code}")

        sent = max(client.totals.sent, 1)
        frequencies[label] = [p.stats.sent / sent for p in client.patterns]
        plot_pattern_statistics(client.patterns, output_dir, f"{label.lower()}_report")

    plot_selection_frequencies(frequencies, output_dir)

    print(f"\nRuns complete. Charts saved to '{output_dir}' directory.")


if __name__ == "__main__":
    main()
