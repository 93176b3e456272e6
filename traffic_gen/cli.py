"""Command line interface for the traffic client.

Exit codes: 0 when every request was answered with consistent content, 1 after
loss, content mismatch or a runtime error, 2 for configuration or argument
errors (the run is never started).
"""

import argparse
import logging
import signal
from typing import List, Optional

import numpy as np
import simpy
import simpy.rt

from traffic_gen.core.client import TrafficClient
from traffic_gen.core.enums import DistributionMode
from traffic_gen.core.pattern import TrafficPattern
from traffic_gen.errors import ArgumentError, ConfigValidationError
from traffic_gen.transport.delays import (
    constant_delay,
    exponential_delay,
    pareto_delay,
    uniform_delay,
)
from traffic_gen.transport.simulated import SimulatedForwarder
from traffic_gen.utils.config import RunConfig, read_configuration_file
from traffic_gen.utils.logger import log_file_path, log_folder_from_env, setup_logging
from traffic_gen.utils.visualization import plot_pattern_statistics

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2

DESCRIPTION = """\
Generate request traffic as per the provided traffic configuration file.
Requests are continuously generated unless a total number is specified.
Set the environment variable TRAFFIC_LOGFOLDER to redirect output to a log file.
"""


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="traffic-client",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("config_file", help="traffic configuration file")
    parser.add_argument(
        "-c", "--count", type=int, default=None,
        help="total number of requests to be generated",
    )
    parser.add_argument(
        "-i", "--interval", type=float, default=1000,
        help="request generation interval in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "-t", "--timestamp-format", default=None,
        help="format string for timestamp output",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-q", "--quiet", action="store_true",
        help="turn off logging of request generation and data reception",
    )
    verbosity.add_argument(
        "-v", "--verbose", action="store_true",
        help="log additional per-packet information",
    )
    parser.add_argument(
        "-m", "--mode", type=int, choices=[1, 2], default=1,
        help="distribution choice: 1. Uniform, 2. Zipf-Mandelbrot (default: 1)",
    )
    parser.add_argument(
        "-z", "--zipffactor", type=float, default=0.8,
        help="Zipf-Mandelbrot skew s (default: 0.8)",
    )
    parser.add_argument(
        "--qvalue", type=float, default=3.0,
        help="Zipf-Mandelbrot offset q (default: 3.0)",
    )
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument(
        "--summary", default=None,
        help="CSV summary path (default: log.csv, or <instance>.csv in the log folder)",
    )
    parser.add_argument(
        "--virtual-time", action="store_true",
        help="run on simulated time instead of the wall clock",
    )
    parser.add_argument(
        "--delay", type=float, default=10.0,
        help="mean round-trip delay of the simulated forwarder in ms (default: 10)",
    )
    parser.add_argument(
        "--delay-model", choices=["constant", "uniform", "exponential", "pareto"],
        default="exponential", help="delay distribution of the simulated forwarder",
    )
    parser.add_argument(
        "--loss", type=float, default=0.0,
        help="percentage of requests the simulated forwarder drops",
    )
    parser.add_argument(
        "--nack", type=float, default=0.0,
        help="percentage of requests the simulated forwarder rejects",
    )
    parser.add_argument("--plot", default=None, help="directory to save charts in")
    return parser


def check_arguments(args: argparse.Namespace) -> None:
    """Reject argument values argparse cannot check by itself.

    Raises:
        ArgumentError: On the first invalid value.
    """
    if args.count is not None and args.count < 0:
        raise ArgumentError("the argument for option '--count' cannot be negative")
    if not args.interval > 0:
        raise ArgumentError("the argument for option '--interval' must be positive")
    if args.delay < 0:
        raise ArgumentError("the argument for option '--delay' cannot be negative")
    for option in ("loss", "nack"):
        if not 0 <= getattr(args, option) <= 100:
            raise ArgumentError(f"the argument for option '--{option}' must be within 0..100")


def build_forwarder(
    env: simpy.Environment,
    patterns: List[TrafficPattern],
    args: argparse.Namespace,
    rng: np.random.Generator,
) -> SimulatedForwarder:
    """Create the simulated forwarder that serves every configured pattern.

    Patterns with expected content are served exactly that content; every
    other name is answered with empty content.
    """
    producers = {"/": ""}
    for pattern in patterns:
        if pattern.expected_content is not None:
            producers[pattern.name.rstrip("/") or "/"] = pattern.expected_content

    if args.delay_model == "constant":
        delay = constant_delay(args.delay)
    elif args.delay_model == "uniform":
        delay = uniform_delay(0.0, 2 * args.delay, rng)
    elif args.delay_model == "pareto":
        delay = pareto_delay(args.delay, rng=rng)
    else:
        delay = exponential_delay(args.delay, rng)

    return SimulatedForwarder(
        env,
        producers=producers,
        delay=delay,
        loss_percent=args.loss,
        nack_percent=args.nack,
        rng=rng,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the traffic client.

    Args:
        argv: Command line arguments (default: sys.argv[1:]).

    Returns:
        The process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        check_arguments(args)
    except ArgumentError as e:
        parser.error(str(e))

    rng = np.random.default_rng(args.seed)
    instance_id = str(int(rng.integers(0, 2**32, dtype=np.uint64)))
    log_folder = log_folder_from_env()
    setup_logging(instance_id, args.timestamp_format, log_folder)

    summary_path = args.summary
    if summary_path is None:
        summary_path = log_file_path(instance_id, log_folder, ".csv") if log_folder else "log.csv"

    config = RunConfig(
        interval_ms=args.interval,
        max_requests=args.count,
        mode=DistributionMode(args.mode),
        zipf_factor=args.zipffactor,
        q_value=args.qvalue,
        quiet=args.quiet,
        verbose=args.verbose,
        timestamp_format=args.timestamp_format,
        seed=args.seed,
        summary_path=summary_path,
    )

    if args.virtual_time:
        env = simpy.Environment()
    else:
        env = simpy.rt.RealtimeEnvironment(factor=0.001, strict=False)

    try:
        patterns = read_configuration_file(args.config_file)
        forwarder = build_forwarder(env, patterns, args, rng)
        client = TrafficClient(env, patterns, forwarder, config, rng)
    except ConfigValidationError as e:
        for problem in e.problems:
            logger.error(f"ERROR: {problem}")
        logger.error("ERROR: Traffic configuration provided is not proper")
        return EXIT_CONFIG_ERROR

    previous_handler = signal.signal(signal.SIGTERM, signal.default_int_handler)
    try:
        exit_code = client.run()
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    if args.plot:
        path = plot_pattern_statistics(patterns, args.plot)
        logger.info(f"Traffic chart saved to {path}")

    return exit_code
