"""Configuration utilities for the traffic client.

This module provides the immutable RunConfig shared by the client and its
sampler, the parser for traffic configuration files and the validation that
runs before any request is sent.

A configuration file is a list of ``Key=Value`` lines. Blank lines separate
blocks and every block describes one traffic pattern. Lines starting with
``#`` are comments.
"""

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from traffic_gen.core.enums import DistributionMode
from traffic_gen.core.pattern import TrafficPattern
from traffic_gen.errors import ConfigSyntaxError, ConfigValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunConfig:
    """Settings of one run, fixed before scheduling starts.

    Attributes:
        interval_ms: Time between scheduling ticks in milliseconds.
        max_requests: Total number of requests to send, None for unbounded.
        mode: Distribution used to select patterns.
        zipf_factor: Zipf-Mandelbrot skew s.
        q_value: Zipf-Mandelbrot offset q.
        quiet: Suppress per-request send and receive log lines.
        verbose: Log the RTT of every response.
        timestamp_format: strftime format for log timestamps.
        seed: Seed for the run's random generator.
        summary_path: Where to write the CSV summary, None to skip it.
    """

    interval_ms: float = 1000
    max_requests: Optional[int] = None
    mode: DistributionMode = DistributionMode.UNIFORM
    zipf_factor: float = 0.8
    q_value: float = 3.0
    quiet: bool = False
    verbose: bool = False
    timestamp_format: Optional[str] = None
    seed: Optional[int] = None
    summary_path: Optional[str] = None


class ConfigKey(Enum):
    """Keys recognised in a traffic configuration file."""

    TRAFFIC_PERCENTAGE = "TrafficPercentage"
    NAME = "Name"
    NAME_APPEND_BYTES = "NameAppendBytes"
    NAME_APPEND_SEQUENCE_NUMBER = "NameAppendSequenceNumber"
    CAN_BE_PREFIX = "CanBePrefix"
    MUST_BE_FRESH = "MustBeFresh"
    NONCE_DUPLICATION_PERCENTAGE = "NonceDuplicationPercentage"
    INTEREST_LIFETIME = "InterestLifetime"
    NEXT_HOP_FACE_ID = "NextHopFaceId"
    EXPECTED_CONTENT = "ExpectedContent"


def _parse_float(value: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError("must be a finite floating point value")
    return number


def _parse_boolean(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"invalid boolean '{value}'")


# Each recognised key maps to the TrafficPattern attribute it sets and the
# converter applied to its value.
SETTERS: Dict[ConfigKey, Tuple[str, Callable[[str], Any]]] = {
    ConfigKey.TRAFFIC_PERCENTAGE: ("weight_percent", _parse_float),
    ConfigKey.NAME: ("name", str),
    ConfigKey.NAME_APPEND_BYTES: ("append_bytes", int),
    ConfigKey.NAME_APPEND_SEQUENCE_NUMBER: ("append_sequence_number", int),
    ConfigKey.CAN_BE_PREFIX: ("can_be_prefix", _parse_boolean),
    ConfigKey.MUST_BE_FRESH: ("must_be_fresh", _parse_boolean),
    ConfigKey.NONCE_DUPLICATION_PERCENTAGE: ("nonce_duplication_percent", int),
    ConfigKey.INTEREST_LIFETIME: ("lifetime_ms", int),
    ConfigKey.NEXT_HOP_FACE_ID: ("next_hop_face_id", int),
    ConfigKey.EXPECTED_CONTENT: ("expected_content", str),
}

_KEYS_BY_NAME: Dict[str, ConfigKey] = {key.value: key for key in ConfigKey}


def extract_parameter_and_value(line: str, line_number: int = 0) -> Tuple[str, str]:
    """Split a ``Key=Value`` line.

    Args:
        line: The configuration line.
        line_number: Line number used in error messages.

    Returns:
        The stripped key and value.

    Raises:
        ConfigSyntaxError: If the line has no ``=`` or an empty key or value.
    """
    parameter, sep, value = line.partition("=")
    parameter, value = parameter.strip(), value.strip()
    if not sep or not parameter or not value:
        raise ConfigSyntaxError(
            f"Line {line_number} - Invalid syntax: {line}", line_number, line
        )
    return parameter, value


def parse_configuration_line(
    pattern: TrafficPattern, line: str, line_number: int = 0
) -> bool:
    """Apply one configuration line to a pattern.

    Args:
        pattern: Pattern being built.
        line: The configuration line.
        line_number: Line number used in messages.

    Returns:
        True if the key was recognised and applied, False if it was ignored.

    Raises:
        ConfigSyntaxError: If the line or its value cannot be parsed.
    """
    parameter, value = extract_parameter_and_value(line, line_number)

    key = _KEYS_BY_NAME.get(parameter)
    if key is None:
        logger.warning(f"Line {line_number} - Ignoring unknown parameter: {parameter}")
        return False

    attribute, convert = SETTERS[key]
    try:
        setattr(pattern, attribute, convert(value))
    except ValueError as e:
        raise ConfigSyntaxError(
            f"Line {line_number} - Invalid value for {parameter}: {value} ({e})",
            line_number,
            line,
        ) from e
    return True


def parse_configuration(lines: Iterable[str]) -> List[TrafficPattern]:
    """Parse configuration lines into patterns.

    Unparsable lines are reported and skipped; the rest of their block is
    still used.

    Args:
        lines: Lines of a configuration file.

    Returns:
        Patterns in configuration order.
    """
    patterns: List[TrafficPattern] = []
    current: Optional[TrafficPattern] = None

    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line:
            current = None
            continue
        if line.startswith("#"):
            continue

        if current is None:
            current = TrafficPattern()
            patterns.append(current)

        try:
            parse_configuration_line(current, line, line_number)
        except ConfigSyntaxError as e:
            logger.warning(str(e))

    return patterns


def read_configuration_file(path: str) -> List[TrafficPattern]:
    """Read and parse a traffic configuration file.

    Args:
        path: Path of the configuration file.

    Returns:
        Patterns in configuration order.

    Raises:
        ConfigValidationError: If the file cannot be read or is not UTF-8 text.
    """
    logger.info(f"Reading traffic configuration file: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as e:
        raise ConfigValidationError(
            [f"Unable to open traffic configuration file: {path} ({e.strerror})"]
        ) from e
    except UnicodeDecodeError as e:
        raise ConfigValidationError(
            [f"Unable to decode traffic configuration file: {path} ({e.reason})"]
        ) from e

    patterns = parse_configuration(lines)
    logger.info(f"Total number of traffic patterns = {len(patterns)}")
    return patterns


def validate_patterns(
    patterns: List[TrafficPattern], run_config: Optional[RunConfig] = None
) -> None:
    """Check that the pattern set and run settings can be scheduled.

    Args:
        patterns: Parsed patterns.
        run_config: Run settings, checked when given.

    Raises:
        ConfigValidationError: Listing every problem found.
    """
    problems: List[str] = []

    if not patterns:
        problems.append("No traffic patterns found")

    for i, pattern in enumerate(patterns, start=1):
        where = f"Traffic pattern #{i}"
        if not pattern.name:
            problems.append(f"{where}: Name is required")
        if not math.isfinite(pattern.weight_percent) or pattern.weight_percent < 0:
            problems.append(f"{where}: TrafficPercentage must be a finite non-negative value")
        if not 0 <= pattern.nonce_duplication_percent <= 100:
            problems.append(f"{where}: NonceDuplicationPercentage must be within 0..100")
        if pattern.lifetime_ms is not None and pattern.lifetime_ms < 0:
            problems.append(f"{where}: InterestLifetime must not be negative")
        if pattern.append_bytes is not None and pattern.append_bytes < 0:
            problems.append(f"{where}: NameAppendBytes must not be negative")
        if pattern.append_sequence_number is not None and pattern.append_sequence_number < 0:
            problems.append(f"{where}: NameAppendSequenceNumber must not be negative")
        if pattern.next_hop_face_id is not None and pattern.next_hop_face_id <= 0:
            problems.append(f"{where}: NextHopFaceId must be positive")

    if run_config is not None:
        if not run_config.interval_ms > 0:
            problems.append("Interval must be positive")
        if run_config.max_requests is not None and run_config.max_requests < 0:
            problems.append("Count must not be negative")
        if run_config.mode == DistributionMode.ZIPF_MANDELBROT:
            if not (
                math.isfinite(run_config.zipf_factor)
                and math.isfinite(run_config.q_value)
            ):
                problems.append("Zipf-Mandelbrot parameters must be finite")
            elif run_config.zipf_factor < 0:
                problems.append("Zipf factor must not be negative")
            elif run_config.q_value <= -1:
                problems.append("Q value must be greater than -1")

    if problems:
        raise ConfigValidationError(problems)
