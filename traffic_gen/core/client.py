"""Traffic client for pattern-weighted request generation.

This module defines the TrafficClient class, which schedules requests on a
SimPy environment, dispatches them through a transport and correlates the
transport's events with the requests they answer.
"""

import logging
from typing import Any, Callable, Dict, Generator, List, Optional

import numpy as np
import simpy

from traffic_gen.core.distributions import DistributionSampler, sampler_factory
from traffic_gen.core.enums import Outcome, RunState
from traffic_gen.core.nonce import NonceCache
from traffic_gen.core.pattern import TrafficPattern, TrafficStatistics
from traffic_gen.core.request import CorrelationToken, Request, TransportEvent
from traffic_gen.core.selector import PatternSelector
from traffic_gen.core.statistics import StatisticsAggregator
from traffic_gen.errors import RuntimeFatalError
from traffic_gen.transport.base import Transport
from traffic_gen.utils.config import RunConfig, validate_patterns
from traffic_gen.utils.report import log_statistics, save_summary_to_csv

logger = logging.getLogger(__name__)


class TrafficClient:
    """Open-loop traffic generator driven by a fixed-interval timer.

    Attributes:
        env: SimPy environment; one time unit is one millisecond.
        patterns: Pattern catalog in configuration order.
        transport: Transport requests are dispatched through.
        config: Settings of the run.
        sampler: Draws the lookup key of every tick.
        selector: Maps keys to patterns.
        nonces: Cache of recently minted nonces.
        aggregator: Folds outcomes into statistics.
        pending: Tokens of dispatched requests awaiting an outcome.
        state: Current lifecycle state.
        transport_failed: Whether the run ended on a fatal error.
        summary_failed: Whether the CSV summary could not be written.
        finished: Event triggered once the run has stopped.
    """

    def __init__(
        self,
        env: simpy.Environment,
        patterns: List[TrafficPattern],
        transport: Transport,
        config: RunConfig,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Initialize the traffic client.

        Args:
            env: SimPy environment.
            patterns: Parsed traffic patterns.
            transport: Transport to dispatch requests through.
            config: Settings of the run.
            rng: Random generator (seeded from config.seed if not given).

        Raises:
            ConfigValidationError: If the patterns or settings are invalid.
        """
        validate_patterns(patterns, config)

        self.env = env
        self.patterns = patterns
        self.transport = transport
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        self.sampler: DistributionSampler = sampler_factory(
            config.mode, len(patterns), config.zipf_factor, config.q_value, self.rng
        )
        self.selector = PatternSelector(patterns)
        self.nonces = NonceCache(self.rng)
        self.aggregator = StatisticsAggregator(patterns, config.quiet, config.verbose)

        self.pending: Dict[int, CorrelationToken] = {}
        self.state = RunState.IDLE
        self.transport_failed = False
        self.summary_failed = False
        self.finished = env.event()

        self.hooks: Dict[str, List[Callable[..., Any]]] = {
            "request_sent": [],  # request accepted by the transport
            "response_received": [],  # data arrived
            "request_nacked": [],  # request rejected
            "request_timed_out": [],  # no answer within the lifetime
            "run_end": [],  # statistics are final
        }

        transport.bind(self.handle_event)

    @property
    def totals(self) -> TrafficStatistics:
        return self.aggregator.totals

    def bound_reached(self) -> bool:
        """Whether the configured number of requests has been sent."""
        return (
            self.config.max_requests is not None
            and self.totals.sent >= self.config.max_requests
        )

    def prepare_request(self, pattern_id: int) -> Request:
        """Build the next request of a pattern.

        The sequence number cursor is not advanced here; that happens once the
        transport has accepted the request.

        Args:
            pattern_id: Index of the pattern.

        Returns:
            The request to dispatch.
        """
        pattern = self.patterns[pattern_id]

        components: List[str] = []
        if pattern.append_bytes:
            random_bytes = self.rng.bytes(pattern.append_bytes)
            components.append("".join(f"%{b:02X}" for b in random_bytes))
        if pattern.append_sequence_number is not None:
            components.append(f"seq={pattern.append_sequence_number}")

        name = pattern.name
        if components:
            name = name.rstrip("/") + "/" + "/".join(components)

        return Request(
            name=name,
            nonce=self.nonces.pick(pattern.nonce_duplication_percent),
            can_be_prefix=pattern.can_be_prefix,
            must_be_fresh=pattern.must_be_fresh,
            lifetime_ms=pattern.lifetime_ms,
            next_hop_face_id=pattern.next_hop_face_id,
        )

    def tick(self) -> Optional[CorrelationToken]:
        """Run one scheduling tick.

        Returns:
            The token of the dispatched request, or None if nothing was sent.
            A dispatch that raises is logged and sends nothing.
        """
        if self.bound_reached():
            return None

        pattern_id = self.selector.select(self.sampler.sample())
        if pattern_id is None:
            return None

        pattern = self.patterns[pattern_id]
        request = self.prepare_request(pattern_id)
        token = CorrelationToken(
            global_sequence=self.totals.sent + 1,
            local_sequence=pattern.stats.sent + 1,
            pattern_id=pattern_id,
            dispatched_at=self.env.now,
        )

        self.pending[token.global_sequence] = token
        try:
            self.transport.dispatch(request, token)
        except Exception as e:
            del self.pending[token.global_sequence]
            logger.error(f"ERROR: {e}")
            return None

        self.aggregator.record_sent(pattern_id)
        pattern.next_sequence_number()

        if not self.config.quiet:
            logger.info(
                f"Sending Request    - PatternType={pattern_id + 1}, "
                f"GlobalID={token.global_sequence}, LocalID={token.local_sequence}, "
                f"Name={request.name}"
            )
        self.call_hooks("request_sent", request, token)
        return token

    def generate_traffic(self) -> Generator[simpy.events.Event, None, None]:
        """SimPy process firing one tick per interval.

        Each timeout starts at the deadline of the previous one, so ticks
        never drift and never wait for responses.
        """
        while True:
            yield self.env.timeout(self.config.interval_ms)
            if self.state != RunState.RUNNING:
                return
            self.tick()

    def handle_event(self, event: TransportEvent) -> None:
        """Correlate a transport event with its request and record it.

        Args:
            event: Outcome reported by the transport.
        """
        if self.state == RunState.STOPPED:
            return

        token = self.pending.pop(event.global_sequence, None)
        if token is None:
            logger.warning(
                f"Ignoring {event.outcome.value} for unknown request "
                f"GlobalID={event.global_sequence}, Name={event.name}"
            )
            return

        if event.outcome == Outcome.DATA:
            self.aggregator.on_response(token, event.name, event.payload, self.env.now)
            self.call_hooks("response_received", event, token)
        elif event.outcome == Outcome.NACK:
            self.aggregator.on_nack(token, event.name, event.reason)
            self.call_hooks("request_nacked", event, token)
        else:
            self.aggregator.on_timeout(token, event.name)
            self.call_hooks("request_timed_out", event, token)

        if token.global_sequence == self.config.max_requests:
            self.stop()

    def log_configuration(self) -> None:
        """Echo every pattern's configuration to the log."""
        logger.info("Traffic configuration file processing completed")
        for pattern_id, pattern in enumerate(self.patterns, start=1):
            logger.info(f"Traffic Pattern Type #{pattern_id}")
            logger.info(pattern.describe())

    def stop(self) -> None:
        """Drain the run: emit the report, shut the transport down, stop the loop."""
        if self.state in (RunState.DRAINING, RunState.STOPPED):
            return
        self.state = RunState.DRAINING

        try:
            log_statistics(self.patterns, self.totals)
            if self.config.summary_path:
                self.write_summary(self.config.summary_path)
        finally:
            self.transport.shutdown()
            self.state = RunState.STOPPED
            if not self.finished.triggered:
                self.finished.succeed()

        self.call_hooks("run_end", self.totals)

    def write_summary(self, path: str) -> None:
        """Write the CSV summary, recording a failure instead of raising it.

        Args:
            path: Destination of the CSV file.
        """
        try:
            save_summary_to_csv(self.patterns, self.totals, path)
        except OSError as e:
            logger.error(f"ERROR: Unable to write summary file {path}: {e}")
            self.summary_failed = True

    def exit_code(self) -> int:
        """Process exit code for the finished run.

        Returns:
            0 for a clean run, 1 after loss, content mismatch, a fatal error
            or a summary that could not be written.
        """
        if self.transport_failed or self.summary_failed or self.aggregator.has_anomaly():
            return 1
        return 0

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Register a callback function for a specific event type.

        Args:
            event_type: The type of event to register for.
            callback: The function to call when the event occurs.
        """
        if event_type not in self.hooks:
            raise ValueError(f"Unknown hook type: {event_type}")
        self.hooks[event_type].append(callback)

    def call_hooks(self, event_type: str, *args: Any, **kwargs: Any) -> None:
        """Call all registered callbacks for the given event type.

        Args:
            event_type: The type of event that occurred.
            *args, **kwargs: Arguments to pass to the callback functions.
        """
        if event_type in self.hooks:
            for callback in self.hooks[event_type]:
                callback(*args, **kwargs)

    def run(self, duration: Optional[float] = None) -> int:
        """Run until the bound is reached, the run is interrupted or it fails.

        Args:
            duration: Optional limit in milliseconds after which the run drains.

        Returns:
            The process exit code of the run.
        """
        self.log_configuration()

        if self.config.max_requests == 0:
            self.stop()
            return self.exit_code()

        self.state = RunState.RUNNING
        self.env.process(self.generate_traffic())

        if duration is not None:

            def deadline() -> Generator[simpy.events.Event, None, None]:
                yield self.env.timeout(duration)
                self.stop()

            self.env.process(deadline())

        try:
            self.env.run(until=self.finished)
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping traffic generation")
            self.stop()
        except Exception as e:
            error = RuntimeFatalError(str(e))
            logger.error(f"ERROR: {error}")
            self.transport_failed = True
            self.stop()

        return self.exit_code()
