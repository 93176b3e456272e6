"""Simulated forwarder transport.

This module defines the SimulatedForwarder class, which answers requests from
in-process producers after a sampled delay. It can lose requests, reject them
and detect duplicate nonces, so every outcome the client handles can be
produced without a network.
"""

from collections import deque
from typing import Callable, Deque, Dict, Generator, Optional, Set, Tuple

import numpy as np
import simpy

from traffic_gen.core.enums import Outcome
from traffic_gen.core.request import CorrelationToken, Request, TransportEvent
from traffic_gen.errors import TransportError
from traffic_gen.transport.base import Transport
from traffic_gen.transport.delays import constant_delay

DEFAULT_LIFETIME_MS = 4000
DEAD_NONCE_WINDOW = 6000


class SimulatedForwarder(Transport):
    """In-process forwarder with configurable delay, loss and rejection.

    Attributes:
        producers: Content served per name prefix.
        delay: Function returning the round-trip delay in milliseconds.
        loss_percent: Chance (0..100) that a request is silently dropped.
        nack_percent: Chance (0..100) that a request is rejected.
        requests_forwarded: Number of requests accepted.
    """

    def __init__(
        self,
        env: simpy.Environment,
        producers: Optional[Dict[str, str]] = None,
        delay: Optional[Callable[[], float]] = None,
        loss_percent: float = 0.0,
        nack_percent: float = 0.0,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Initialize the simulated forwarder.

        Args:
            env: SimPy environment.
            producers: Content keyed by name prefix (default: serve "" for all).
            delay: Round-trip delay generator (default: constant 10 ms).
            loss_percent: Chance (0..100) of dropping a request.
            nack_percent: Chance (0..100) of rejecting a request.
            rng: Random generator for loss and rejection draws.
        """
        super().__init__(env)
        self.name = "Simulated Forwarder"
        self.producers = dict(producers) if producers is not None else {"/": ""}
        self.delay = delay if delay is not None else constant_delay(10.0)
        self.loss_percent = loss_percent
        self.nack_percent = nack_percent
        self.rng = rng if rng is not None else np.random.default_rng()
        self.requests_forwarded = 0
        self._dead_nonces: Deque[Tuple[str, int]] = deque()
        self._dead_nonce_set: Set[Tuple[str, int]] = set()

    def dispatch(self, request: Request, token: CorrelationToken) -> None:
        if self.closed:
            raise TransportError("Forwarder has been shut down")

        entry = (request.name, request.nonce)
        if entry in self._dead_nonce_set:
            self.env.process(self._reject(request, token, "Duplicate"))
            return
        self._remember_nonce(entry)

        self.requests_forwarded += 1
        self.env.process(self._forward(request, token))

    def find_content(self, name: str) -> Optional[str]:
        """Longest-prefix match of a name against the producers.

        Args:
            name: Request name.

        Returns:
            The content served for the name, or None if no producer matches.
        """
        components = [c for c in name.split("/") if c]
        for length in range(len(components), -1, -1):
            prefix = "/" + "/".join(components[:length])
            if prefix in self.producers:
                return self.producers[prefix]
        return None

    def _forward(
        self, request: Request, token: CorrelationToken
    ) -> Generator[simpy.events.Event, None, None]:
        lifetime = (
            request.lifetime_ms if request.lifetime_ms is not None else DEFAULT_LIFETIME_MS
        )
        delay = max(self.delay(), 0.0)

        if self.rng.uniform(0.0, 100.0) < self.loss_percent or delay > lifetime:
            yield self.env.timeout(lifetime)
            self.emit(TransportEvent(Outcome.TIMEOUT, token.global_sequence, request.name))
            return

        yield self.env.timeout(delay)

        content = self.find_content(request.name)
        if content is None:
            self.emit(
                TransportEvent(
                    Outcome.NACK, token.global_sequence, request.name, reason="NoRoute"
                )
            )
        elif self.rng.uniform(0.0, 100.0) < self.nack_percent:
            self.emit(
                TransportEvent(
                    Outcome.NACK, token.global_sequence, request.name, reason="Congestion"
                )
            )
        else:
            self.emit(
                TransportEvent(
                    Outcome.DATA, token.global_sequence, request.name, payload=content
                )
            )

    def _reject(
        self, request: Request, token: CorrelationToken, reason: str
    ) -> Generator[simpy.events.Event, None, None]:
        # Rejections are reported asynchronously like every other outcome
        yield self.env.timeout(0)
        self.emit(
            TransportEvent(Outcome.NACK, token.global_sequence, request.name, reason=reason)
        )

    def _remember_nonce(self, entry: Tuple[str, int]) -> None:
        if len(self._dead_nonces) >= DEAD_NONCE_WINDOW:
            self._dead_nonce_set.discard(self._dead_nonces.popleft())
        self._dead_nonces.append(entry)
        self._dead_nonce_set.add(entry)
