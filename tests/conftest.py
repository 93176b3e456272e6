import logging
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np
import pytest
import simpy

from traffic_gen.core.client import TrafficClient
from traffic_gen.core.enums import Outcome
from traffic_gen.core.pattern import TrafficPattern
from traffic_gen.core.request import CorrelationToken, Request, TransportEvent
from traffic_gen.errors import TransportError
from traffic_gen.transport.base import Transport
from traffic_gen.utils.config import RunConfig

Script = Callable[[Request, CorrelationToken], Tuple[Outcome, float, Optional[str]]]


class ScriptedTransport(Transport):
    """Transport whose outcomes are decided by a script.

    The script maps each request to (outcome, delay in ms, payload or reason).
    Attempts listed in ``fail_on`` (1-based) raise TransportError.
    """

    def __init__(
        self,
        env: simpy.Environment,
        script: Optional[Script] = None,
        fail_on: Iterable[int] = (),
    ) -> None:
        super().__init__(env)
        self.name = "Scripted Transport"
        self.script = script or (lambda request, token: (Outcome.DATA, 1.0, ""))
        self.fail_on = set(fail_on)
        self.attempts = 0
        self.dispatched: List[Tuple[Request, CorrelationToken]] = []

    def dispatch(self, request: Request, token: CorrelationToken) -> None:
        self.attempts += 1
        if self.closed:
            raise TransportError("transport closed")
        if self.attempts in self.fail_on:
            raise TransportError(f"attempt {self.attempts} refused")
        self.dispatched.append((request, token))
        outcome, delay, value = self.script(request, token)
        self.env.process(self._deliver(request, token, outcome, delay, value))

    def _deliver(self, request, token, outcome, delay, value):
        yield self.env.timeout(delay)
        if outcome == Outcome.DATA:
            event = TransportEvent(outcome, token.global_sequence, request.name, payload=value)
        elif outcome == Outcome.NACK:
            event = TransportEvent(outcome, token.global_sequence, request.name, reason=value)
        else:
            event = TransportEvent(outcome, token.global_sequence, request.name)
        self.emit(event)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("traffic_gen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def env():
    return simpy.Environment()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def write_config(tmp_path):
    def _write(text: str, name: str = "traffic.conf") -> str:
        path = tmp_path / name
        path.write_text(text)
        return str(path)

    return _write


@pytest.fixture
def make_client(env, rng):
    def _make(
        patterns: List[TrafficPattern],
        transport: Optional[Transport] = None,
        **config_kwargs,
    ) -> TrafficClient:
        config_kwargs.setdefault("interval_ms", 10)
        transport = transport if transport is not None else ScriptedTransport(env)
        return TrafficClient(env, patterns, transport, RunConfig(**config_kwargs), rng)

    return _make
