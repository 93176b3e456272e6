import numpy as np
import pytest

from traffic_gen.core.enums import Outcome
from traffic_gen.core.request import CorrelationToken, Request
from traffic_gen.errors import TransportError
from traffic_gen.transport.delays import (
    constant_delay,
    exponential_delay,
    pareto_delay,
    uniform_delay,
)
from traffic_gen.transport.simulated import DEFAULT_LIFETIME_MS, SimulatedForwarder


def make_token(global_sequence=1):
    return CorrelationToken(global_sequence, global_sequence, 0, 0.0)


@pytest.fixture
def events():
    return []


def make_forwarder(env, events, **kwargs):
    kwargs.setdefault("delay", constant_delay(5.0))
    kwargs.setdefault("rng", np.random.default_rng(9))
    forwarder = SimulatedForwarder(env, **kwargs)
    forwarder.bind(lambda event: events.append((env.now, event)))
    return forwarder


def test_serves_producer_content_after_delay(env, events):
    forwarder = make_forwarder(env, events, producers={"/a": "hello"})
    forwarder.dispatch(Request("/a/b/c", nonce=1), make_token())
    env.run()

    assert len(events) == 1
    time, event = events[0]
    assert time == 5.0
    assert event.outcome == Outcome.DATA
    assert event.payload == "hello"
    assert event.global_sequence == 1
    assert forwarder.requests_forwarded == 1


def test_longest_prefix_match(env, events):
    forwarder = make_forwarder(env, events, producers={"/": "root", "/a": "a", "/a/b": "ab"})
    assert forwarder.find_content("/a/b/c") == "ab"
    assert forwarder.find_content("/a/x") == "a"
    assert forwarder.find_content("/z") == "root"


def test_no_route_is_rejected(env, events):
    forwarder = make_forwarder(env, events, producers={"/a": "x"})
    forwarder.dispatch(Request("/b", nonce=1), make_token())
    env.run()

    assert events[0][1].outcome == Outcome.NACK
    assert events[0][1].reason == "NoRoute"


def test_lost_requests_time_out_after_lifetime(env, events):
    forwarder = make_forwarder(env, events, loss_percent=100.0)
    forwarder.dispatch(Request("/a", nonce=1, lifetime_ms=250), make_token(1))
    forwarder.dispatch(Request("/a", nonce=2), make_token(2))
    env.run()

    assert [(t, e.outcome) for t, e in events] == [
        (250, Outcome.TIMEOUT),
        (DEFAULT_LIFETIME_MS, Outcome.TIMEOUT),
    ]


def test_delay_beyond_lifetime_times_out(env, events):
    forwarder = make_forwarder(env, events, delay=constant_delay(80.0))
    forwarder.dispatch(Request("/a", nonce=1, lifetime_ms=50), make_token())
    env.run()

    assert events == [(50, events[0][1])]
    assert events[0][1].outcome == Outcome.TIMEOUT


def test_congestion_nack(env, events):
    forwarder = make_forwarder(env, events, nack_percent=100.0)
    forwarder.dispatch(Request("/a", nonce=1), make_token())
    env.run()

    assert events[0][1].outcome == Outcome.NACK
    assert events[0][1].reason == "Congestion"


def test_duplicate_nonce_is_rejected(env, events):
    forwarder = make_forwarder(env, events)
    forwarder.dispatch(Request("/a", nonce=42), make_token(1))
    forwarder.dispatch(Request("/a", nonce=42), make_token(2))
    forwarder.dispatch(Request("/b", nonce=42), make_token(3))
    env.run()

    by_sequence = {e.global_sequence: e for _, e in events}
    assert by_sequence[1].outcome == Outcome.DATA
    assert by_sequence[2].outcome == Outcome.NACK
    assert by_sequence[2].reason == "Duplicate"
    assert by_sequence[3].outcome == Outcome.DATA
    assert forwarder.requests_forwarded == 2


def test_shutdown_refuses_and_drops(env, events):
    forwarder = make_forwarder(env, events)
    forwarder.dispatch(Request("/a", nonce=1), make_token())
    forwarder.shutdown()
    env.run()

    assert events == []
    with pytest.raises(TransportError):
        forwarder.dispatch(Request("/a", nonce=2), make_token(2))


def test_unbound_forwarder_fails_loudly(env):
    forwarder = SimulatedForwarder(env, delay=constant_delay(1.0))
    forwarder.dispatch(Request("/a", nonce=1), make_token())
    with pytest.raises(TransportError):
        env.run()


def test_delay_generators():
    rng = np.random.default_rng(21)
    assert constant_delay(3.5)() == 3.5

    uniform = uniform_delay(2.0, 4.0, rng)
    assert all(2.0 <= uniform() < 4.0 for _ in range(1000))

    exponential = exponential_delay(10.0, rng)
    assert np.mean([exponential() for _ in range(20000)]) == pytest.approx(10.0, rel=0.05)

    pareto = pareto_delay(10.0, alpha=3.0, rng=rng)
    samples = [pareto() for _ in range(20000)]
    assert min(samples) >= 10.0 * 2.0 / 3.0
    assert np.mean(samples) == pytest.approx(10.0, rel=0.05)

    with pytest.raises(ValueError):
        pareto_delay(10.0, alpha=1.0)
