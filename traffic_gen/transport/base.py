"""Transport interface for the traffic client."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import simpy

from traffic_gen.core.request import CorrelationToken, Request, TransportEvent
from traffic_gen.errors import TransportError

EventListener = Callable[[TransportEvent], None]


class Transport(ABC):
    """Abstract base class for transports.

    A transport accepts requests and later reports exactly one TransportEvent
    per accepted request to its bound listener.
    """

    def __init__(self, env: simpy.Environment) -> None:
        """
        Initialize the transport.

        Args:
            env: SimPy environment the transport schedules its events on.
        """
        self.name = "Base Transport"
        self.env = env
        self.listener: Optional[EventListener] = None
        self.closed = False

    def bind(self, listener: EventListener) -> None:
        """
        Register the single consumer of this transport's events.

        Args:
            listener: Callable receiving every TransportEvent.
        """
        self.listener = listener

    @abstractmethod
    def dispatch(self, request: Request, token: CorrelationToken) -> None:
        """
        Send a request.

        Args:
            request: The request to send.
            token: Correlation token; events refer back to its global sequence.

        Raises:
            TransportError: If the request cannot be sent. The client treats
                any exception raised here the same way: the send is skipped.
        """
        pass

    def shutdown(self) -> None:
        """Stop accepting requests and drop any outcome not yet reported."""
        self.closed = True

    def emit(self, event: TransportEvent) -> None:
        """Deliver an event to the bound listener."""
        if self.closed:
            return
        if self.listener is None:
            raise TransportError("No listener bound to transport")
        self.listener(event)

    def __repr__(self) -> str:
        return self.name
