"""Transports the traffic client dispatches requests through.

This module provides the Transport interface and a SimPy based simulated
forwarder that answers requests with configurable delay, loss and rejection.
"""
