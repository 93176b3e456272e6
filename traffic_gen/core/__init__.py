"""Core components of the traffic client.

This module contains the traffic pattern model, nonce cache, distribution
samplers, pattern selector, statistics aggregator and the TrafficClient
scheduler that ties them to a transport.
"""
