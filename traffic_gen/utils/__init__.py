"""Utilities for the traffic client.

This module provides configuration parsing, logging setup, report writing and
chart plotting for traffic runs.
"""
