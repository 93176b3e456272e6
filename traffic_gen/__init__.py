"""Pattern-weighted request traffic client.

This package generates a stream of requests mixed from configured traffic
patterns, correlates every request with its outcome and reports loss,
round-trip time and content consistency statistics.
"""
