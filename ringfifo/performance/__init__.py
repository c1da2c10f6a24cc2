"""
Prometheus export of ring buffer statistics.
"""
