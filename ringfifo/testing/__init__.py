"""
Helpers for testing code built on ringfifo.
"""
