"""
Logging utilities for ringfifo.
"""
