"""Capability-based agent/task matching engine."""

__version__ = "0.1.0"
