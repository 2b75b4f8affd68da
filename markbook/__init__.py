"""Markbook: assessment scoring and aggregation for classroom records."""

__version__ = "0.1.0"
