"""Metric receivers with an in-memory metrics model and configurable metric builders."""

__version__ = "0.1.0"