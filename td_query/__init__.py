"""Query runner for a remote query-execution service."""

__version__ = "0.1.0"
