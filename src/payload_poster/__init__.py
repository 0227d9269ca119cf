"""Bulk delivery of JSON request files to a single HTTP endpoint."""

__version__ = "1.0.0"
