"""Prometheus file_sd service discovery for AWS ElastiCache cache nodes."""

__version__ = "0.1.0"
