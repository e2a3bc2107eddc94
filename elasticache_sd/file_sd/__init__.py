"""Prometheus file_sd output for discovery snapshots."""

from .adapter import FileSDAdapter, generate_groups

__all__ = ["FileSDAdapter", "generate_groups"]
