"""
CLI commands for protkmers.

Provides command-line interface for k-mer similarity search and
annotation voting.
"""

__all__ = ["main", "search", "vote"]
