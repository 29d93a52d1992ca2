"""
Pydantic configuration models for protkmers.
"""

from protkmers.models.config import IndexConfig

__all__ = [
    "IndexConfig",
]
