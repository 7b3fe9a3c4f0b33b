"""
API router modules organized by functionality.
"""

from . import health, nodes, system

__all__ = [
    "health",
    "nodes",
    "system",
]
