"""
Application layer: service container and startup sequence.

This layer wires the core services to their infrastructure and manages
the application lifecycle.
"""

from .container import Container, IContainer
from .startup import ApplicationStartup

__all__ = [
    "Container",
    "IContainer",
    "ApplicationStartup",
]
