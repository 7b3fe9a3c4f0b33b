"""
Core interfaces defining the contracts for the server's components.
"""

from .lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .tasks import ITaskHandle, ITaskQueue

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "ITaskHandle",
    "ITaskQueue",
]
