"""
Core module containing domain models, service interfaces and services.

This module is independent of the HTTP framework and the infrastructure
used to host it.
"""

from .interfaces.lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .interfaces.tasks import ITaskHandle, ITaskQueue
from .domain.nodes import RenameNodeRequest, Node, ValidationError, validate
from .domain.tasks import TaskStatus

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "ITaskHandle",
    "ITaskQueue",
    "RenameNodeRequest",
    "Node",
    "ValidationError",
    "validate",
    "TaskStatus",
]
