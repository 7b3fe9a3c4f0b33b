"""
Monitor Server - node management API with background task execution.

The server validates and applies node rename requests and runs follow-up
work on an explicit, bounded background task queue.
"""

__version__ = "0.1.0"

# Public API exports
from .core.domain.nodes import (
    LOCATION_CODES,
    Location,
    LocationPatternError,
    Node,
    NodeLengthError,
    RenameNodeRequest,
    ValidationError,
    validate,
)
from .core.services.task_queue import TaskQueue, TaskHandle
from .core.services.node_service import NodeService
from .application.container import Container, IContainer
from .application.startup import ApplicationStartup

__all__ = [
    "LOCATION_CODES",
    "Location",
    "LocationPatternError",
    "Node",
    "NodeLengthError",
    "RenameNodeRequest",
    "ValidationError",
    "validate",
    "TaskQueue",
    "TaskHandle",
    "NodeService",
    "Container",
    "IContainer",
    "ApplicationStartup",
]
