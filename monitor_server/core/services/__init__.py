"""
Core service implementations.
"""

from .node_service import NodeService
from .task_queue import TaskHandle, TaskQueue

__all__ = [
    "NodeService",
    "TaskHandle",
    "TaskQueue",
]
