"""
Background task domain models.

Defines task status values and the error taxonomy of the background
task queue.
"""

from enum import Enum, auto


class TaskStatus(Enum):
    """Background task execution status."""
    PENDING = auto()     # Queued, not yet picked up by a worker
    RUNNING = auto()     # Being executed by a worker
    COMPLETED = auto()   # Finished and produced a result
    FAILED = auto()      # Raised an exception
    CANCELLED = auto()   # Cancelled before or during execution

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED)


class BackpressurePolicy(str, Enum):
    """What ``submit`` does when the task queue is full."""
    BLOCK = "block"
    REJECT = "reject"


class TaskQueueError(Exception):
    """Base class for task queue errors."""
    pass


class QueueFullError(TaskQueueError):
    """Raised when a task cannot be queued because the queue is full."""
    pass


class TaskQueueClosedError(TaskQueueError):
    """Raised when submitting to a queue that is not running."""
    pass


class TaskCancelledError(TaskQueueError):
    """Raised when awaiting the result of a cancelled task."""
    pass
