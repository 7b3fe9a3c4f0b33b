"""
Background task execution interfaces.

These interfaces replace a process-wide "async enabled" switch with an
explicit queue that services submit work to.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from ..domain.tasks import TaskStatus


class ITaskHandle(ABC):
    """Handle to a submitted background task."""

    @property
    @abstractmethod
    def task_id(self) -> str:
        """Unique task identifier."""
        pass

    @property
    @abstractmethod
    def status(self) -> TaskStatus:
        """Current task status."""
        pass

    @abstractmethod
    def cancel(self) -> bool:
        """
        Request cancellation of the task.

        Returns:
            True if the task was pending or running and is now cancelled
        """
        pass

    @abstractmethod
    async def result(self, timeout: Optional[float] = None) -> Any:
        """
        Wait for the task to finish and return its result.

        Raises:
            TaskCancelledError: If the task was cancelled
            asyncio.TimeoutError: If the timeout elapses first
            Exception: Whatever the task itself raised
        """
        pass


class ITaskQueue(ABC):
    """Interface for bounded background task queues."""

    @abstractmethod
    async def submit(self, func: Callable[..., Any], *args: Any,
                     name: Optional[str] = None, **kwargs: Any) -> ITaskHandle:
        """
        Queue a coroutine function or plain callable for execution.

        Args:
            func: Coroutine function or callable to run
            *args: Positional arguments for ``func``
            name: Optional task name used in logs
            **kwargs: Keyword arguments for ``func``

        Returns:
            Handle for tracking and cancelling the task

        Raises:
            QueueFullError: If the queue stays full (see backpressure policy)
            TaskQueueClosedError: If the queue is not running
        """
        pass

    @abstractmethod
    async def get_metrics(self) -> Dict[str, Any]:
        """Get task queue counters and sizes."""
        pass
