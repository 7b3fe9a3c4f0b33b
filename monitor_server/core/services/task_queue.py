"""
Bounded background task queue with a worker pool.

Services hand work that should not hold up a request (audit records,
notifications) to this queue. The queue is bounded, and ``submit`` either
waits for a free slot or rejects immediately depending on the configured
backpressure policy.
"""

import asyncio
import inspect
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..domain.tasks import (
    BackpressurePolicy,
    QueueFullError,
    TaskCancelledError,
    TaskQueueClosedError,
    TaskStatus,
)
from ..interfaces.lifecycle import IComponent
from ..interfaces.tasks import ITaskHandle, ITaskQueue

logger = logging.getLogger(__name__)


class TaskHandle(ITaskHandle):
    """Tracks a single submitted task."""

    def __init__(self, func: Callable[..., Any], args: Tuple[Any, ...],
                 kwargs: Dict[str, Any], name: Optional[str] = None) -> None:
        self._task_id = str(uuid.uuid4())
        self.name = name or getattr(func, '__name__', 'task')
        self._func = func
        self._args = args
        self._kwargs = kwargs
        self._status = TaskStatus.PENDING
        self._result: Any = None
        self._exception: Optional[BaseException] = None
        self._done = asyncio.Event()
        self._running_task: Optional[asyncio.Task[Any]] = None
        self._cancel_requested = False

        self.submitted_at = time.time()
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None

    @property
    def task_id(self) -> str:
        return self._task_id

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def done(self) -> bool:
        return self._status.is_terminal

    def cancel(self) -> bool:
        """Cancel the task if it has not finished yet."""
        if self._status.is_terminal:
            return False

        self._cancel_requested = True
        if self._status is TaskStatus.RUNNING and self._running_task is not None:
            # The worker observes the cancellation and finalizes the handle
            return self._running_task.cancel()

        self._mark_cancelled()
        return True

    async def result(self, timeout: Optional[float] = None) -> Any:
        """Wait for completion and return the task result."""
        await asyncio.wait_for(self._done.wait(), timeout=timeout)

        if self._status is TaskStatus.CANCELLED:
            raise TaskCancelledError(f"Task {self.name} ({self._task_id}) was cancelled")
        if self._exception is not None:
            raise self._exception
        return self._result

    def to_dict(self) -> Dict[str, Any]:
        return {
            'task_id': self._task_id,
            'name': self.name,
            'status': self._status.name,
            'submitted_at': self.submitted_at,
            'started_at': self.started_at,
            'finished_at': self.finished_at,
            'error': str(self._exception) if self._exception else None,
        }

    async def _invoke(self) -> Any:
        if inspect.iscoroutinefunction(self._func):
            return await self._func(*self._args, **self._kwargs)
        return await asyncio.to_thread(self._func, *self._args, **self._kwargs)

    def _mark_running(self, task: 'asyncio.Task[Any]') -> None:
        self._status = TaskStatus.RUNNING
        self._running_task = task
        self.started_at = time.time()

    def _mark_completed(self, value: Any) -> None:
        self._status = TaskStatus.COMPLETED
        self._result = value
        self._finish()

    def _mark_failed(self, error: BaseException) -> None:
        self._status = TaskStatus.FAILED
        self._exception = error
        self._finish()

    def _mark_cancelled(self) -> None:
        self._status = TaskStatus.CANCELLED
        self._finish()

    def _finish(self) -> None:
        self.finished_at = time.time()
        self._running_task = None
        self._done.set()


class TaskQueue(IComponent, ITaskQueue):
    """
    Background task queue backed by a pool of asyncio workers.

    Tasks run in submission order across ``workers`` concurrent workers.
    Plain callables are run in a thread so they do not block the loop.
    On ``stop`` the queue stops accepting work, gives queued tasks
    ``shutdown_timeout`` seconds to drain and cancels whatever is left.
    """

    def __init__(self, workers: int = 4, queue_size: int = 100,
                 backpressure: Union[BackpressurePolicy, str] = BackpressurePolicy.BLOCK,
                 submit_timeout: Optional[float] = 5.0,
                 shutdown_timeout: float = 10.0) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got {queue_size}")

        self._max_workers = workers
        self._queue_size = queue_size
        self._backpressure = BackpressurePolicy(backpressure)
        self._submit_timeout = submit_timeout
        self._shutdown_timeout = shutdown_timeout

        self._queue: Optional[asyncio.Queue[TaskHandle]] = None
        self._workers: List[asyncio.Task[Any]] = []
        self._running = False

        # Metrics
        self._metrics: Dict[str, int] = {
            'tasks_submitted': 0,
            'tasks_completed': 0,
            'tasks_failed': 0,
            'tasks_cancelled': 0,
            'tasks_rejected': 0,
        }

    @property
    def name(self) -> str:
        return "TaskQueue"

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the worker pool."""
        if self._running:
            return

        logger.info(f"Starting task queue with {self._max_workers} workers "
                    f"(queue size {self._queue_size}, {self._backpressure.value} on full)")

        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._running = True
        self._workers = [
            asyncio.create_task(self._worker_process(index), name=f"task-worker-{index}")
            for index in range(self._max_workers)
        ]

        logger.info("Task queue started successfully")

    async def stop(self) -> None:
        """Stop accepting tasks, drain the queue, then stop the workers."""
        if not self._running:
            return

        logger.info("Stopping task queue...")
        self._running = False

        if self._queue is not None:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=self._shutdown_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Task queue did not drain within {self._shutdown_timeout}s, "
                               f"cancelling {self._queue.qsize()} queued task(s)")

        for worker in self._workers:
            worker.cancel()

        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)

        self._workers.clear()
        self._cancel_queued()

        logger.info("Task queue stopped")

    async def check_health(self) -> Dict[str, Any]:
        """Check task queue health."""
        alive = sum(1 for worker in self._workers if not worker.done())
        return {
            'healthy': not self._running or alive == self._max_workers,
            'status': 'running' if self._running else 'stopped',
            'details': {
                'workers_alive': alive,
                'queue_size': self._queue.qsize() if self._queue else 0,
                **self._metrics,
            }
        }

    async def submit(self, func: Callable[..., Any], *args: Any,
                     name: Optional[str] = None, **kwargs: Any) -> TaskHandle:
        """Queue a task for background execution."""
        if not self._running or self._queue is None:
            raise TaskQueueClosedError("Task queue is not running")

        handle = TaskHandle(func, args, kwargs, name)

        if self._backpressure is BackpressurePolicy.REJECT:
            try:
                self._queue.put_nowait(handle)
            except asyncio.QueueFull:
                self._metrics['tasks_rejected'] += 1
                raise QueueFullError(
                    f"Task queue is full ({self._queue_size}), rejected {handle.name}") from None
        else:
            try:
                await asyncio.wait_for(self._queue.put(handle), timeout=self._submit_timeout)
            except asyncio.TimeoutError:
                self._metrics['tasks_rejected'] += 1
                raise QueueFullError(
                    f"Task queue stayed full for {self._submit_timeout}s, "
                    f"rejected {handle.name}") from None

            if not self._running:
                # stop() ran while this submit was waiting for a slot
                self._discard_late(handle)
                raise TaskQueueClosedError(f"Task queue stopped before {handle.name} was queued")

        self._metrics['tasks_submitted'] += 1
        logger.debug(f"Queued task {handle.name} (ID: {handle.task_id})")
        return handle

    async def get_metrics(self) -> Dict[str, Any]:
        """Get task queue metrics."""
        return {
            **self._metrics,
            'queue_size': self._queue.qsize() if self._queue else 0,
            'max_queue_size': self._queue_size,
            'workers': len(self._workers),
            'backpressure': self._backpressure.value,
            'running': self._running,
        }

    async def _worker_process(self, index: int) -> None:
        """Worker loop pulling tasks off the queue."""
        assert self._queue is not None
        while True:
            handle = await self._queue.get()
            try:
                if handle.status is TaskStatus.CANCELLED:
                    self._metrics['tasks_cancelled'] += 1
                    continue
                await self._execute(handle)
            finally:
                self._queue.task_done()

    async def _execute(self, handle: TaskHandle) -> None:
        """Run one task, recording its outcome on the handle."""
        task = asyncio.create_task(handle._invoke())
        handle._mark_running(task)

        try:
            value = await task
        except asyncio.CancelledError:
            handle._mark_cancelled()
            self._metrics['tasks_cancelled'] += 1
            if not handle._cancel_requested:
                # The worker itself is being cancelled
                raise
            logger.info(f"Task {handle.name} (ID: {handle.task_id}) cancelled")
        except Exception as e:
            handle._mark_failed(e)
            self._metrics['tasks_failed'] += 1
            logger.error(f"Task {handle.name} (ID: {handle.task_id}) failed: {e}")
        else:
            handle._mark_completed(value)
            self._metrics['tasks_completed'] += 1

    def _discard_late(self, handle: TaskHandle) -> None:
        """Drop a task that entered the queue after stop() began."""
        handle._mark_cancelled()
        if not self._workers:
            # No worker is left to dequeue and skip it
            self._cancel_queued()

    def _cancel_queued(self) -> None:
        """Cancel tasks still waiting in the queue after the workers stopped."""
        if self._queue is None:
            return

        while not self._queue.empty():
            handle = self._queue.get_nowait()
            if not handle.done:
                handle._mark_cancelled()
            self._metrics['tasks_cancelled'] += 1
            self._queue.task_done()
