"""
System information API router.
"""

import platform
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ....core.interfaces.tasks import ITaskQueue
from ....infrastructure.config.models import ApplicationConfig
from ..dependencies import get_config, get_task_queue, require_api_key

router = APIRouter(dependencies=[Depends(require_api_key)])

_started_at = time.time()


@router.get("/info")
async def system_info(config: ApplicationConfig = Depends(get_config)) -> Dict[str, Any]:
    """Application and runtime information."""
    return {
        "name": config.name,
        "version": config.version,
        "environment": config.environment,
        "debug": config.debug,
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "uptime": time.time() - _started_at,
    }


@router.get("/tasks")
async def task_queue_status(task_queue: ITaskQueue = Depends(get_task_queue)) -> Dict[str, Any]:
    """Background task queue counters."""
    return await task_queue.get_metrics()
