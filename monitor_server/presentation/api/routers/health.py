"""
Health check API endpoints.

This module provides health check endpoints for monitoring
application and component status.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ....application.container import IContainer
from ....core.interfaces.lifecycle import IHealthCheckable
from ....core.interfaces.tasks import ITaskQueue
from ....core.services.node_service import NodeService
from ....infrastructure.config.models import ApplicationConfig
from ..dependencies import get_container, get_config

router = APIRouter()

ESSENTIAL_SERVICES = (ITaskQueue, NodeService)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _application_info(config: ApplicationConfig) -> Dict[str, Any]:
    return {
        "name": config.name,
        "version": config.version,
        "environment": config.environment
    }


@router.get("/")
async def health_check(
    config: ApplicationConfig = Depends(get_config)
) -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "application": _application_info(config)
    }


@router.get("/detailed")
async def detailed_health_check(
    container: IContainer = Depends(get_container),
    config: ApplicationConfig = Depends(get_config)
) -> Dict[str, Any]:
    """
    Detailed health check with component status.

    Asks every registered component that can report health; services
    that cannot are listed as available.
    """
    components_health: Dict[str, Any] = {}
    overall_healthy = True

    for service_type in container.get_registrations():
        component_name = service_type.__name__

        try:
            component = container.resolve(service_type)

            if isinstance(component, IHealthCheckable):
                health_info = await component.check_health()
                components_health[component_name] = health_info

                if not health_info.get("healthy", True):
                    overall_healthy = False
            else:
                components_health[component_name] = {
                    "healthy": True,
                    "status": "available",
                    "details": {"type": "service"}
                }

        except Exception as e:
            components_health[component_name] = {
                "healthy": False,
                "status": "error",
                "details": {"error": str(e)}
            }
            overall_healthy = False

    return {
        "status": "healthy" if overall_healthy else "degraded",
        "timestamp": _now(),
        "application": _application_info(config),
        "components": components_health
    }


@router.get("/ready")
async def readiness_check(
    container: IContainer = Depends(get_container)
) -> Dict[str, Any]:
    """Indicates whether the services needed to serve requests are running."""
    missing: List[str] = []

    for service_type in ESSENTIAL_SERVICES:
        component = container.try_resolve(service_type)
        if component is None:
            missing.append(service_type.__name__)
            continue

        health = await component.check_health()
        if health.get("status") != "running":
            missing.append(service_type.__name__)

    return {
        "ready": not missing,
        "timestamp": _now(),
        "missing_services": missing
    }


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Simple endpoint to indicate the application is running."""
    return {
        "alive": True,
        "timestamp": _now()
    }
