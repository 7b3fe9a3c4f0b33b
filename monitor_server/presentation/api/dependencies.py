"""
FastAPI dependency functions.

Route handlers use these to reach the container, the configuration and
the services registered by the composition root.
"""

import secrets
from typing import Callable, Type, TypeVar

from fastapi import Depends, HTTPException, Request, status

from ...application.container import IContainer
from ...core.interfaces.tasks import ITaskQueue
from ...core.services.node_service import NodeService
from ...infrastructure.config.models import ApplicationConfig

T = TypeVar('T')


def get_container(request: Request) -> IContainer:
    """
    Get the service container from the application state.

    Raises:
        HTTPException: If the container is not available
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application container not available"
        )
    return container  # type: ignore[no-any-return]


def get_config(request: Request) -> ApplicationConfig:
    """
    Get the application configuration from the application state.

    Raises:
        HTTPException: If the configuration is not available
    """
    config = getattr(request.app.state, "config", None)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application configuration not available"
        )
    return config  # type: ignore[no-any-return]


def get_component(service_type: Type[T]) -> Callable[..., T]:
    """
    Create a dependency function resolving ``service_type`` from the container.

    Args:
        service_type: Type of service to resolve

    Returns:
        Dependency function that resolves the service
    """
    def _get_component(container: IContainer = Depends(get_container)) -> T:
        try:
            return container.resolve(service_type)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Service {service_type.__name__} not available: {e}"
            )

    return _get_component


get_node_service = get_component(NodeService)
get_task_queue = get_component(ITaskQueue)  # type: ignore[type-abstract]


def require_api_key(request: Request, config: ApplicationConfig = Depends(get_config)) -> bool:
    """
    Require the configured API key when one is set.

    Raises:
        HTTPException: If the key is missing or wrong
    """
    expected = config.security.api_key
    if not expected:
        return True

    provided = request.headers.get(config.security.api_key_header)
    if not provided:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    if not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    return True
