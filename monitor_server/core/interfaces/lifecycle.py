"""
Lifecycle interfaces for components hosted by the monitor server.

Every long-lived service is started and stopped by the application startup
sequence and reports its health to the health endpoints.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class IStartable(ABC):
    """Interface for components that can be started."""

    @abstractmethod
    async def start(self) -> None:
        """
        Start the component.

        Raises:
            Exception: If the component fails to start.
        """
        pass


class IStoppable(ABC):
    """Interface for components that can be stopped."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop the component and release its resources."""
        pass


class IHealthCheckable(ABC):
    """Interface for components that can report their health status."""

    @abstractmethod
    async def check_health(self) -> Dict[str, Any]:
        """
        Check the health status of the component.

        Returns:
            Dict with 'healthy' (bool), 'status' (str) and 'details' (dict)
        """
        pass


class IComponent(IStartable, IStoppable, IHealthCheckable):
    """Base interface for components managed by the startup sequence."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the component name."""
        pass
