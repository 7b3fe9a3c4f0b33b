"""
Application startup and composition root.

This module builds every component by hand from the application
configuration, registers it with the container, and starts and stops the
components in a fixed order.
"""

import logging
from typing import Any, List, Type

from .container import IContainer
from ..core.interfaces.lifecycle import IComponent, IStartable, IStoppable
from ..core.interfaces.tasks import ITaskQueue
from ..core.services.node_service import NodeService
from ..core.services.task_queue import TaskQueue
from ..infrastructure.config.models import ApplicationConfig
from ..infrastructure.logging.setup import LoggingManager

logger = logging.getLogger(__name__)


class ApplicationStartup:
    """
    Manages application startup and service configuration.

    Components are started in ``startup_order`` and stopped in reverse.
    A failure while starting stops whatever was already started and
    re-raises.
    """

    def __init__(self, container: IContainer) -> None:
        self._container = container
        self._started_components: List[IComponent] = []
        self.startup_order: List[Type[Any]] = [
            LoggingManager,
            ITaskQueue,
            NodeService,
        ]

    @property
    def started_components(self) -> List[IComponent]:
        return list(self._started_components)

    async def configure_services(self, config: ApplicationConfig) -> None:
        """
        Build and register all application services.

        Args:
            config: Application configuration
        """
        logger.info("Configuring application services...")

        self._container.register_instance(ApplicationConfig, config)

        self._container.register_instance(
            LoggingManager, LoggingManager(config.logging))

        task_config = config.tasks
        task_queue = TaskQueue(
            workers=task_config.workers,
            queue_size=task_config.queue_size,
            backpressure=task_config.backpressure,
            submit_timeout=task_config.submit_timeout,
            shutdown_timeout=task_config.shutdown_timeout,
        )
        self._container.register_instance(ITaskQueue, task_queue)  # type: ignore[type-abstract]

        self._container.register_factory(
            NodeService,
            lambda: NodeService(task_queue=self._container.resolve(ITaskQueue)))  # type: ignore[type-abstract]

        logger.info("Service configuration completed")

    async def start_application(self) -> None:
        """Start all application components in order."""
        logger.info("Starting application components...")

        for service_type in self.startup_order:
            component = self._container.try_resolve(service_type)
            if component is None:
                logger.debug(f"Skipping unregistered component {service_type.__name__}")
                continue
            if not isinstance(component, IStartable):
                continue

            try:
                await component.start()
            except Exception as e:
                logger.error(f"Failed to start component {service_type.__name__}: {e}")
                await self.stop_application()
                raise

            if isinstance(component, IComponent):
                self._started_components.append(component)
                logger.info(f"Started component: {component.name}")

        logger.info("Application startup completed successfully")

    async def stop_application(self) -> None:
        """Stop all started components in reverse order."""
        if not self._started_components:
            return

        logger.info("Stopping application components...")

        for component in reversed(self._started_components):
            try:
                if isinstance(component, IStoppable):
                    await component.stop()
                    logger.info(f"Stopped component: {component.name}")
            except Exception as e:
                logger.error(f"Error stopping component {component.name}: {e}")

        self._started_components.clear()
        logger.info("Application shutdown completed")
