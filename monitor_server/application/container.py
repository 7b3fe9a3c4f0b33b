"""
Service container used by the composition root.

Components are constructed by hand in ``ApplicationStartup`` and registered
here either as ready instances or as factories producing a single lazily
created instance. The container does no reflection-based injection.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ServiceNotRegisteredException(Exception):
    """Raised when trying to resolve an unregistered service."""
    pass


class ServiceResolutionException(Exception):
    """Raised when a service factory fails."""
    pass


class CircularDependencyException(Exception):
    """Raised when a factory ends up resolving its own service."""
    pass


class ServiceRegistration:
    """Registration information for a service."""

    def __init__(self, service_type: Type[Any],
                 instance: Any = None,
                 factory: Optional[Callable[[], Any]] = None) -> None:
        self.service_type = service_type
        self.instance = instance
        self.factory = factory

    @property
    def is_created(self) -> bool:
        return self.instance is not None


class IContainer(ABC):
    """Interface for service containers."""

    @abstractmethod
    def register_instance(self, service_type: Type[T], instance: T) -> None:
        """Register a ready instance under ``service_type``."""
        pass

    @abstractmethod
    def register_factory(self, service_type: Type[T], factory: Callable[[], T]) -> None:
        """Register a factory called once, on first resolution."""
        pass

    @abstractmethod
    def resolve(self, service_type: Type[T]) -> T:
        """
        Resolve a service instance.

        Raises:
            ServiceNotRegisteredException: If service not registered
            ServiceResolutionException: If the factory fails
            CircularDependencyException: If the factory resolves itself
        """
        pass

    @abstractmethod
    def try_resolve(self, service_type: Type[T]) -> Optional[T]:
        """Resolve a service, returning None instead of raising."""
        pass

    @abstractmethod
    def is_registered(self, service_type: Type[Any]) -> bool:
        pass

    @abstractmethod
    def get_registrations(self) -> Dict[Type[Any], ServiceRegistration]:
        pass


class Container(IContainer):
    """Explicit service registry with lazy singleton factories."""

    def __init__(self) -> None:
        self._services: Dict[Type[Any], ServiceRegistration] = {}
        self._resolution_stack: List[Type[Any]] = []

    def register_instance(self, service_type: Type[T], instance: T) -> None:
        if instance is None:
            raise ValueError(f"Cannot register None for {service_type.__name__}")

        self._services[service_type] = ServiceRegistration(service_type, instance=instance)
        logger.debug(f"Registered instance for {service_type.__name__}")

    def register_factory(self, service_type: Type[T], factory: Callable[[], T]) -> None:
        if not callable(factory):
            raise TypeError(f"Factory for {service_type.__name__} must be callable")

        self._services[service_type] = ServiceRegistration(service_type, factory=factory)
        logger.debug(f"Registered factory for {service_type.__name__}")

    def resolve(self, service_type: Type[T]) -> T:
        if service_type in self._resolution_stack:
            cycle = " -> ".join([t.__name__ for t in self._resolution_stack] +
                                [service_type.__name__])
            raise CircularDependencyException(
                f"Circular dependency detected: {cycle}")

        registration = self._services.get(service_type)
        if registration is None:
            raise ServiceNotRegisteredException(
                f"Service {service_type.__name__} is not registered")

        if registration.is_created:
            return registration.instance  # type: ignore[no-any-return]

        assert registration.factory is not None
        self._resolution_stack.append(service_type)
        try:
            instance = registration.factory()
        except CircularDependencyException:
            raise
        except Exception as e:
            raise ServiceResolutionException(
                f"Failed to resolve {service_type.__name__}: {e}") from e
        finally:
            self._resolution_stack.pop()

        if instance is None:
            raise ServiceResolutionException(
                f"Factory for {service_type.__name__} returned None")

        registration.instance = instance
        return instance  # type: ignore[no-any-return]

    def try_resolve(self, service_type: Type[T]) -> Optional[T]:
        try:
            return self.resolve(service_type)
        except (ServiceNotRegisteredException, ServiceResolutionException, CircularDependencyException):
            return None

    def is_registered(self, service_type: Type[Any]) -> bool:
        return service_type in self._services

    def get_registrations(self) -> Dict[Type[Any], ServiceRegistration]:
        """Get all service registrations (for health reporting)."""
        return self._services.copy()
