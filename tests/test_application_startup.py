"""
Tests for ApplicationStartup.

This module tests service construction, the startup sequence and
shutdown procedures.
"""

from typing import Any, Dict, List

import pytest

from monitor_server.application.container import Container
from monitor_server.application.startup import ApplicationStartup
from monitor_server.core.interfaces.lifecycle import IComponent
from monitor_server.core.interfaces.tasks import ITaskQueue
from monitor_server.core.services.node_service import NodeService
from monitor_server.core.services.task_queue import TaskQueue
from monitor_server.infrastructure.config.models import ApplicationConfig
from monitor_server.infrastructure.logging.setup import LoggingManager


class MockComponent(IComponent):
    """Mock component recording lifecycle calls."""

    def __init__(self, name: str, events: List[str]) -> None:
        self._name = name
        self.events = events
        self.should_fail_start = False
        self.should_fail_stop = False

    @property
    def name(self) -> str:
        return self._name

    async def start(self) -> None:
        if self.should_fail_start:
            raise RuntimeError(f"Mock start failure for {self._name}")
        self.events.append(f"start:{self._name}")

    async def stop(self) -> None:
        self.events.append(f"stop:{self._name}")
        if self.should_fail_stop:
            raise RuntimeError(f"Mock stop failure for {self._name}")

    async def check_health(self) -> Dict[str, Any]:
        return {'healthy': True, 'status': 'running', 'details': {}}


class First:
    pass


class Second:
    pass


class Third:
    pass


class TestApplicationStartup:
    """Test cases for ApplicationStartup."""

    @pytest.mark.asyncio
    async def test_configure_services_registers_components(self, app_config: ApplicationConfig) -> None:
        container = Container()
        startup = ApplicationStartup(container)

        await startup.configure_services(app_config)

        assert container.resolve(ApplicationConfig) is app_config
        assert isinstance(container.resolve(LoggingManager), LoggingManager)
        assert isinstance(container.resolve(ITaskQueue), TaskQueue)  # type: ignore[type-abstract]
        assert isinstance(container.resolve(NodeService), NodeService)

    @pytest.mark.asyncio
    async def test_task_queue_built_from_config(self, app_config: ApplicationConfig) -> None:
        app_config.tasks.workers = 3
        app_config.tasks.queue_size = 7
        app_config.tasks.backpressure = "reject"
        container = Container()
        startup = ApplicationStartup(container)

        await startup.configure_services(app_config)
        task_queue = container.resolve(ITaskQueue)  # type: ignore[type-abstract]
        await task_queue.start()  # type: ignore[attr-defined]
        metrics = await task_queue.get_metrics()
        await task_queue.stop()  # type: ignore[attr-defined]

        assert metrics["workers"] == 3
        assert metrics["max_queue_size"] == 7
        assert metrics["backpressure"] == "reject"

    @pytest.mark.asyncio
    async def test_node_service_uses_registered_task_queue(self, app_config: ApplicationConfig) -> None:
        container = Container()
        startup = ApplicationStartup(container)
        await startup.configure_services(app_config)

        node_service = container.resolve(NodeService)

        assert node_service._task_queue is container.resolve(ITaskQueue)  # type: ignore[type-abstract]

    @pytest.mark.asyncio
    async def test_full_start_and_stop(self, app_config: ApplicationConfig) -> None:
        container = Container()
        startup = ApplicationStartup(container)
        await startup.configure_services(app_config)

        await startup.start_application()

        names = [c.name for c in startup.started_components]
        assert names == ["LoggingManager", "TaskQueue", "NodeService"]
        assert container.resolve(ITaskQueue).is_running  # type: ignore[type-abstract,attr-defined]

        await startup.stop_application()

        assert startup.started_components == []
        assert not container.resolve(ITaskQueue).is_running  # type: ignore[type-abstract,attr-defined]

    @pytest.mark.asyncio
    async def test_start_order_and_reverse_stop(self) -> None:
        events: List[str] = []
        container = Container()
        for service_type, name in ((First, "a"), (Second, "b"), (Third, "c")):
            container.register_instance(service_type, MockComponent(name, events))
        startup = ApplicationStartup(container)
        startup.startup_order = [First, Second, Third]

        await startup.start_application()
        await startup.stop_application()

        assert events == ["start:a", "start:b", "start:c", "stop:c", "stop:b", "stop:a"]

    @pytest.mark.asyncio
    async def test_unregistered_components_are_skipped(self) -> None:
        events: List[str] = []
        container = Container()
        container.register_instance(Second, MockComponent("b", events))
        startup = ApplicationStartup(container)
        startup.startup_order = [First, Second]

        await startup.start_application()

        assert events == ["start:b"]

    @pytest.mark.asyncio
    async def test_start_failure_rolls_back(self) -> None:
        events: List[str] = []
        container = Container()
        failing = MockComponent("b", events)
        failing.should_fail_start = True
        container.register_instance(First, MockComponent("a", events))
        container.register_instance(Second, failing)
        container.register_instance(Third, MockComponent("c", events))
        startup = ApplicationStartup(container)
        startup.startup_order = [First, Second, Third]

        with pytest.raises(RuntimeError, match="Mock start failure"):
            await startup.start_application()

        assert events == ["start:a", "stop:a"]
        assert startup.started_components == []

    @pytest.mark.asyncio
    async def test_stop_continues_past_errors(self) -> None:
        events: List[str] = []
        container = Container()
        failing = MockComponent("b", events)
        failing.should_fail_stop = True
        container.register_instance(First, MockComponent("a", events))
        container.register_instance(Second, failing)
        startup = ApplicationStartup(container)
        startup.startup_order = [First, Second]

        await startup.start_application()
        await startup.stop_application()

        assert events == ["start:a", "start:b", "stop:b", "stop:a"]
