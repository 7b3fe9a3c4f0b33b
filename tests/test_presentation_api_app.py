"""
Tests for FastAPI application factory and HTTP endpoints.

测试FastAPI应用工厂和HTTP端点功能。
"""

import asyncio
import time
from pathlib import Path
from typing import Any, Iterator
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from monitor_server.application.container import Container
from monitor_server.application.startup import ApplicationStartup
from monitor_server.core.domain.tasks import QueueFullError
from monitor_server.core.services.node_service import NodeService
from monitor_server.infrastructure.config.models import ApplicationConfig, SecurityConfig
from monitor_server.presentation.api.app import CONFIG_FILE_ENV, create_app, create_app_from_config
from monitor_server.presentation.api.middleware import SecurityMiddleware


def _build_client(config: ApplicationConfig) -> TestClient:
    container = Container()
    app = create_app(container, config, ApplicationStartup(container))
    return TestClient(app)


@pytest.fixture
def client(app_config: ApplicationConfig) -> Iterator[TestClient]:
    with _build_client(app_config) as test_client:
        yield test_client


class TestCreateApp:
    """测试FastAPI应用创建功能"""

    def test_create_app_basic(self, app_config: ApplicationConfig) -> None:
        """测试基本应用创建"""
        container = Container()
        app = create_app(container, app_config)

        assert isinstance(app, FastAPI)
        assert app.title == app_config.name
        assert app.version == app_config.version
        assert app.state.container is container
        assert app.state.config is app_config
        assert app.state.startup is None

    def test_lifespan_starts_and_stops_services(self, app_config: ApplicationConfig) -> None:
        """测试生命周期启动和停止服务"""
        container = Container()
        startup = ApplicationStartup(container)
        app = create_app(container, app_config, startup)

        with TestClient(app):
            names = [component.name for component in startup.started_components]
            assert names == ["LoggingManager", "TaskQueue", "NodeService"]

        assert startup.started_components == []

    def test_create_app_from_config_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """测试通过环境变量指定配置文件"""
        config_path = tmp_path / "dev.yaml"
        config_path.write_text("name: Dev Monitor\nlogging:\n  file_enabled: false\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_FILE_ENV, str(config_path))

        app = create_app_from_config()

        assert app.title == "Dev Monitor"
        assert isinstance(app.state.startup, ApplicationStartup)

    def test_create_app_from_config_working_directory(self, isolated_cwd: Path,
                                                      monkeypatch: pytest.MonkeyPatch) -> None:
        """测试默认读取工作目录中的config.yaml"""
        monkeypatch.delenv(CONFIG_FILE_ENV, raising=False)
        (isolated_cwd / "config.yaml").write_text("name: Local Monitor\n", encoding="utf-8")

        app = create_app_from_config()

        assert app.title == "Local Monitor"

    def test_root_endpoint(self, client: TestClient) -> None:
        """测试根端点功能"""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Monitor Server"
        assert data["status"] == "running"
        assert data["docs_url"] == "/docs"
        assert data["health_url"] == "/health"


class TestRenameNode:
    """测试节点重命名接口"""

    def test_rename_valid(self, client: TestClient) -> None:
        """测试有效的重命名请求"""
        response = client.post("/api/nodes/rename", json={"id": 1, "node": "core-1", "location": "sh"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == 1
        assert data["name"] == "core-1"
        assert data["location"] == "sh"

    def test_rename_then_get(self, client: TestClient) -> None:
        """测试重命名后查询节点"""
        client.post("/api/nodes/rename", json={"id": 5, "node": "edge", "location": "hz"})

        response = client.get("/api/nodes/5")

        assert response.status_code == 200
        assert response.json()["name"] == "edge"

    @pytest.mark.parametrize("body, field, code", [
        ({"id": 2, "node": "", "location": "bj"}, "node", "node_length"),
        ({"id": 3, "node": "ok", "location": "xx"}, "location", "location_pattern"),
        ({"id": 4, "node": "twelvecharsxx", "location": "hk"}, "node", "node_length"),
        ({"id": 5, "node": "ok", "location": "SH"}, "location", "location_pattern"),
        ({"id": 6, "node": 5, "location": "sh"}, "node", "node_length"),
        ({"id": 7, "node": "ok", "location": 1}, "location", "location_pattern"),
        ({"id": True, "node": "ok", "location": "sh"}, "id", "invalid_field"),
        ({"id": "7", "node": "ok", "location": "sh"}, "id", "invalid_field"),
        ({"id": 1.5, "node": "ok", "location": "sh"}, "id", "invalid_field"),
    ])
    def test_rename_invalid(self, client: TestClient, body: dict, field: str, code: str) -> None:
        """测试无效的重命名请求"""
        response = client.post("/api/nodes/rename", json=body)

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "validation_failed"
        assert {"field": field, "code": code} == {
            key: data["errors"][0][key] for key in ("field", "code")}

    def test_rename_invalid_reports_every_field(self, client: TestClient) -> None:
        """测试同时报告所有字段错误"""
        response = client.post("/api/nodes/rename", json={"id": 6, "node": "", "location": "xx"})

        assert response.status_code == 422
        codes = sorted(error["code"] for error in response.json()["errors"])
        assert codes == ["location_pattern", "node_length"]

    def test_rejected_rename_is_not_stored(self, client: TestClient) -> None:
        """测试被拒绝的请求不会保存"""
        client.post("/api/nodes/rename", json={"id": 7, "node": "", "location": "bj"})

        assert client.get("/api/nodes/7").status_code == 404

    def test_rename_missing_field(self, client: TestClient) -> None:
        """测试缺少字段"""
        response = client.post("/api/nodes/rename", json={"id": 1, "node": "core"})

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "validation_failed"
        assert data["errors"][0]["field"] == "location"
        assert data["errors"][0]["code"] == "invalid_field"

    def test_rename_wrong_id_type(self, client: TestClient) -> None:
        """测试错误的ID类型"""
        response = client.post("/api/nodes/rename", json={"id": "abc", "node": "core", "location": "sh"})

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "id"

    def test_get_unknown_node(self, client: TestClient) -> None:
        """测试查询不存在的节点"""
        response = client.get("/api/nodes/99")

        assert response.status_code == 404
        assert response.json()["error"] == "node_not_found"

    def test_list_nodes(self, client: TestClient) -> None:
        """测试节点列表按ID排序"""
        for node_id in (3, 1, 2):
            client.post("/api/nodes/rename", json={"id": node_id, "node": f"n{node_id}", "location": "gz"})

        response = client.get("/api/nodes")

        assert response.status_code == 200
        assert [node["id"] for node in response.json()] == [1, 2, 3]


class TestHealthEndpoints:
    """测试健康检查端点"""

    def test_basic_health(self, client: TestClient) -> None:
        """测试基本健康检查"""
        response = client.get("/health/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["application"]["environment"] == "testing"

    def test_detailed_health(self, client: TestClient) -> None:
        """测试详细健康检查"""
        response = client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        components = data["components"]
        assert components["ApplicationConfig"]["status"] == "available"
        assert components["ITaskQueue"]["status"] == "running"
        assert components["NodeService"]["healthy"] is True

    def test_ready(self, client: TestClient) -> None:
        """测试就绪检查"""
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True
        assert response.json()["missing_services"] == []

    def test_not_ready_without_services(self, app_config: ApplicationConfig) -> None:
        """测试服务未注册时未就绪"""
        with TestClient(create_app(Container(), app_config)) as test_client:
            data = test_client.get("/health/ready").json()

        assert data["ready"] is False
        assert data["missing_services"] == ["ITaskQueue", "NodeService"]

    def test_live(self, client: TestClient) -> None:
        """测试存活检查"""
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True


class TestSystemEndpoints:
    """测试系统信息端点"""

    def test_system_info(self, client: TestClient) -> None:
        """测试系统信息"""
        response = client.get("/api/v1/system/info")

        assert response.status_code == 200
        data = response.json()
        assert data["environment"] == "testing"
        assert "python_version" in data

    def test_task_metrics(self, client: TestClient) -> None:
        """测试任务队列指标"""
        client.post("/api/nodes/rename", json={"id": 1, "node": "core", "location": "sh"})

        response = client.get("/api/v1/system/tasks")

        assert response.status_code == 200
        data = response.json()
        assert data["tasks_submitted"] == 1
        assert data["workers"] == 2
        assert data["max_queue_size"] == 10
        assert data["running"] is True


class TestSecurity:
    """测试安全相关功能"""

    def test_api_key_required(self, app_config: ApplicationConfig) -> None:
        """测试需要API密钥"""
        app_config.security.api_key = "secret"

        with _build_client(app_config) as test_client:
            missing = test_client.get("/api/nodes")
            wrong = test_client.get("/api/nodes", headers={"X-API-Key": "nope"})
            right = test_client.get("/api/nodes", headers={"X-API-Key": "secret"})
            health = test_client.get("/health/")

        assert missing.status_code == 401
        assert missing.json()["detail"] == "API key required"
        assert wrong.status_code == 401
        assert wrong.json()["detail"] == "Invalid API key"
        assert right.status_code == 200
        assert health.status_code == 200

    def test_non_ascii_api_key_rejected(self, app_config: ApplicationConfig) -> None:
        """测试非ASCII密钥返回401"""
        app_config.security.api_key = "secret"

        with _build_client(app_config) as test_client:
            response = test_client.get("/api/nodes", headers={"X-API-Key": "café".encode("latin-1")})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API key"

    def test_non_ascii_api_key_accepted(self, app_config: ApplicationConfig) -> None:
        """测试配置的非ASCII密钥可以匹配"""
        app_config.security.api_key = "café"

        with _build_client(app_config) as test_client:
            response = test_client.get("/api/nodes", headers={"X-API-Key": "café".encode("latin-1")})

        assert response.status_code == 200

    def test_rate_limit(self, app_config: ApplicationConfig) -> None:
        """测试请求限流"""
        app_config.security.rate_limit_enabled = True
        app_config.security.rate_limit_requests = 2

        with _build_client(app_config) as test_client:
            statuses = [test_client.get("/health/live").status_code for _ in range(3)]

        assert statuses == [200, 200, 429]

    def test_rate_limit_forgets_idle_clients(self) -> None:
        """测试限流记录清理空闲客户端"""
        middleware = SecurityMiddleware(Mock(), config=SecurityConfig(
            rate_limit_enabled=True, rate_limit_requests=5, rate_limit_window=60))
        now = time.time()
        middleware.rate_limit_store = {"10.0.0.1": [now - 120], "10.0.0.3": [now - 10]}
        middleware._last_purge = now - 61
        request = Mock()
        request.client.host = "10.0.0.2"

        assert middleware._check_rate_limit(request) is True

        assert "10.0.0.1" not in middleware.rate_limit_store
        assert "10.0.0.3" in middleware.rate_limit_store
        assert len(middleware.rate_limit_store["10.0.0.2"]) == 1

    def test_security_headers(self, client: TestClient) -> None:
        """测试安全响应头"""
        response = client.get("/health/live")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestMiddleware:
    """测试中间件功能"""

    def test_request_id_generated(self, client: TestClient) -> None:
        """测试生成请求ID"""
        response = client.get("/health/live")

        assert response.headers["X-Request-ID"]
        assert response.headers["X-Response-Time"].endswith("s")

    def test_request_id_propagated(self, client: TestClient) -> None:
        """测试传递请求ID"""
        response = client.get("/health/live", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_unhandled_error_returns_json(self, app_config: ApplicationConfig) -> None:
        """测试未处理异常返回JSON"""
        app = create_app(Container(), app_config)

        @app.get("/explode")
        async def explode() -> None:
            raise RuntimeError("boom")

        with TestClient(app) as test_client:
            response = test_client.get("/explode")

        assert response.status_code == 500
        assert response.json()["error"] == "internal_error"
        assert response.json()["message"] == "An unexpected error occurred"

    def test_queue_full_returns_busy(self, app_config: ApplicationConfig) -> None:
        """测试任务队列已满时重命名返回503"""
        task_queue = AsyncMock()
        task_queue.submit.side_effect = QueueFullError("Task queue is full")
        container = Container()
        container.register_instance(NodeService, NodeService(task_queue=task_queue))
        app = create_app(container, app_config)

        with TestClient(app) as test_client:
            response = test_client.post(
                "/api/nodes/rename", json={"id": 1, "node": "core", "location": "sh"})
            lookup = test_client.get("/api/nodes/1")

        assert response.status_code == 503
        assert response.json()["error"] == "busy"
        assert response.headers["Retry-After"] == "1"
        assert lookup.status_code == 404

    def test_saturated_reject_queue_returns_busy(self, app_config: ApplicationConfig) -> None:
        """测试拒绝策略下队列饱和返回503"""
        app_config.tasks.workers = 1
        app_config.tasks.queue_size = 1
        app_config.tasks.backpressure = "reject"
        app_config.tasks.shutdown_timeout = 0.05
        async def slow_audit(previous: Any, node: Any) -> None:
            await asyncio.sleep(10)

        with patch("monitor_server.core.services.node_service._record_rename", slow_audit):
            with _build_client(app_config) as test_client:
                statuses = [
                    test_client.post(
                        "/api/nodes/rename",
                        json={"id": node_id, "node": f"n{node_id}", "location": "sh"}
                    ).status_code
                    for node_id in range(1, 6)
                ]

        assert statuses[0] == 200
        assert 503 in statuses
