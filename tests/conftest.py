"""
Shared test fixtures.
"""

from pathlib import Path

import pytest

from monitor_server.infrastructure.config.models import ApplicationConfig, LoggingConfig


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test in its own directory so log folders do not leak."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def app_config() -> ApplicationConfig:
    """Configuration with file logging disabled and a small task queue."""
    config = ApplicationConfig(
        environment="testing",
        logging=LoggingConfig(file_enabled=False, console_enabled=False),
    )
    config.tasks.workers = 2
    config.tasks.queue_size = 10
    config.tasks.shutdown_timeout = 1.0
    return config
