"""
Configuration models and data structures.

This module defines the configuration models used throughout the application,
providing type safety and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path

from ...core.domain.tasks import BackpressurePolicy


_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10 MB"
    retention: int = 5
    console_enabled: bool = True
    file_enabled: bool = True


@dataclass
class TaskQueueConfig:
    """Background task queue configuration."""
    workers: int = 4
    queue_size: int = 100
    backpressure: str = BackpressurePolicy.BLOCK.value
    submit_timeout: Optional[float] = 5.0
    shutdown_timeout: float = 10.0


@dataclass
class SecurityConfig:
    """Security configuration."""
    api_key: Optional[str] = None
    api_key_header: str = "X-API-Key"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    rate_limit_enabled: bool = False
    rate_limit_requests: int = 100
    rate_limit_window: int = 60


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    # Basic application settings
    name: str = "Monitor Server"
    version: str = "0.1.0"
    debug: bool = False
    environment: str = "production"

    # Component configurations
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tasks: TaskQueueConfig = field(default_factory=TaskQueueConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_server()
        self._validate_logging()
        self._validate_tasks()

    def _validate_server(self) -> None:
        if not (1 <= self.server.port <= 65535):
            raise ValueError(
                f"server.port must be between 1 and 65535, got {self.server.port}")

    def _validate_logging(self) -> None:
        level = self.logging.level.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {list(_LOG_LEVELS)}, got {self.logging.level}")
        self.logging.level = level

        if self.logging.file_enabled:
            path = Path(self.logging.log_directory)
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ValueError(f"Cannot create directory {path}: {e}")

    def _validate_tasks(self) -> None:
        tasks = self.tasks
        if tasks.workers < 1:
            raise ValueError(f"tasks.workers must be at least 1, got {tasks.workers}")
        if tasks.queue_size < 1:
            raise ValueError(f"tasks.queue_size must be at least 1, got {tasks.queue_size}")
        try:
            BackpressurePolicy(tasks.backpressure)
        except ValueError:
            raise ValueError(
                f"tasks.backpressure must be one of "
                f"{[policy.value for policy in BackpressurePolicy]}, got {tasks.backpressure}")
        if tasks.submit_timeout is not None and tasks.submit_timeout < 0:
            raise ValueError(
                f"tasks.submit_timeout must not be negative, got {tasks.submit_timeout}")
        if tasks.shutdown_timeout < 0:
            raise ValueError(
                f"tasks.shutdown_timeout must not be negative, got {tasks.shutdown_timeout}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        try:
            return cls(
                name=data.get('name', 'Monitor Server'),
                version=data.get('version', '0.1.0'),
                debug=data.get('debug', False),
                environment=data.get('environment', 'production'),
                server=ServerConfig(**data.get('server', {})),
                logging=LoggingConfig(**data.get('logging', {})),
                tasks=TaskQueueConfig(**data.get('tasks', {})),
                security=SecurityConfig(**data.get('security', {})),
                config_file_path=data.get('config_file_path'),
            )
        except TypeError as e:
            # Unknown keys in a section surface as constructor TypeErrors
            raise ValueError(f"Invalid configuration: {e}") from e
