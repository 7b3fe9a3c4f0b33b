"""
Configuration loading and models.
"""

from .models import (
    ApplicationConfig,
    LoggingConfig,
    SecurityConfig,
    ServerConfig,
    TaskQueueConfig,
)
from .loader import ConfigLoader

__all__ = [
    "ApplicationConfig",
    "LoggingConfig",
    "SecurityConfig",
    "ServerConfig",
    "TaskQueueConfig",
    "ConfigLoader",
]
