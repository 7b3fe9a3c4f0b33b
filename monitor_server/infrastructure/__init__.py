"""
Infrastructure layer: configuration loading and logging.
"""

from .config.loader import ConfigLoader
from .config.models import ApplicationConfig
from .logging.setup import LoggingManager, setup_logging

__all__ = [
    "ConfigLoader",
    "ApplicationConfig",
    "LoggingManager",
    "setup_logging",
]
