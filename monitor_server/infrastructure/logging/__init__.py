"""
Logging infrastructure for the application.
"""

from .setup import setup_logging, InterceptHandler, LoggingManager

__all__ = [
    "setup_logging",
    "InterceptHandler",
    "LoggingManager",
]
