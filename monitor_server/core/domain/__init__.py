"""
Domain models representing the core entities and value objects.

This module contains pure domain models without external dependencies.
"""

from .nodes import (
    LOCATION_CODES,
    FieldValidationError,
    InvalidFieldError,
    Location,
    LocationPatternError,
    Node,
    NodeLengthError,
    NodeNotFoundError,
    RenameNodeRequest,
    ValidationError,
    collect_errors,
    validate,
)
from .tasks import (
    BackpressurePolicy,
    QueueFullError,
    TaskCancelledError,
    TaskQueueClosedError,
    TaskQueueError,
    TaskStatus,
)

__all__ = [
    "LOCATION_CODES",
    "FieldValidationError",
    "InvalidFieldError",
    "Location",
    "LocationPatternError",
    "Node",
    "NodeLengthError",
    "NodeNotFoundError",
    "RenameNodeRequest",
    "ValidationError",
    "collect_errors",
    "validate",
    "BackpressurePolicy",
    "QueueFullError",
    "TaskCancelledError",
    "TaskQueueClosedError",
    "TaskQueueError",
    "TaskStatus",
]
