"""
Node domain models and rename request validation.

This module defines the rename-node request shape, the node record kept by
the node service, and the validation rules applied to incoming requests.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping


NODE_NAME_MIN_LENGTH = 1
NODE_NAME_MAX_LENGTH = 10


class Location(str, Enum):
    """Deployment region codes a node can be assigned to."""
    BJ = "bj"
    HK = "hk"
    GZ = "gz"
    HZ = "hz"
    SZ = "sz"
    SH = "sh"
    ZQ = "zq"


LOCATION_CODES: FrozenSet[str] = frozenset(location.value for location in Location)


class FieldValidationError(Exception):
    """A single field of a request failed validation."""

    code = "invalid_field"

    def __init__(self, field: str, value: Any, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.value = value
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field': self.field,
            'code': self.code,
            'message': self.message,
        }


class InvalidFieldError(FieldValidationError):
    """Field is missing or has the wrong type."""
    code = "invalid_field"


class NodeLengthError(FieldValidationError):
    """Node name length is outside the allowed range."""
    code = "node_length"


class LocationPatternError(FieldValidationError):
    """Location is not one of the known location codes."""
    code = "location_pattern"


class ValidationError(Exception):
    """
    Raised when a request violates one or more field constraints.

    The ``errors`` attribute lists every failing field, so callers can
    report all problems at once instead of one per round trip.
    """

    def __init__(self, errors: List[FieldValidationError]) -> None:
        self.errors = list(errors)
        fields = ", ".join(error.field for error in self.errors)
        super().__init__(f"Validation failed for: {fields}")

    def has_error(self, error_type: type) -> bool:
        """Check whether any collected error is of the given type."""
        return any(isinstance(error, error_type) for error in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': 'validation_failed',
            'errors': [error.to_dict() for error in self.errors],
        }


class NodeNotFoundError(LookupError):
    """Raised when a node id is unknown."""

    def __init__(self, node_id: int) -> None:
        super().__init__(f"Node {node_id} not found")
        self.node_id = node_id


@dataclass
class RenameNodeRequest:
    """Payload of a rename operation."""

    id: int
    """Identifier of the node to rename."""

    node: str
    """New human-readable node name."""

    location: str
    """Location code of the node."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RenameNodeRequest':
        """
        Build a request from a decoded JSON body.

        Args:
            data: Mapping with ``id``, ``node`` and ``location`` keys

        Returns:
            Request instance (not yet validated)

        Raises:
            ValidationError: If a key is missing or ``id`` is not an integer
        """
        errors: List[FieldValidationError] = []
        for key in ('id', 'node', 'location'):
            if key not in data:
                errors.append(InvalidFieldError(key, None, f"{key} is required"))

        node_id = data.get('id')
        if 'id' in data and not _is_int(node_id):
            errors.append(InvalidFieldError('id', node_id, "id must be an integer"))

        if errors:
            raise ValidationError(errors)

        return cls(id=node_id, node=data['node'], location=data['location'])  # type: ignore[arg-type]

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'node': self.node, 'location': self.location}


@dataclass
class Node:
    """A monitored node as last renamed."""

    id: int
    name: str
    location: str
    updated_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'location': self.location,
            'updated_at': self.updated_at,
        }


def _is_int(value: Any) -> bool:
    # bool is a subclass of int but never a valid id
    return isinstance(value, int) and not isinstance(value, bool)


def collect_errors(request: RenameNodeRequest) -> List[FieldValidationError]:
    """
    Check a rename request against its field constraints.

    Both the name and the location are always checked, so the returned
    list may contain one entry per failing field.

    Args:
        request: Request to check

    Returns:
        List of field errors, empty when the request is valid
    """
    errors: List[FieldValidationError] = []

    if not _is_int(request.id):
        errors.append(InvalidFieldError('id', request.id, "id must be an integer"))

    node = request.node
    if not isinstance(node, str):
        errors.append(NodeLengthError('node', node, "node must be a string"))
    elif not NODE_NAME_MIN_LENGTH <= len(node) <= NODE_NAME_MAX_LENGTH:
        errors.append(NodeLengthError(
            'node', node,
            f"node length must be between {NODE_NAME_MIN_LENGTH} and "
            f"{NODE_NAME_MAX_LENGTH}, got {len(node)}"
        ))

    location = request.location
    if not isinstance(location, str) or location not in LOCATION_CODES:
        errors.append(LocationPatternError(
            'location', location,
            f"location must be one of {sorted(LOCATION_CODES)}, got {location!r}"
        ))

    return errors


def validate(request: RenameNodeRequest) -> RenameNodeRequest:
    """
    Validate a rename request.

    Args:
        request: Request to validate

    Returns:
        The same request, guaranteed to satisfy all constraints

    Raises:
        ValidationError: If any field constraint is violated
    """
    errors = collect_errors(request)
    if errors:
        raise ValidationError(errors)
    return request
