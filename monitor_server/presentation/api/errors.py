"""
Exception handlers mapping domain errors to HTTP responses.
"""

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...core.domain.nodes import NodeNotFoundError, ValidationError
from ...core.domain.tasks import QueueFullError

logger = logging.getLogger(__name__)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ValidationError)
    logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=422,
        content=exc.to_dict()
    )


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report body parsing errors in the same shape as domain validation errors."""
    assert isinstance(exc, RequestValidationError)
    errors: List[Dict[str, Any]] = []
    for error in exc.errors():
        location = [part for part in error.get("loc", ()) if part != "body"]
        errors.append({
            "field": ".".join(str(part) for part in location) or "body",
            "code": "invalid_field",
            "message": error.get("msg", "Invalid value"),
        })

    logger.info(f"Rejected {request.method} {request.url.path}: malformed body")
    return JSONResponse(
        status_code=422,
        content={"error": "validation_failed", "errors": errors}
    )


async def node_not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, NodeNotFoundError)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "node_not_found", "message": str(exc)}
    )


async def queue_full_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(f"Task queue full while handling {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "busy", "message": str(exc)},
        headers={"Retry-After": "1"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain exception handlers on ``app``."""
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(NodeNotFoundError, node_not_found_handler)
    app.add_exception_handler(QueueFullError, queue_full_handler)
