"""Exception handlers rendering every API error as an ``{"error", "code"}`` body."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from storefront.errors import ConflictError, StorefrontError

logger = structlog.get_logger(__name__)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.messages, "code": "validation_error"})


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc), "code": "not_found"})


async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    """A concurrent write to the same aggregate won the commit."""
    logger.warning("write_conflict", path=request.url.path, error=str(exc))
    conflict = ConflictError("The resource was modified concurrently; retry the request")
    return JSONResponse(status_code=conflict.status_code, content=conflict.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Protean's handlers, re-rendered with a ``code``, plus the storefront taxonomy."""
    register_protean_handlers(app)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
