"""Exception handlers for FastAPI application"""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError

from judging.exceptions import WorkflowError
from judging.utils.responses import format_error_response
from judging.workflow.error_codes import ErrorCodeDictionary

logger = logging.getLogger(__name__)


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    """Handle workflow failures unwrapped at the HTTP boundary"""
    if exc.status_code >= 500:
        logger.error(f"Workflow error {exc.error_code.code} on {request.url.path}")
    else:
        logger.info(f"{exc.error_code.code} on {request.method} {request.url.path}")
    error = exc.to_dict()
    message = error.pop("message")
    code = error.pop("code")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(
            format_error_response(message, error_code=code, path=str(request.url.path), **error)
        ),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(
            format_error_response(
                "Request validation failed",
                error_code="VALIDATION_ERROR",
                details=exc.errors(),
                path=str(request.url.path),
            )
        ),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Handle a constraint violation that escaped the workflow layer"""
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.__class__.__name__}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=format_error_response(
            "The request conflicts with the current state",
            error_code="CONFLICT",
            path=str(request.url.path),
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and return a generic 500 without internals"""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = ErrorCodeDictionary.SYSTEM_001
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=format_error_response(
            error.message,
            error_code=error.code,
            path=str(request.url.path),
        ),
    )
