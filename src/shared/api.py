"""FastAPI exception handlers mapping the error taxonomy to JSON responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from shared.errors import FulfillmentError

logger = structlog.get_logger(__name__)


def _flatten_messages(messages) -> str:
    if isinstance(messages, dict):
        parts = []
        for field, errors in messages.items():
            errors = errors if isinstance(errors, (list, tuple)) else [errors]
            parts.append(f"{field}: {', '.join(str(e) for e in errors)}")
        return "; ".join(parts)
    return str(messages)


async def fulfillment_error_handler(request: Request, exc: FulfillmentError) -> JSONResponse:
    logger.info(
        "Request rejected",
        path=request.url.path,
        kind=exc.kind,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    messages = getattr(exc, "messages", None) or {}
    logger.info("Validation failed", path=request.url.path, errors=messages)
    return JSONResponse(
        status_code=400,
        content={
            "kind": "validation_error",
            "message": _flatten_messages(messages) or "Invalid request",
            "details": messages,
        },
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render pydantic body and query errors like domain validation errors."""
    messages: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        messages.setdefault(".".join(location) or "request", []).append(error.get("msg", "Invalid value"))
    logger.info("Request validation failed", path=request.url.path, errors=messages)
    return JSONResponse(
        status_code=400,
        content={
            "kind": "validation_error",
            "message": _flatten_messages(messages) or "Invalid request",
            "details": messages,
        },
    )


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"kind": "not_found", "message": "Order not found"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FulfillmentError, fulfillment_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
