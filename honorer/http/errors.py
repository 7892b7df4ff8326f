"""Mapping of exceptions escaping a route chain to error responses."""

import json
import traceback
from typing import Any

from loguru import logger
from pydantic import ValidationError
from starlette.exceptions import HTTPException
from starlette.responses import Response

from ..errors import RequestValidationError
from .response import ApiResponse


def error_response(exc: BaseException, *, debug: bool = False) -> ApiResponse:
    """Build the error envelope for an exception.

    - ``HTTPException``: its status and detail
    - pydantic ``ValidationError`` / ``RequestValidationError``: 400 ``VALIDATION_ERROR``
    - malformed JSON: 400 ``INVALID_JSON``
    - anything else: 500 ``INTERNAL_SERVER_ERROR``, with the stack in debug mode
    """
    if isinstance(exc, HTTPException):
        return ApiResponse.error(
            str(exc.detail),
            status=exc.status_code,
            code="NOT_FOUND" if exc.status_code == 404 else None,
        )

    if isinstance(exc, ValidationError):
        return ApiResponse.error(
            "Request validation failed",
            status=400,
            code="VALIDATION_ERROR",
            meta={"issues": json.loads(exc.json(include_url=False))},
        )

    if isinstance(exc, RequestValidationError):
        return ApiResponse.error(
            "Request validation failed",
            status=400,
            code="VALIDATION_ERROR",
            meta={"location": exc.location, "issues": exc.issues},
        )

    if isinstance(exc, json.JSONDecodeError):
        return ApiResponse.error("Malformed JSON in request body", status=400, code="INVALID_JSON")

    meta = None
    if debug:
        meta = {"stack": traceback.format_exception(type(exc), exc, exc.__traceback__)}
    return ApiResponse.error(
        str(exc) or "Unexpected server error",
        status=500,
        code="INTERNAL_SERVER_ERROR",
        meta=meta,
    )


def handle_exception(exc: BaseException, *, debug: bool = False) -> Response:
    """Render an exception escaping a route chain as a response."""
    response = error_response(exc, debug=debug)
    if response.status >= 500:
        logger.opt(exception=exc).error(f"Unhandled error in route: {type(exc).__name__}: {exc}")
    else:
        logger.debug(f"Request failed with {response.status}: {exc}")

    headers: Any = getattr(exc, "headers", None)
    rendered = response.to_response()
    if headers:
        rendered.headers.update(headers)
    return rendered
