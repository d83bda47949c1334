"""Error Handlers: global exception handlers for applications rendering pages.

Invariants:
    - PagePropsError -> its own to_response() body and http_status
    - RequestValidationError -> 400 with one detail per offending field
    - Exception (catch-all, including prop callback failures) -> 500 that never leaks
      the exception text
    - Every body has the same {"error": {code, message, category, severity}} envelope

Design Decisions:
    - Registered by the host app through register_error_handlers(app)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pageprops.core.errors import ErrorCategory, ErrorSeverity, PagePropsError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(PagePropsError, _handle_page_props_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)


def _error_body(
    code: str,
    message: str,
    category: ErrorCategory,
    severity: ErrorSeverity,
    **fields,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
            **fields,
        },
    }


async def _handle_page_props_error(request: Request, exc: PagePropsError) -> JSONResponse:
    logger.error(
        f"PagePropsError on {request.url.path}: {exc.message}",
        extra={"error_code": exc.code, "prop_path": exc.context.prop_path},
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    fields = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Rejected request to {request.url.path}: "
        f"{', '.join(f['field'] for f in fields)}",
        extra={"error_code": "VALIDATION_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR,
            path=request.url.path, details=fields,
        ),
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """A failing prop aborts the page with a 500."""
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc!r}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR"},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
    )
