"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
- details: requested vs available quantities and similar context
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    ConfigurationError,
    ConsistencyAlarmError,
    LedgerError,
    NotFoundError,
    StateConflictError,
    StorageError,
    ValidationError,
    WouldGoNegativeError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StateConflictError: status.HTTP_409_CONFLICT,
    WouldGoNegativeError: status.HTTP_409_CONFLICT,
    ConsistencyAlarmError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "CATALOG_ITEM_NOT_FOUND": "Register the catalog item before recording stock for it.",
    "INVENTORY_NOT_FOUND": "Check the inventory ID and try GET /api/inventory to list aggregates.",
    "LOT_NOT_FOUND": "Check the lot ID with GET /api/inventory/{id}/lots; lots belong to one aggregate.",
    "LEDGER_ENTRY_NOT_FOUND": "Check the entry ID with GET /api/inventory/{id}/transactions.",
    "FOLDER_NOT_FOUND": "Check the folder ID and try GET /api/checkout/folders.",
    "CHECKOUT_ITEM_NOT_FOUND": "Check the item ID with GET /api/checkout/folders/{id}.",
    "INSUFFICIENT_STOCK": "Reduce the quantity to what is available.",
    "LOT_REQUIRED": "This item uses lot costing. Pass lot_id.",
    "LOT_INSUFFICIENT": "Pick another lot or reduce the quantity.",
    "FOLDER_CLOSED": "Reopen the folder with POST /api/checkout/folders/{id}/reopen.",
    "ALREADY_RESOLVED": "Undo the item first to change its resolution.",
    "NOT_RESOLVED": "The item is pending; return, sell or convert it instead.",
    "INSUFFICIENT_STOCK_FOR_UNDO": "The units were used since the resolution and cannot be taken back.",
    "PENDING_ITEMS_EXIST": "Resolve or cancel the pending items first.",
    "FOLDER_HAS_LINKED_ITEMS": "Undo the sold or converted items first, or keep the folder closed.",
    "CHECKOUT_LINKED_ENTRY": "Undo the checkout item that created this entry.",
    "WOULD_GO_NEGATIVE": "The change conflicts with later sales or holds. Adjust those first.",
    "CONSISTENCY_ALARM": "Records may be half-applied. Run reconcile and check server logs.",
    "INVALID_INPUT": "Check the request body fields and values.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The current stock does not allow this request.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standardized JSON error response."""
    status_code = _status_for(exc)

    if isinstance(exc, LedgerError):
        error_code = exc.code
        message = exc.message
        details = exc.details
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        details = {}

    request_id = getattr(request.state, "request_id", None)

    if isinstance(exc, ConsistencyAlarmError):
        logger.critical(
            "consistency_alarm",
            request_id=request_id,
            path=request.url.path,
            **details,
        )
    elif status_code >= 500:
        logger.error(
            "unhandled_exception",
            request_id=request_id,
            path=request.url.path,
            error_type=error_code,
            error=message,
            traceback=traceback.format_exc(),
        )
    else:
        logger.info(
            "request_rejected",
            request_id=request_id,
            path=request.url.path,
            error_type=error_code,
            status=status_code,
        )

    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        details=details,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions to standardized JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(LedgerError)
    async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
        """Handle domain errors raised by use cases."""
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint=HINT_MAP["VALIDATION_ERROR"],
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)
        hint = _get_hint(error_code, exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=hint,
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTP status."""
    return {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        409: "CONFLICT",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")
