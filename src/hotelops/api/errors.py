"""Mapping of engine errors onto HTTP responses.

409 for conflicts, 404 for missing records, 400 for invalid input/transitions.
Bodies keep FastAPI's {"detail": ...} shape plus a machine-readable code.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hotelops.domain.errors import (
    BookingEngineError,
    ConsistencyConflictError,
    InvalidBookingError,
    InvalidRangeError,
    InvalidTransitionError,
    NotFoundError,
    OverlapError,
)
from hotelops.observability.correlation import get_correlation_id
from hotelops.observability.logging import get_logger
from hotelops.observability.redaction import safe_log_context

logger = get_logger(__name__)

HTTP_STATUS_BY_ERROR: dict[type[BookingEngineError], int] = {
    OverlapError: 409,
    ConsistencyConflictError: 409,
    NotFoundError: 404,
    InvalidRangeError: 400,
    InvalidBookingError: 400,
    InvalidTransitionError: 400,
}


def status_for(exc: BookingEngineError) -> int:
    for error_type, status_code in HTTP_STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


async def booking_engine_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(
        "request rejected",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                path=request.url.path,
                code=exc.code,
                status_code=status_code,
            )
        },
    )
    body: dict = {"detail": str(exc), "code": exc.code}
    if isinstance(exc, OverlapError) and exc.conflicting_booking_id:
        body["conflicting_booking_id"] = exc.conflicting_booking_id
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingEngineError, booking_engine_error_handler)
