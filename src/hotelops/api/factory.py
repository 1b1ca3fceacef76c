"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response

from hotelops.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

from .errors import register_error_handlers
from .routers import public


async def bind_correlation_id(request: Request, call_next) -> Response:
    """Tag the request (and every log line it produces) with a correlation ID.

    An incoming X-Correlation-ID is reused; otherwise one is generated. The
    ID is echoed back on the response.
    """
    cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
    token = set_correlation_id(cid)
    try:
        response = await call_next(request)
    finally:
        reset_correlation_id(token)
    response.headers[CORRELATION_ID_HEADER] = cid
    return response


def create_app() -> FastAPI:
    """Build the front desk API: health, rooms, bookings and dashboard routes."""
    app = FastAPI(title="Hotelops", docs_url=None, redoc_url=None)
    app.middleware("http")(bind_correlation_id)
    register_error_handlers(app)
    app.include_router(public.router)
    return app
