"""Public-facing routes."""

from fastapi import APIRouter

from hotelops.api.routes import bookings, frontdesk, rooms

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(rooms.router)
router.include_router(bookings.router)
router.include_router(frontdesk.router)
