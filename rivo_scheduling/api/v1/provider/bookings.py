# ============================================================================
# FILE: rivo_scheduling/api/v1/provider/bookings.py
# Provider view of incoming bookings
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from rivo_scheduling.config.database import get_db
from rivo_scheduling.models.booking import BookingStatus
from rivo_scheduling.models.user import User
from rivo_scheduling.api.dependencies import require_provider
from rivo_scheduling.schemas.booking import BookingStatusUpdate
from rivo_scheduling.services.booking.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["Provider"])


@router.get("")
async def list_bookings(
        status: Optional[BookingStatus] = Query(None, description="Filter by status (pending, confirmed, cancelled)"),
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    """Bookings ordered by start, plus the same list grouped by status"""
    return BookingService.list_provider_bookings(
        db,
        provider.id,
        status=status.value if status else None,
    )


@router.patch("/{booking_id}")
async def update_booking(
        payload: BookingStatusUpdate,
        booking_id: UUID = Path(..., description="The booking ID"),
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    booking = BookingService.update_status(
        db=db,
        booking_id=booking_id,
        provider=provider,
        status=payload.status.value,
        provider_notes=payload.provider_notes,
    )
    return {
        "booking": BookingService.serialize_booking(booking, include_provider=False),
        "message": f"Booking {booking.status}",
    }


@router.delete("/{booking_id}")
async def cancel_booking(
        booking_id: UUID = Path(..., description="The booking ID"),
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    booking = BookingService.update_status(
        db=db,
        booking_id=booking_id,
        provider=provider,
        status=BookingStatus.CANCELLED.value,
    )
    return {
        "booking": BookingService.serialize_booking(booking, include_provider=False),
        "message": "Booking cancelled",
    }
