# ============================================================================
# FILE: rivo_scheduling/api/v1/homeowner/bookings.py
# Homeowner booking endpoints - thin HTTP layer over BookingService
# ============================================================================
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from uuid import UUID

from rivo_scheduling.config.database import get_db
from rivo_scheduling.models.user import User
from rivo_scheduling.api.dependencies import get_current_active_user, require_homeowner
from rivo_scheduling.schemas.booking import BookingCreate
from rivo_scheduling.services.booking.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
        payload: BookingCreate,
        current_user: User = Depends(require_homeowner),
        db: Session = Depends(get_db)
):
    """
    Book one of the provider's open slots.
    Returns 409 when the slot was taken since it was listed.
    """
    booking = BookingService.create_booking(
        db=db,
        provider_id=payload.provider_id,
        homeowner=current_user,
        start_ts=payload.start_ts,
        end_ts=payload.end_ts,
        service_type=payload.service_type,
        description=payload.description,
        homeowner_notes=payload.homeowner_notes,
    )

    return {
        "booking": BookingService.serialize_booking(booking),
        "message": "Booking request sent to provider",
    }


@router.get("/me")
async def list_my_bookings(
        current_user: User = Depends(require_homeowner),
        db: Session = Depends(get_db)
):
    return BookingService.list_homeowner_bookings(db, current_user.id)


@router.get("/{booking_id}")
async def get_booking(
        booking_id: UUID = Path(..., description="The booking ID"),
        current_user: User = Depends(get_current_active_user),
        db: Session = Depends(get_db)
):
    """Visible to the booking's homeowner and provider only"""
    booking = BookingService.get_booking_for_party(db, booking_id, current_user)
    return {"booking": BookingService.serialize_booking(booking)}


@router.post("/{booking_id}/cancel")
async def cancel_booking(
        booking_id: UUID = Path(..., description="The booking ID"),
        current_user: User = Depends(get_current_active_user),
        db: Session = Depends(get_db)
):
    booking = BookingService.cancel_booking(db, booking_id, current_user)
    return {
        "booking": BookingService.serialize_booking(booking),
        "message": "Booking cancelled",
    }
