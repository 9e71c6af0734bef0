# ============================================================================
# rivo_scheduling/services/booking/booking_service.py
# Booking admission (re-check then insert) and the booking lifecycle
# ============================================================================
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, lazyload

from rivo_scheduling.config.settings import get_settings
from rivo_scheduling.core.exceptions import Forbidden, NotFound, SlotConflict, ValidationError
from rivo_scheduling.models import Booking, BookingStatus, User, UserRole
from rivo_scheduling.services.scheduling.intervals import Interval, as_utc
from rivo_scheduling.services.scheduling.slot_generator import compute_slots, slot_buffer, validate_slot_request
from rivo_scheduling.services.scheduling.slot_service import SlotService
from rivo_scheduling.services.store import store_errors
from rivo_scheduling.tasks.booking_tasks import enqueue_booking_notification

settings = get_settings()
logger = logging.getLogger(__name__)

# Allowed status moves; anything else is rejected
STATUS_TRANSITIONS = {
    BookingStatus.PENDING.value: {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value},
    BookingStatus.CONFIRMED.value: {BookingStatus.CANCELLED.value},
    BookingStatus.CANCELLED.value: set(),
}


class BookingService:
    """Handles booking operations"""

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    @staticmethod
    def validate_booking_request(start_ts: datetime, end_ts: datetime, now: datetime) -> int:
        """Check the requested interval and return its length in minutes"""
        if start_ts.tzinfo is None or end_ts.tzinfo is None:
            raise ValidationError("start_ts and end_ts must include a UTC offset")
        if end_ts <= start_ts:
            raise ValidationError("End time must be after start time")

        seconds = (end_ts - start_ts).total_seconds()
        if seconds % 60:
            raise ValidationError("Booking length must be a whole number of minutes")
        duration = int(seconds // 60)

        granularity = settings.SLOT_GRANULARITY_MINUTES
        if duration % granularity:
            raise ValidationError(f"Booking length must be a multiple of {granularity} minutes")
        if as_utc(start_ts) <= now:
            raise ValidationError("Cannot book slots in the past")

        return duration

    @staticmethod
    def buffer_for_slot(rules: List[Any], slot: Interval, tz) -> int:
        """Buffer stamped onto a booking made in slot"""
        return slot_buffer(rules, slot, tz)

    @staticmethod
    def create_booking(
            db: Session,
            provider_id: UUID,
            homeowner: User,
            start_ts: datetime,
            end_ts: datetime,
            service_type: str,
            description: Optional[str] = None,
            homeowner_notes: Optional[str] = None,
            now: Optional[datetime] = None,
    ) -> Booking:
        """
        Book a slot that is still open.

        The provider row is locked (SELECT ... FOR UPDATE) so admissions for one
        provider run one at a time on PostgreSQL; the slot list is rebuilt for
        exactly [start_ts, end_ts) and the interval must be one of its slots,
        which also keeps the new booking's own buffer clear of active bookings.
        The partial unique index on active bookings backs this up: a racing
        duplicate insert fails with IntegrityError and becomes SlotConflict.

        Raises:
            ValidationError: malformed interval or service type, self-booking
            NotFound: unknown provider
            SlotConflict: the interval is not (or no longer) free
            StoreError: data-store failure
        """
        now = as_utc(now or datetime.now(timezone.utc))
        duration = BookingService.validate_booking_request(start_ts, end_ts, now)
        bounds = validate_slot_request(start_ts, end_ts, duration)

        service_type = (service_type or "").strip()
        if not service_type:
            raise ValidationError("service_type is required")
        if homeowner.id == provider_id:
            raise ValidationError("Providers cannot book themselves")

        with store_errors(db, "verify slot availability"):
            provider = db.query(User).options(
                lazyload(User.provider_profile)
            ).filter(
                User.id == provider_id,
                User.role == UserRole.PROVIDER,
            ).with_for_update().first()

            if not provider:
                db.rollback()
                raise NotFound("Provider not found")

            tz = SlotService.get_provider_timezone(provider)
            rules, blocks, bookings, holiday_dates = SlotService.load_calendar(db, provider_id, bounds, tz)

        slots = compute_slots(
            provider_id=provider_id,
            rules=rules,
            blocks=blocks,
            bookings=bookings,
            range_start=bounds.start,
            range_end=bounds.end,
            slot_minutes=duration,
            tz=tz,
            holiday_dates=holiday_dates,
        )

        if not any(s.slot_start == bounds.start and s.slot_end == bounds.end for s in slots):
            db.rollback()
            logger.info(f"Slot {bounds.start.isoformat()} for provider {provider_id} is not available")
            raise SlotConflict()

        buffer_minutes = BookingService.buffer_for_slot(rules, bounds, tz)

        booking = Booking(
            id=uuid.uuid4(),
            provider_id=provider_id,
            homeowner_id=homeowner.id,
            start_ts=bounds.start,
            end_ts=bounds.end,
            buffer_minutes=buffer_minutes,
            service_type=service_type,
            description=description or None,
            homeowner_notes=homeowner_notes or None,
            status=BookingStatus.PENDING.value,
        )

        with store_errors(db, "create booking"):
            db.add(booking)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning(
                    f"Concurrent booking lost the race for provider {provider_id} at {bounds.start.isoformat()}"
                )
                raise SlotConflict("Failed to create booking. The slot may have been taken by another user.")
            db.refresh(booking)

        logger.info(f"Created booking {booking.id} for provider {provider_id}")

        enqueue_booking_notification(booking.id, "created")
        return booking

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def get_booking_for_party(db: Session, booking_id: UUID, user: User) -> Booking:
        """Booking visible to its provider or homeowner"""
        with store_errors(db, "fetch booking"):
            booking = db.query(Booking).filter(Booking.id == booking_id).first()

        if not booking:
            raise NotFound("Booking not found")
        if user.id not in (booking.provider_id, booking.homeowner_id):
            raise Forbidden()
        return booking

    @staticmethod
    def update_status(
            db: Session,
            booking_id: UUID,
            provider: User,
            status: str,
            provider_notes: Optional[str] = None
    ) -> Booking:
        """Provider moves one of their bookings to a new status"""
        if status not in STATUS_TRANSITIONS:
            raise ValidationError("Valid status is required (pending, confirmed, cancelled)")

        with store_errors(db, "fetch booking"):
            booking = db.query(Booking).filter(
                Booking.id == booking_id,
                Booking.provider_id == provider.id,
            ).first()

        if not booking:
            raise NotFound("Booking not found or not authorized")

        if status != booking.status and status not in STATUS_TRANSITIONS[booking.status]:
            raise ValidationError(f"Cannot change a {booking.status} booking to {status}")

        changed = status != booking.status
        booking.status = status
        if provider_notes is not None:
            booking.provider_notes = provider_notes or None
        if changed and status == BookingStatus.CANCELLED.value:
            booking.cancelled_at = datetime.now(timezone.utc)

        with store_errors(db, "update booking"):
            db.commit()
            db.refresh(booking)

        if changed:
            logger.info(f"Booking {booking.id} is now {status}")
            enqueue_booking_notification(booking.id, status)
        return booking

    @staticmethod
    def cancel_booking(db: Session, booking_id: UUID, user: User) -> Booking:
        """Either party cancels; cancelling frees the interval"""
        booking = BookingService.get_booking_for_party(db, booking_id, user)

        if booking.status == BookingStatus.CANCELLED.value:
            raise ValidationError("Booking is already cancelled")

        booking.status = BookingStatus.CANCELLED.value
        booking.cancelled_at = datetime.now(timezone.utc)

        with store_errors(db, "cancel booking"):
            db.commit()
            db.refresh(booking)

        logger.info(f"Booking {booking.id} cancelled by {user.id}")
        enqueue_booking_notification(booking.id, "cancelled")
        return booking

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def list_provider_bookings(db: Session, provider_id: UUID, status: Optional[str] = None) -> Dict[str, Any]:
        """Provider bookings ordered by start, also grouped by status"""
        with store_errors(db, "fetch bookings"):
            query = db.query(Booking).filter(Booking.provider_id == provider_id)
            if status:
                query = query.filter(Booking.status == status)
            bookings = query.order_by(Booking.start_ts.asc()).all()

        serialized = [BookingService.serialize_booking(b, include_provider=False) for b in bookings]
        grouped = {s.value: [b for b in serialized if b["status"] == s.value] for s in BookingStatus}

        return {
            "bookings": serialized,
            "grouped": grouped,
            "total": len(serialized),
        }

    @staticmethod
    def list_homeowner_bookings(db: Session, homeowner_id: UUID) -> Dict[str, Any]:
        with store_errors(db, "fetch bookings"):
            bookings = db.query(Booking).filter(
                Booking.homeowner_id == homeowner_id
            ).order_by(Booking.start_ts.asc()).all()

        return {
            "bookings": [BookingService.serialize_booking(b) for b in bookings],
            "total": len(bookings),
        }

    @staticmethod
    def serialize_booking(booking: Booking, include_provider: bool = True) -> Dict[str, Any]:
        data = {
            "id": str(booking.id),
            "provider_id": str(booking.provider_id),
            "homeowner_id": str(booking.homeowner_id),
            "start_ts": as_utc(booking.start_ts).isoformat(),
            "end_ts": as_utc(booking.end_ts).isoformat(),
            "buffer_minutes": booking.buffer_minutes,
            "status": booking.status,
            "service_type": booking.service_type,
            "description": booking.description,
            "homeowner_notes": booking.homeowner_notes,
            "provider_notes": booking.provider_notes,
            "created_at": booking.created_at.isoformat() if booking.created_at else None,
            "cancelled_at": as_utc(booking.cancelled_at).isoformat() if booking.cancelled_at else None,
        }

        if include_provider:
            profile = booking.provider.provider_profile if booking.provider else None
            data["provider"] = profile.contact_info() if profile else {
                "business_name": None,
                "full_name": booking.provider.full_name if booking.provider else None,
                "email": booking.provider.email if booking.provider else None,
                "phone": None,
            }
        else:
            homeowner = booking.homeowner
            data["homeowner"] = {
                "full_name": homeowner.full_name if homeowner else None,
                "email": homeowner.email if homeowner else None,
            }

        return data
