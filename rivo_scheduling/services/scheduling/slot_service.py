# ============================================================================
# rivo_scheduling/services/scheduling/slot_service.py
# Loads a provider's calendar and runs the slot generator over it
# ============================================================================
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from rivo_scheduling.config.settings import get_settings
from rivo_scheduling.core.exceptions import NotFound
from rivo_scheduling.models import (
    ACTIVE_BOOKING_STATUSES,
    Booking,
    Holiday,
    ProviderHolidayPreference,
    ProviderProfile,
    UnavailabilityBlock,
    User,
    UserRole,
    WeeklyAvailabilityRule,
)
from rivo_scheduling.services.scheduling.intervals import Interval, as_utc, iter_local_dates, resolve_timezone
from rivo_scheduling.services.scheduling.slot_generator import Slot, compute_slots, validate_slot_request
from rivo_scheduling.services.store import store_errors

settings = get_settings()
logger = logging.getLogger(__name__)


class SlotService:
    """Read side of scheduling: which slots of a provider are open"""

    @staticmethod
    def get_provider(db: Session, provider_id: UUID) -> User:
        """Provider user or NotFound"""
        with store_errors(db, "load provider"):
            provider = db.query(User).filter(
                User.id == provider_id,
                User.role == UserRole.PROVIDER,
            ).first()

        if not provider:
            raise NotFound("Provider not found")
        return provider

    @staticmethod
    def get_provider_timezone(provider: User):
        """Provider timezone, resolved once per request"""
        profile: ProviderProfile = provider.provider_profile
        tz_name = profile.timezone if profile and profile.timezone else settings.DEFAULT_TIMEZONE
        return resolve_timezone(tz_name)

    @staticmethod
    def load_calendar(db: Session, provider_id: UUID, bounds: Interval, tz) -> Tuple[list, list, list, list]:
        """Rules, overlapping blocks, active bookings (with buffer reach) and blocking holiday dates"""
        # A booking outside the range can still reach into it through its buffer
        reach = timedelta(minutes=settings.MAX_BUFFER_MINUTES)
        local_dates = list(iter_local_dates(bounds, tz))

        with store_errors(db, "fetch provider calendar"):
            rules = db.query(WeeklyAvailabilityRule).filter(
                WeeklyAvailabilityRule.provider_id == provider_id
            ).all()

            if not rules:
                return [], [], [], []

            blocks = db.query(UnavailabilityBlock).filter(
                UnavailabilityBlock.provider_id == provider_id,
                UnavailabilityBlock.start_ts < bounds.end,
                UnavailabilityBlock.end_ts > bounds.start,
            ).all()

            bookings = db.query(Booking).filter(
                Booking.provider_id == provider_id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.start_ts < bounds.end + reach,
                Booking.end_ts > bounds.start - reach,
            ).all()

            holiday_dates = [
                row.date for row in db.query(Holiday.date).join(
                    ProviderHolidayPreference,
                    ProviderHolidayPreference.holiday_id == Holiday.id,
                ).filter(
                    ProviderHolidayPreference.provider_id == provider_id,
                    ProviderHolidayPreference.blocks_availability == True,  # noqa: E712
                    Holiday.date >= local_dates[0],
                    Holiday.date <= local_dates[-1],
                ).all()
            ]

        return rules, blocks, bookings, holiday_dates

    @staticmethod
    def list_slots(
            db: Session,
            provider_id: UUID,
            range_start: datetime,
            range_end: datetime,
            slot_minutes: int,
            provider: User = None,
            now: Optional[datetime] = None,
    ) -> Tuple[List[Slot], object]:
        """
        Open slots of a provider in [range_start, range_end).

        Slots that have already started are left out; they could not be booked.

        Returns:
            (slots ordered by start, provider timezone)
        """
        bounds = validate_slot_request(range_start, range_end, slot_minutes)

        if provider is None:
            provider = SlotService.get_provider(db, provider_id)
        tz = SlotService.get_provider_timezone(provider)

        rules, blocks, bookings, holiday_dates = SlotService.load_calendar(db, provider_id, bounds, tz)

        slots = compute_slots(
            provider_id=provider_id,
            rules=rules,
            blocks=blocks,
            bookings=bookings,
            range_start=bounds.start,
            range_end=bounds.end,
            slot_minutes=slot_minutes,
            tz=tz,
            holiday_dates=holiday_dates,
        )
        now = as_utc(now or datetime.now(timezone.utc))
        slots = [s for s in slots if s.slot_start > now]

        logger.debug(f"Computed {len(slots)} slots for provider {provider_id}")
        return slots, tz
