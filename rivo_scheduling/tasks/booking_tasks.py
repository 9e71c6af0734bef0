# ===== rivo_scheduling/tasks/booking_tasks.py =====
from typing import List, Tuple
from uuid import UUID
import logging

from rivo_scheduling.config.celery_config import celery_app
from rivo_scheduling.config.database import SessionLocal
from rivo_scheduling.config.settings import get_settings
from rivo_scheduling.models import Booking
from rivo_scheduling.services.email.email_service import EmailService
from rivo_scheduling.services.scheduling.intervals import as_utc, resolve_timezone

settings = get_settings()
logger = logging.getLogger(__name__)

BOOKING_EVENTS = ("created", "confirmed", "cancelled")


def booking_recipients(booking: Booking, event: str) -> List[Tuple[str, str]]:
    """(email, name) pairs to notify: providers hear about requests, homeowners about confirmations"""
    provider = booking.provider
    profile = provider.provider_profile if provider else None
    provider_contact = (
        (profile.email if profile and profile.email else provider.email),
        (profile.full_name if profile and profile.full_name else provider.full_name),
    )
    homeowner_contact = (booking.homeowner.email, booking.homeowner.full_name)

    if event == "created":
        return [provider_contact]
    if event == "confirmed":
        return [homeowner_contact]
    return [provider_contact, homeowner_contact]


@celery_app.task(bind=True, max_retries=3)
def notify_booking_event(self, booking_id: str, event: str):
    """
    Email the parties of a booking about a lifecycle event

    Args:
        booking_id: Booking UUID as a string
        event: created, confirmed or cancelled
    """
    if event not in BOOKING_EVENTS:
        logger.error(f"Ignoring unknown booking event '{event}' for {booking_id}")
        return {"status": "ignored", "booking_id": booking_id}

    db = SessionLocal()
    try:
        booking = db.query(Booking).filter(Booking.id == UUID(booking_id)).first()
        if not booking:
            logger.warning(f"Booking {booking_id} disappeared before notification")
            return {"status": "missing", "booking_id": booking_id}

        profile = booking.provider.provider_profile
        tz = resolve_timezone(profile.timezone if profile and profile.timezone else settings.DEFAULT_TIMEZONE)
        when = as_utc(booking.start_ts).astimezone(tz).strftime("%A, %B %d at %I:%M %p %Z")
        provider_name = (profile.business_name if profile else None) or booking.provider.full_name or "Your provider"
        homeowner_name = booking.homeowner.full_name or "A homeowner"

        sent = []
        for email, name in booking_recipients(booking, event):
            if not email:
                continue
            EmailService.send_booking_email(
                to_email=email,
                event=event,
                recipient_name=name,
                provider_name=provider_name,
                homeowner_name=homeowner_name,
                service_type=booking.service_type,
                when=when,
            )
            sent.append(email)

        logger.info(f"Booking {booking_id} '{event}' notification sent to {len(sent)} recipient(s)")
        return {"status": "success", "booking_id": booking_id, "recipients": sent}

    except Exception as exc:
        logger.error(f"Failed to send '{event}' notification for booking {booking_id}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
    finally:
        db.close()


def enqueue_booking_notification(booking_id: UUID, event: str) -> bool:
    """Queue a notification; failure to enqueue is logged and never reaches the caller"""
    if not settings.NOTIFICATIONS_ENABLED:
        logger.debug(f"Notifications disabled, skipping '{event}' for booking {booking_id}")
        return False

    try:
        notify_booking_event.delay(str(booking_id), event)
        return True
    except Exception as e:
        logger.error(f"Failed to queue '{event}' notification for booking {booking_id}: {e}")
        return False
