# ============================================================================
# rivo_scheduling/services/holiday/holiday_service.py
# Platform holidays and the provider's choice of which ones are days off
# ============================================================================
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging
import uuid

from sqlalchemy.orm import Session

from rivo_scheduling.core.exceptions import ValidationError
from rivo_scheduling.models import Holiday, ProviderHolidayPreference
from rivo_scheduling.services.store import store_errors

logger = logging.getLogger(__name__)


class HolidayService:

    @staticmethod
    def list_holidays(db: Session, provider_id: UUID, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Holidays of the current and next year, each with the provider's blocks_availability flag"""
        today = today or date.today()
        window_start = date(today.year, 1, 1)
        window_end = date(today.year + 1, 12, 31)

        with store_errors(db, "fetch holidays"):
            holidays = db.query(Holiday).filter(
                Holiday.date >= window_start,
                Holiday.date <= window_end,
            ).order_by(Holiday.date).all()

            preferences = db.query(ProviderHolidayPreference).filter(
                ProviderHolidayPreference.provider_id == provider_id
            ).all()

        blocking = {p.holiday_id: p.blocks_availability for p in preferences}

        return [
            {
                "id": str(h.id),
                "date": h.date.isoformat(),
                "name": h.name,
                "blocks_availability": blocking.get(h.id, False),
            }
            for h in holidays
        ]

    @staticmethod
    def set_holiday_preferences(db: Session, provider_id: UUID, preferences: List[Any]) -> int:
        """
        Replace the provider's holiday preferences.

        Only blocking preferences are stored. Returns how many are now blocking.
        """
        blocking_ids = {p.holiday_id for p in preferences if p.blocks_availability}

        with store_errors(db, "update holiday preferences"):
            if blocking_ids:
                known = db.query(Holiday.id).filter(Holiday.id.in_(blocking_ids)).count()
                if known != len(blocking_ids):
                    raise ValidationError("Unknown holiday in preferences")

            db.query(ProviderHolidayPreference).filter(
                ProviderHolidayPreference.provider_id == provider_id
            ).delete(synchronize_session=False)

            db.add_all([
                ProviderHolidayPreference(
                    id=uuid.uuid4(),
                    provider_id=provider_id,
                    holiday_id=holiday_id,
                    blocks_availability=True,
                )
                for holiday_id in blocking_ids
            ])
            db.commit()

        logger.info(f"Provider {provider_id} now blocks {len(blocking_ids)} holiday(s)")
        return len(blocking_ids)
