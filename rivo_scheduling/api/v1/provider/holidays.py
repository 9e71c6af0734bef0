# ============================================================================
# FILE: rivo_scheduling/api/v1/provider/holidays.py
# Which platform holidays the provider takes off
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rivo_scheduling.config.database import get_db
from rivo_scheduling.models.user import User
from rivo_scheduling.api.dependencies import require_provider
from rivo_scheduling.schemas.holiday import HolidayPreferencesUpdate
from rivo_scheduling.services.holiday.holiday_service import HolidayService

router = APIRouter(prefix="/holidays", tags=["Provider"])


@router.get("")
async def list_holidays(
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    """Holidays of this year and next with the provider's blocking flag"""
    return {"holidays": HolidayService.list_holidays(db, provider.id)}


@router.put("")
async def set_holidays(
        payload: HolidayPreferencesUpdate,
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    blocking = HolidayService.set_holiday_preferences(db, provider.id, payload.preferences)
    return {
        "blocking_holidays": blocking,
        "message": "Holiday preferences updated",
    }
