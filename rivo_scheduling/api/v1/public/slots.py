# ============================================================================
# FILE: rivo_scheduling/api/v1/public/slots.py
# Public read side: open slots and a provider's weekly hours
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session
from datetime import datetime
from uuid import UUID

from rivo_scheduling.config.database import get_db
from rivo_scheduling.config.settings import settings
from rivo_scheduling.services.availability.availability_service import AvailabilityService
from rivo_scheduling.services.scheduling.slot_generator import group_slots_by_date
from rivo_scheduling.services.scheduling.slot_service import SlotService

router = APIRouter(tags=["Public"])


@router.get("/slots")
async def list_slots(
        provider_id: UUID = Query(..., description="Provider to book"),
        range_start: datetime = Query(..., alias="from", description="Inclusive start, with UTC offset"),
        range_end: datetime = Query(..., alias="to", description="Exclusive end, with UTC offset"),
        slot_mins: int = Query(settings.DEFAULT_SLOT_MINUTES, description="Slot length in minutes"),
        db: Session = Depends(get_db)
):
    """
    Open slots of a provider in [from, to), ordered by start.
    Slots are also grouped by the provider's local date.
    """
    slots, tz = SlotService.list_slots(
        db=db,
        provider_id=provider_id,
        range_start=range_start,
        range_end=range_end,
        slot_minutes=slot_mins,
    )

    return {
        "provider_id": str(provider_id),
        "timezone": tz.zone,
        "slots": [slot.to_dict() for slot in slots],
        "grouped_slots": group_slots_by_date(slots, tz),
        "total_slots": len(slots),
    }


@router.get("/providers/{provider_id}/availability")
async def get_provider_availability(
        provider_id: UUID = Path(..., description="The provider ID"),
        db: Session = Depends(get_db)
):
    """Weekly open hours a provider publishes"""
    provider = SlotService.get_provider(db, provider_id)
    rules = AvailabilityService.list_weekly_availability(db, provider_id)

    return {
        "provider_id": str(provider_id),
        "timezone": SlotService.get_provider_timezone(provider).zone,
        "availability": [rule.to_dict() for rule in rules],
    }
