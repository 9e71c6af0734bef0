# ============================================================================
# FILE: rivo_scheduling/api/v1/provider/availability.py
# Provider-owned weekly hours and unavailability blocks
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from rivo_scheduling.config.database import get_db
from rivo_scheduling.models.user import User
from rivo_scheduling.api.dependencies import require_provider
from rivo_scheduling.schemas.availability import UnavailabilityCreate, WeeklyAvailabilityUpdate
from rivo_scheduling.services.availability.availability_service import AvailabilityService

router = APIRouter(tags=["Provider"])


@router.get("/availability")
async def get_availability(
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    rules = AvailabilityService.list_weekly_availability(db, provider.id)
    return {"availability": [rule.to_dict() for rule in rules]}


@router.put("/availability")
async def set_availability(
        payload: WeeklyAvailabilityUpdate,
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    """
    Replace the whole week in one transaction.
    Send an empty list to clear availability.
    """
    rules = AvailabilityService.set_weekly_availability(db, provider.id, payload.rules)
    return {
        "availability": [rule.to_dict() for rule in rules],
        "message": "Availability updated",
    }


@router.get("/unavailability")
async def list_unavailability(
        include_past: bool = Query(False, description="Include blocks that already ended"),
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    blocks = AvailabilityService.list_unavailability(db, provider.id, include_past=include_past)
    return {"unavailability": [AvailabilityService.serialize_block(b) for b in blocks]}


@router.post("/unavailability", status_code=status.HTTP_201_CREATED)
async def add_unavailability(
        payload: UnavailabilityCreate,
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    block = AvailabilityService.add_unavailability(
        db=db,
        provider_id=provider.id,
        start_ts=payload.start_ts,
        end_ts=payload.end_ts,
        reason=payload.reason,
    )
    return {"unavailability": AvailabilityService.serialize_block(block)}


@router.delete("/unavailability/{block_id}")
async def remove_unavailability(
        block_id: UUID = Path(..., description="The unavailability block ID"),
        provider: User = Depends(require_provider),
        db: Session = Depends(get_db)
):
    AvailabilityService.remove_unavailability(db, provider.id, block_id)
    return {"message": "Unavailability removed"}
