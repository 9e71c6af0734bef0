"""
Pydantic schemas for bookings
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from rivo_scheduling.models.booking import BookingStatus


class BookingCreate(BaseModel):
    """Homeowner request for one slot returned by the slot listing"""
    provider_id: UUID
    start_ts: datetime
    end_ts: datetime
    service_type: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    homeowner_notes: Optional[str] = None

    @field_validator('start_ts', 'end_ts')
    @classmethod
    def require_offset(cls, v):
        if v.tzinfo is None:
            raise ValueError('Timestamp must include a UTC offset')
        return v


class BookingStatusUpdate(BaseModel):
    """Provider-side status change"""
    status: BookingStatus
    provider_notes: Optional[str] = None
