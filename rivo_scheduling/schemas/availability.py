"""
Pydantic schemas for provider availability and unavailability
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime, time


# ============================================================================
# Request Schemas (for incoming data)
# ============================================================================

class WeeklyRuleIn(BaseModel):
    """One recurring open window, in the provider's local wall-clock time"""
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")
    start_time: time
    end_time: time
    buffer_minutes: int = Field(0, ge=0, description="Gap kept around bookings made in this window")


class WeeklyAvailabilityUpdate(BaseModel):
    """Full replacement of the provider's week; an empty list clears it"""
    rules: List[WeeklyRuleIn] = Field(default_factory=list)


class UnavailabilityCreate(BaseModel):
    start_ts: datetime
    end_ts: datetime
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator('start_ts', 'end_ts')
    @classmethod
    def require_offset(cls, v):
        if v.tzinfo is None:
            raise ValueError('Timestamp must include a UTC offset')
        return v
