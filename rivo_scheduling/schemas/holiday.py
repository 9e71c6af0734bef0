"""
Pydantic schemas for provider holiday preferences
"""
from pydantic import BaseModel, Field
from typing import List
from uuid import UUID


class HolidayPreferenceIn(BaseModel):
    holiday_id: UUID
    blocks_availability: bool = False


class HolidayPreferencesUpdate(BaseModel):
    preferences: List[HolidayPreferenceIn] = Field(default_factory=list)
