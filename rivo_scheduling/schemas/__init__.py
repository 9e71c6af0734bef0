# rivo_scheduling/schemas/__init__.py
from .availability import (
    WeeklyRuleIn,
    WeeklyAvailabilityUpdate,
    UnavailabilityCreate
)

from .booking import (
    BookingCreate,
    BookingStatusUpdate
)

from .holiday import (
    HolidayPreferenceIn,
    HolidayPreferencesUpdate
)
