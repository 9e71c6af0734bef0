# rivo_scheduling/models/__init__.py
from .base import Base
from .user import User, UserRole, ProviderProfile
from .availability import WeeklyAvailabilityRule, UnavailabilityBlock
from .booking import Booking, BookingStatus, ACTIVE_BOOKING_STATUSES
from .holiday import Holiday, ProviderHolidayPreference

__all__ = [
    "Base",
    "User",
    "UserRole",
    "ProviderProfile",
    "WeeklyAvailabilityRule",
    "UnavailabilityBlock",
    "Booking",
    "BookingStatus",
    "ACTIVE_BOOKING_STATUSES",
    "Holiday",
    "ProviderHolidayPreference",
]
