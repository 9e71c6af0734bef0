# ===== rivo_scheduling/models/availability.py =====
from sqlalchemy import Column, String, Integer, Time, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from rivo_scheduling.models.base import Base
import uuid


class WeeklyAvailabilityRule(Base):
    """Recurring weekly open hours of a provider, in the provider's local time"""
    __tablename__ = "provider_availability"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_provider_availability_day"),
        CheckConstraint("start_time < end_time", name="ck_provider_availability_window"),
        CheckConstraint("buffer_minutes >= 0", name="ck_provider_availability_buffer"),
        Index("idx_provider_availability_provider_day", "provider_id", "day_of_week"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    buffer_minutes = Column(Integer, nullable=False, default=0)  # Stamped onto bookings made in this window

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            "id": str(self.id),
            "provider_id": str(self.provider_id),
            "day_of_week": self.day_of_week,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "buffer_minutes": self.buffer_minutes,
        }


class UnavailabilityBlock(Base):
    """One-off time off (vacation, appointments, etc.)"""
    __tablename__ = "provider_unavailability"
    __table_args__ = (
        CheckConstraint("start_ts < end_ts", name="ck_provider_unavailability_range"),
        Index("idx_provider_unavailability_provider_start", "provider_id", "start_ts"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    start_ts = Column(DateTime(timezone=True), nullable=False)
    end_ts = Column(DateTime(timezone=True), nullable=False)
    reason = Column(String, nullable=True)  # "Vacation", "Training", etc.

    created_at = Column(DateTime(timezone=True), server_default=func.now())
