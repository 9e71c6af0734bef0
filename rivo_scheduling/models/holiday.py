# ===== rivo_scheduling/models/holiday.py =====
from sqlalchemy import Column, String, Boolean, Date, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from rivo_scheduling.models.base import Base
import uuid


class Holiday(Base):
    """Platform-wide holiday calendar"""
    __tablename__ = "holidays"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False, index=True)
    name = Column(String(200), nullable=False)


class ProviderHolidayPreference(Base):
    """A provider opting into a holiday as a full day off"""
    __tablename__ = "provider_holiday_preferences"
    __table_args__ = (
        UniqueConstraint("provider_id", "holiday_id", name="uq_provider_holiday"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    holiday_id = Column(UUID(as_uuid=True), ForeignKey("holidays.id", ondelete="CASCADE"), nullable=False)
    blocks_availability = Column(Boolean, default=True, nullable=False)

    holiday = relationship("Holiday", lazy="joined")
