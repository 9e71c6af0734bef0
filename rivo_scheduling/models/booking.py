# ===== rivo_scheduling/models/booking.py =====
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, CheckConstraint, Index, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid

from rivo_scheduling.models.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Statuses that occupy the provider's calendar
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class Booking(Base):
    __tablename__ = "provider_bookings"
    __table_args__ = (
        CheckConstraint("start_ts < end_ts", name="ck_provider_bookings_range"),
        CheckConstraint("buffer_minutes >= 0", name="ck_provider_bookings_buffer"),
        CheckConstraint("status IN ('pending', 'confirmed', 'cancelled')", name="ck_provider_bookings_status"),
        # One active booking per exact slot; losers of a race get an IntegrityError
        Index(
            "uq_provider_bookings_active_slot",
            "provider_id", "start_ts", "end_ts",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("idx_provider_bookings_provider_start", "provider_id", "start_ts"),
        Index("idx_provider_bookings_homeowner", "homeowner_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    provider_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    homeowner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Appointment details
    start_ts = Column(DateTime(timezone=True), nullable=False)
    end_ts = Column(DateTime(timezone=True), nullable=False)
    buffer_minutes = Column(Integer, nullable=False, default=0)  # Gap kept free on each side
    service_type = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    homeowner_notes = Column(Text, nullable=True)
    provider_notes = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)  # pending, confirmed, cancelled

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    provider = relationship("User", foreign_keys=[provider_id], lazy="joined")
    homeowner = relationship("User", foreign_keys=[homeowner_id], lazy="joined")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def __repr__(self):
        return f"<Booking(id={self.id}, provider={self.provider_id}, status={self.status})>"
