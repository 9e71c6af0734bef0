# ============================================================================
# FILE: rivo_scheduling/models/user.py
# Marketplace users and the provider profile used for contact info/timezone
# ============================================================================
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum

from rivo_scheduling.models.base import Base


class UserRole(str, enum.Enum):
    """Marketplace roles."""
    HOMEOWNER = "homeowner"
    PROVIDER = "provider"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)

    role = Column(
        SQLEnum(UserRole, name="userrole"),
        default=UserRole.HOMEOWNER,
        nullable=False,
        index=True
    )

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    provider_profile = relationship(
        "ProviderProfile",
        back_populates="user",
        uselist=False,
        lazy="joined"
    )

    def is_provider(self) -> bool:
        return self.role == UserRole.PROVIDER

    def is_homeowner(self) -> bool:
        return self.role == UserRole.HOMEOWNER

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class ProviderProfile(Base):
    """
    Public-facing provider details.
    Contact fields are denormalized onto booking responses; timezone drives
    how weekly availability is turned into absolute instants.
    """
    __tablename__ = "provider_profiles"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    business_name = Column(String(200), nullable=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    timezone = Column(String(50), nullable=True)  # IANA name, e.g. "America/Chicago"

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="provider_profile")

    def contact_info(self) -> dict:
        """Contact details shown to homeowners on their bookings"""
        return {
            "business_name": self.business_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
        }

    def __repr__(self):
        return f"<ProviderProfile(user_id={self.user_id}, business_name={self.business_name})>"
