"""Shared database fixtures for the test suite (SQLite, same models as production)"""
import unittest
import uuid
from datetime import datetime, time

import pytz
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rivo_scheduling.models import Base, ProviderProfile, User, UserRole, WeeklyAvailabilityRule

# One shared connection so every session sees the same in-memory database
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

NEW_YORK = pytz.timezone("America/New_York")

# A Monday well in the future (EST, UTC-5)
MONDAY = datetime(2030, 1, 7).date()


def local(day, hour, minute=0, tz=NEW_YORK):
    """Aware datetime for a provider-local wall-clock time"""
    return tz.localize(datetime.combine(day, time(hour, minute)))


def make_user(db, role=UserRole.HOMEOWNER, email=None, full_name="Test User", timezone="America/New_York"):
    """Create a user (and a provider profile for providers); returns the user id"""
    user = User(
        id=uuid.uuid4(),
        email=email or f"{uuid.uuid4().hex[:10]}@example.com",
        full_name=full_name,
        role=role,
    )
    db.add(user)
    db.flush()

    if role == UserRole.PROVIDER:
        db.add(ProviderProfile(
            user_id=user.id,
            business_name=f"{full_name} Plumbing",
            full_name=full_name,
            email=user.email,
            phone="555-0100",
            timezone=timezone,
        ))

    db.commit()
    return user.id


def add_rule(db, provider_id, day_of_week, start, end, buffer_minutes=0):
    db.add(WeeklyAvailabilityRule(
        id=uuid.uuid4(),
        provider_id=provider_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        buffer_minutes=buffer_minutes,
    ))
    db.commit()


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema per test"""

    def setUp(self):
        Base.metadata.create_all(bind=engine)
        self.db = TestingSessionLocal()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=engine)

    def get_user(self, user_id):
        return self.db.query(User).filter(User.id == user_id).one()
