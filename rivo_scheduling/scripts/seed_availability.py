# ===== rivo_scheduling/scripts/seed_availability.py =====
"""
Seed platform holidays (current and next year) and, optionally, a demo
provider with Monday-Friday 9-5 availability.

    python -m rivo_scheduling.scripts.seed_availability [--demo-provider EMAIL]
"""
import argparse
import logging
import uuid
from datetime import date, time, timedelta
from typing import List, Tuple

from rivo_scheduling.config.database import SessionLocal
from rivo_scheduling.models import Holiday, ProviderProfile, User, UserRole, WeeklyAvailabilityRule
from rivo_scheduling.utils.my_logging import setup_logging

logger = logging.getLogger(__name__)


def nth_weekday(year: int, month: int, weekday: int, n: int) -> date:
    """n-th given weekday (Monday=0) of a month; n=-1 for the last one"""
    if n > 0:
        first = date(year, month, 1)
        return first + timedelta(days=(weekday - first.weekday()) % 7 + 7 * (n - 1))

    next_month = date(year + month // 12, month % 12 + 1, 1)
    last = next_month - timedelta(days=1)
    return last - timedelta(days=(last.weekday() - weekday) % 7)


def us_holidays(year: int) -> List[Tuple[date, str]]:
    return [
        (date(year, 1, 1), "New Year's Day"),
        (nth_weekday(year, 1, 0, 3), "Martin Luther King Jr. Day"),
        (nth_weekday(year, 2, 0, 3), "Presidents' Day"),
        (nth_weekday(year, 5, 0, -1), "Memorial Day"),
        (date(year, 6, 19), "Juneteenth"),
        (date(year, 7, 4), "Independence Day"),
        (nth_weekday(year, 9, 0, 1), "Labor Day"),
        (nth_weekday(year, 11, 3, 4), "Thanksgiving Day"),
        (date(year, 12, 24), "Christmas Eve"),
        (date(year, 12, 25), "Christmas Day"),
        (date(year, 12, 31), "New Year's Eve"),
    ]


def seed_holidays(db, today: date = None) -> int:
    """Insert missing holidays; existing (date, name) pairs are left alone"""
    today = today or date.today()
    created = 0

    for year in (today.year, today.year + 1):
        for day, name in us_holidays(year):
            exists = db.query(Holiday).filter(Holiday.date == day, Holiday.name == name).first()
            if not exists:
                db.add(Holiday(id=uuid.uuid4(), date=day, name=name))
                created += 1

    db.commit()
    return created


def seed_demo_provider(db, email: str) -> User:
    """Provider open Monday-Friday 09:00-17:00 with a 15 minute buffer"""
    provider = db.query(User).filter(User.email == email).first()
    if provider is None:
        provider = User(id=uuid.uuid4(), email=email, full_name="Demo Provider", role=UserRole.PROVIDER)
        db.add(provider)
        db.flush()
        db.add(ProviderProfile(
            user_id=provider.id,
            business_name="Demo Home Services",
            full_name="Demo Provider",
            email=email,
            timezone="America/New_York",
        ))

    db.query(WeeklyAvailabilityRule).filter(
        WeeklyAvailabilityRule.provider_id == provider.id
    ).delete(synchronize_session=False)

    db.add_all([
        WeeklyAvailabilityRule(
            id=uuid.uuid4(),
            provider_id=provider.id,
            day_of_week=day,  # 1=Monday ... 5=Friday
            start_time=time(9, 0),
            end_time=time(17, 0),
            buffer_minutes=15,
        )
        for day in range(1, 6)
    ])
    db.commit()
    return provider


def main():
    parser = argparse.ArgumentParser(description="Seed holidays and demo availability")
    parser.add_argument("--demo-provider", metavar="EMAIL", help="Create or reset a demo provider")
    args = parser.parse_args()

    setup_logging()
    db = SessionLocal()

    try:
        created = seed_holidays(db)
        logger.info(f"Seeded {created} holiday(s)")

        if args.demo_provider:
            provider = seed_demo_provider(db, args.demo_provider)
            logger.info(f"Demo provider {provider.email} ({provider.id}) ready")

    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
