# ============================================================================
# rivo_scheduling/services/availability/availability_service.py
# Provider-owned weekly rules and unavailability blocks
# ============================================================================
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List
from uuid import UUID
import logging
import uuid

from sqlalchemy.orm import Session

from rivo_scheduling.config.settings import get_settings
from rivo_scheduling.core.exceptions import NotFound, ValidationError
from rivo_scheduling.models import UnavailabilityBlock, WeeklyAvailabilityRule
from rivo_scheduling.services.scheduling.intervals import as_utc
from rivo_scheduling.services.store import store_errors

settings = get_settings()
logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class AvailabilityService:
    """Weekly availability and unavailability, always scoped to the calling provider"""

    # ------------------------------------------------------------------
    # Weekly rules
    # ------------------------------------------------------------------

    @staticmethod
    def validate_weekly_rules(rules: Iterable[Any]) -> None:
        """
        Reject a rule set before anything is deleted.

        Each rule needs day_of_week in 0..6, start_time < end_time and a buffer
        in [0, MAX_BUFFER_MINUTES]; rules of the same day may not overlap.
        """
        by_day = defaultdict(list)

        for index, rule in enumerate(rules):
            if rule.day_of_week is None or not 0 <= rule.day_of_week <= 6:
                raise ValidationError(f"Rule {index}: day_of_week must be between 0 (Sunday) and 6 (Saturday)")
            if rule.start_time >= rule.end_time:
                raise ValidationError(f"Rule {index}: start_time must be before end_time")
            buffer_minutes = rule.buffer_minutes or 0
            if buffer_minutes < 0 or buffer_minutes > settings.MAX_BUFFER_MINUTES:
                raise ValidationError(
                    f"Rule {index}: buffer_minutes must be between 0 and {settings.MAX_BUFFER_MINUTES}"
                )
            by_day[rule.day_of_week].append(rule)

        for day, day_rules in by_day.items():
            day_rules = sorted(day_rules, key=lambda r: r.start_time)
            for previous, current in zip(day_rules, day_rules[1:]):
                if current.start_time < previous.end_time:
                    raise ValidationError(
                        f"Overlapping availability on {DAY_NAMES[day]}: "
                        f"{previous.start_time.strftime('%H:%M')}-{previous.end_time.strftime('%H:%M')} and "
                        f"{current.start_time.strftime('%H:%M')}-{current.end_time.strftime('%H:%M')}"
                    )

    @staticmethod
    def list_weekly_availability(db: Session, provider_id: UUID) -> List[WeeklyAvailabilityRule]:
        with store_errors(db, "fetch availability"):
            return db.query(WeeklyAvailabilityRule).filter(
                WeeklyAvailabilityRule.provider_id == provider_id
            ).order_by(
                WeeklyAvailabilityRule.day_of_week,
                WeeklyAvailabilityRule.start_time,
            ).all()

    @staticmethod
    def set_weekly_availability(db: Session, provider_id: UUID, rules: List[Any]) -> List[WeeklyAvailabilityRule]:
        """
        Replace the provider's whole week.

        Delete and insert share one transaction, so a failure keeps the old rules.
        An empty list clears the week.
        """
        AvailabilityService.validate_weekly_rules(rules)

        new_rules = [
            WeeklyAvailabilityRule(
                id=uuid.uuid4(),
                provider_id=provider_id,
                day_of_week=rule.day_of_week,
                start_time=rule.start_time,
                end_time=rule.end_time,
                buffer_minutes=rule.buffer_minutes or 0,
            )
            for rule in rules
        ]

        with store_errors(db, "update availability"):
            deleted = db.query(WeeklyAvailabilityRule).filter(
                WeeklyAvailabilityRule.provider_id == provider_id
            ).delete(synchronize_session=False)

            db.add_all(new_rules)
            db.commit()

        logger.info(
            f"Replaced availability for provider {provider_id}: "
            f"{deleted} rule(s) removed, {len(new_rules)} added"
        )
        return AvailabilityService.list_weekly_availability(db, provider_id)

    # ------------------------------------------------------------------
    # Unavailability blocks
    # ------------------------------------------------------------------

    @staticmethod
    def list_unavailability(db: Session, provider_id: UUID, include_past: bool = True) -> List[UnavailabilityBlock]:
        with store_errors(db, "fetch unavailability"):
            query = db.query(UnavailabilityBlock).filter(
                UnavailabilityBlock.provider_id == provider_id
            )
            if not include_past:
                query = query.filter(UnavailabilityBlock.end_ts > datetime.now(timezone.utc))
            return query.order_by(UnavailabilityBlock.start_ts).all()

    @staticmethod
    def add_unavailability(
            db: Session,
            provider_id: UUID,
            start_ts: datetime,
            end_ts: datetime,
            reason: str = None
    ) -> UnavailabilityBlock:
        """Create a block; timestamps must carry an offset and start before they end"""
        if start_ts.tzinfo is None or end_ts.tzinfo is None:
            raise ValidationError("start_ts and end_ts must include a UTC offset")
        if as_utc(end_ts) <= as_utc(start_ts):
            raise ValidationError("End time must be after start time")

        block = UnavailabilityBlock(
            id=uuid.uuid4(),
            provider_id=provider_id,
            start_ts=as_utc(start_ts),
            end_ts=as_utc(end_ts),
            reason=(reason or "").strip() or None,
        )

        with store_errors(db, "create unavailability block"):
            db.add(block)
            db.commit()
            db.refresh(block)

        logger.info(f"Provider {provider_id} added unavailability {block.id}")
        return block

    @staticmethod
    def remove_unavailability(db: Session, provider_id: UUID, block_id: UUID) -> None:
        """Delete one block owned by the provider; NotFound when nothing matched"""
        with store_errors(db, "delete unavailability block"):
            deleted = db.query(UnavailabilityBlock).filter(
                UnavailabilityBlock.id == block_id,
                UnavailabilityBlock.provider_id == provider_id,
            ).delete(synchronize_session=False)
            db.commit()

        if not deleted:
            raise NotFound("Unavailability block not found")

        logger.info(f"Provider {provider_id} removed unavailability {block_id}")

    @staticmethod
    def serialize_block(block: UnavailabilityBlock) -> Dict[str, Any]:
        return {
            "id": str(block.id),
            "provider_id": str(block.provider_id),
            "start_ts": as_utc(block.start_ts).isoformat(),
            "end_ts": as_utc(block.end_ts).isoformat(),
            "reason": block.reason,
        }
