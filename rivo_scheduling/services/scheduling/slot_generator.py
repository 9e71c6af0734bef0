"""
Slot Generation

Produces the bookable slots of a provider for a time range:

    weekly rules (per local day, merged)
      -> clipped to the requested range
      -> minus unavailability blocks and opted-in holidays
      -> minus active bookings widened by their buffer
      -> minus slots whose own buffer would reach an active booking
      -> cut into consecutive fixed-length slots

Slot boundaries are laid on a grid anchored at the start of each merged
availability window. A booking or block therefore removes the slots it
touches without shifting the remaining slots of the window, and the same
slot is produced whether the window is queried as a whole or only over that
slot's own [start, end) (which is how booking admission re-checks it).

compute_slots is pure: callers load rows and pass them in.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from rivo_scheduling.config.settings import get_settings
from rivo_scheduling.core.exceptions import InvalidDuration, InvalidRange, ValidationError
from rivo_scheduling.services.scheduling.intervals import (
    Interval,
    as_utc,
    iter_local_dates,
    local_day_bounds,
    localize_window,
    merge_intervals,
    subtract_all,
    sunday_based_weekday,
)

settings = get_settings()


@dataclass(frozen=True)
class Slot:
    provider_id: Any
    slot_start: datetime
    slot_end: datetime

    def to_dict(self) -> Dict[str, str]:
        return {
            "slot_start": self.slot_start.isoformat(),
            "slot_end": self.slot_end.isoformat(),
        }


def validate_slot_request(range_start: datetime, range_end: datetime, slot_minutes: int) -> Interval:
    """
    Check a slot query and return it as a UTC interval.

    Raises:
        InvalidRange: to <= from, or the range is longer than MAX_SLOT_RANGE_DAYS
        InvalidDuration: slot_minutes outside [SLOT_MIN_MINUTES, SLOT_MAX_MINUTES]
    """
    if range_start.tzinfo is None or range_end.tzinfo is None:
        raise ValidationError("Range boundaries must include a UTC offset")

    bounds = Interval(as_utc(range_start), as_utc(range_end))
    if bounds.end <= bounds.start:
        raise InvalidRange("To date must be after from date")
    if bounds.end - bounds.start > timedelta(days=settings.MAX_SLOT_RANGE_DAYS):
        raise InvalidRange(f"Range cannot exceed {settings.MAX_SLOT_RANGE_DAYS} days")

    if not isinstance(slot_minutes, int) or isinstance(slot_minutes, bool):
        raise InvalidDuration("Slot duration must be a whole number of minutes")
    if slot_minutes < settings.SLOT_MIN_MINUTES or slot_minutes > settings.SLOT_MAX_MINUTES:
        raise InvalidDuration(
            f"Slot duration must be between {settings.SLOT_MIN_MINUTES} "
            f"and {settings.SLOT_MAX_MINUTES} minutes"
        )

    return bounds


def availability_windows(rules: Sequence[Any], day: date, tz) -> List[Interval]:
    """Merged UTC windows of the weekly rules that apply to a local day"""
    weekday = sunday_based_weekday(day)
    windows = [
        localize_window(day, rule.start_time, rule.end_time, tz)
        for rule in rules
        if rule.day_of_week == weekday and rule.start_time < rule.end_time
    ]
    # Overlapping rules for one day are tolerated here by taking their union
    return merge_intervals(windows)


def busy_intervals(
        blocks: Iterable[Any],
        bookings: Iterable[Any],
        holiday_dates: Iterable[date],
        tz
) -> List[Interval]:
    """Everything that removes time from the calendar, merged"""
    busy = [Interval(as_utc(b.start_ts), as_utc(b.end_ts)) for b in blocks]
    busy.extend(
        Interval(as_utc(b.start_ts), as_utc(b.end_ts)).expand(b.buffer_minutes or 0)
        for b in bookings
    )
    busy.extend(local_day_bounds(day, tz) for day in holiday_dates)
    return merge_intervals(busy)


def slot_buffer(rules: Sequence[Any], slot: Interval, tz) -> int:
    """Buffer of the weekly rule whose window holds the slot (largest if several do)"""
    local_day = slot.start.astimezone(tz).date()
    weekday = sunday_based_weekday(local_day)
    buffers = [
        rule.buffer_minutes or 0
        for rule in rules
        if rule.day_of_week == weekday
        and localize_window(local_day, rule.start_time, rule.end_time, tz).overlaps(slot)
    ]
    return max(buffers) if buffers else 0


def _cut_slots(free: Interval, anchor: datetime, step: timedelta) -> List[Interval]:
    """Grid-aligned slots of length `step` fully inside `free`"""
    offset = free.start - anchor
    # first grid point at or after free.start
    steps = -(-offset // step) if offset > timedelta(0) else 0
    slot_start = anchor + steps * step

    slots = []
    while slot_start + step <= free.end:
        slots.append(Interval(slot_start, slot_start + step))
        slot_start += step
    return slots


def compute_slots(
        provider_id: Any,
        rules: Sequence[Any],
        blocks: Iterable[Any],
        bookings: Iterable[Any],
        range_start: datetime,
        range_end: datetime,
        slot_minutes: int,
        tz,
        holiday_dates: Optional[Iterable[date]] = None,
) -> List[Slot]:
    """
    Bookable slots for one provider.

    Args:
        provider_id: owner of the slots (copied onto each Slot)
        rules: weekly rules (day_of_week, start_time, end_time, buffer_minutes)
        blocks: unavailability blocks (start_ts, end_ts)
        bookings: active bookings (start_ts, end_ts, buffer_minutes)
        range_start: inclusive, timezone-aware
        range_end: exclusive, timezone-aware
        slot_minutes: slot length
        tz: provider timezone (pytz), resolved once by the caller
        holiday_dates: local dates the provider takes off entirely

    Returns:
        Slots ordered by start; empty when nothing is free
    """
    bounds = validate_slot_request(range_start, range_end, slot_minutes)
    if not rules:
        return []

    step = timedelta(minutes=slot_minutes)
    bookings = list(bookings)
    busy = busy_intervals(blocks, bookings, holiday_dates or [], tz)
    # A slot booked now carries its rule's buffer, which must not reach an existing booking
    booked = [Interval(as_utc(b.start_ts), as_utc(b.end_ts)) for b in bookings]

    slots = []
    for day in iter_local_dates(bounds, tz):
        for window in availability_windows(rules, day, tz):
            clipped = window.clip(bounds)
            if clipped is None:
                continue

            for free in subtract_all(clipped, busy):
                for piece in _cut_slots(free, window.start, step):
                    own_buffer = slot_buffer(rules, piece, tz) if booked else 0
                    if own_buffer and any(piece.expand(own_buffer).overlaps(b) for b in booked):
                        continue
                    slots.append(Slot(provider_id, piece.start, piece.end))

    # Windows of adjacent local days never overlap, but DST days can reorder them
    slots.sort(key=lambda s: s.slot_start)
    return slots


def group_slots_by_date(slots: Iterable[Slot], tz) -> Dict[str, List[Dict[str, str]]]:
    """Slots keyed by provider-local date (YYYY-MM-DD) for calendar UIs"""
    grouped: Dict[str, List[Dict[str, str]]] = {}
    for slot in slots:
        key = slot.slot_start.astimezone(tz).date().isoformat()
        grouped.setdefault(key, []).append(slot.to_dict())
    return grouped
