"""
Interval and timezone helpers for slot computation.

Every interval handled here is half-open [start, end) and expressed in
timezone-aware UTC. Provider-local wall-clock values are converted at the
edge through localize_window / local_day_bounds.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Iterator, List, NamedTuple
import logging

import pytz

logger = logging.getLogger(__name__)


class Interval(NamedTuple):
    start: datetime
    end: datetime

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def expand(self, minutes: int) -> "Interval":
        pad = timedelta(minutes=minutes)
        return Interval(self.start - pad, self.end + pad)

    def clip(self, bounds: "Interval"):
        """Intersection with bounds, or None when they don't overlap"""
        start = max(self.start, bounds.start)
        end = min(self.end, bounds.end)
        if start >= end:
            return None
        return Interval(start, end)


def resolve_timezone(tz_name: str):
    """
    Resolve an IANA timezone name once per request.
    Unknown names fall back to UTC so a bad profile value can't break slot listing.
    """
    try:
        return pytz.timezone(tz_name or "UTC")
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone '{tz_name}', using UTC")
        return pytz.UTC


def as_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values (e.g. read back from SQLite) are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sunday_based_weekday(day: date) -> int:
    """0=Sunday ... 6=Saturday"""
    return (day.weekday() + 1) % 7


def _localize(tz, value: datetime, first: bool) -> datetime:
    """
    Attach tz to a wall-clock value.
    A repeated time (DST end) takes its first or last occurrence; a skipped
    time (DST start) moves forward past the gap.
    """
    try:
        return tz.localize(value, is_dst=None)
    except pytz.AmbiguousTimeError:
        return tz.localize(value, is_dst=first)
    except pytz.NonExistentTimeError:
        return tz.localize(value, is_dst=False)


def localize_window(day: date, start: time, end: time, tz) -> Interval:
    """Turn a local wall-clock window on `day` into an absolute UTC interval"""
    # Widest reading: a window touching the repeated hour keeps both copies of it
    start_dt = _localize(tz, datetime.combine(day, start), first=True)
    end_dt = _localize(tz, datetime.combine(day, end), first=False)
    return Interval(as_utc(start_dt), as_utc(end_dt))


def local_day_bounds(day: date, tz) -> Interval:
    """The whole local day [00:00, next 00:00) in UTC"""
    start_dt = tz.localize(datetime.combine(day, time.min))
    end_dt = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return Interval(as_utc(start_dt), as_utc(end_dt))


def iter_local_dates(bounds: Interval, tz) -> Iterator[date]:
    """Every local calendar date touched by bounds"""
    current = bounds.start.astimezone(tz).date()
    # end is exclusive; step back a microsecond to stay on the last touched day
    last = (bounds.end - timedelta(microseconds=1)).astimezone(tz).date()
    while current <= last:
        yield current
        current += timedelta(days=1)


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Union of intervals; overlapping or touching intervals are joined"""
    ordered = sorted(intervals)
    if not ordered:
        return []

    merged = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = Interval(last.start, current.end)
        else:
            merged.append(current)

    return merged


def subtract_interval(interval: Interval, block: Interval) -> List[Interval]:
    """interval minus block: zero, one or two pieces"""
    if not interval.overlaps(block):
        return [interval]

    pieces = []
    if block.start > interval.start:
        pieces.append(Interval(interval.start, block.start))
    if block.end < interval.end:
        pieces.append(Interval(block.end, interval.end))
    return pieces


def subtract_all(interval: Interval, blocks: Iterable[Interval]) -> List[Interval]:
    """interval minus every block, returned in chronological order"""
    free = [interval]
    for block in merge_intervals(blocks):
        if block.start >= interval.end:
            break
        next_free = []
        for piece in free:
            next_free.extend(subtract_interval(piece, block))
        free = next_free
    return free
