"""
Tests for services/scheduling/slot_generator.py

The generator is pure, so rules/blocks/bookings are plain namespaces here.
"""
import unittest
from datetime import datetime, time, timedelta, timezone
from types import SimpleNamespace

from rivo_scheduling.core.exceptions import InvalidDuration, InvalidRange, ValidationError
from rivo_scheduling.services.scheduling.slot_generator import compute_slots, group_slots_by_date

from support import MONDAY, NEW_YORK, local

PROVIDER = "provider-1"


def rule(day_of_week=1, start=time(9), end=time(17), buffer_minutes=0):
    return SimpleNamespace(day_of_week=day_of_week, start_time=start, end_time=end, buffer_minutes=buffer_minutes)


def block(start, end):
    return SimpleNamespace(start_ts=start, end_ts=end)


def booking(start, end, buffer_minutes=0):
    return SimpleNamespace(start_ts=start, end_ts=end, buffer_minutes=buffer_minutes)


def monday_slots(rules=None, blocks=(), bookings=(), slot_minutes=30, holiday_dates=None):
    return compute_slots(
        provider_id=PROVIDER,
        rules=[rule()] if rules is None else rules,
        blocks=list(blocks),
        bookings=list(bookings),
        range_start=local(MONDAY, 0),
        range_end=local(MONDAY + timedelta(days=1), 0),
        slot_minutes=slot_minutes,
        tz=NEW_YORK,
        holiday_dates=holiday_dates,
    )


def starts(slots):
    return [s.slot_start.astimezone(NEW_YORK).strftime("%H:%M") for s in slots]


class TestSlotScenarios(unittest.TestCase):

    def test_full_open_day(self):
        """Monday 09:00-17:00 in 30 minute slots gives 16 consecutive slots"""
        slots = monday_slots()

        self.assertEqual(len(slots), 16)
        self.assertEqual(slots[0].slot_start, local(MONDAY, 9))
        self.assertEqual(slots[-1].slot_end, local(MONDAY, 17))
        for previous, current in zip(slots, slots[1:]):
            self.assertEqual(previous.slot_end, current.slot_start)

    def test_booking_buffer_removes_neighbours_only(self):
        """A 10:00 booking with a 15 minute buffer also takes the 09:30 and 10:30 slots"""
        baseline = starts(monday_slots())
        slots = starts(monday_slots(bookings=[booking(local(MONDAY, 10), local(MONDAY, 10, 30), 15)]))

        for missing in ("09:30", "10:00", "10:30"):
            self.assertNotIn(missing, slots)
        self.assertEqual(slots, [s for s in baseline if s not in ("09:30", "10:00", "10:30")])

    def test_own_buffer_keeps_slot_away_from_booking(self):
        """A slot under a 30 minute rule buffer can't start right after a booking"""
        rules = [rule(end=time(12)), rule(start=time(12), buffer_minutes=30)]
        slots = starts(monday_slots(rules=rules, bookings=[booking(local(MONDAY, 11, 30), local(MONDAY, 12))]))

        self.assertNotIn("11:30", slots)
        self.assertNotIn("12:00", slots)
        self.assertIn("11:00", slots)
        self.assertIn("12:30", slots)

    def test_unavailability_block(self):
        slots = monday_slots(blocks=[block(local(MONDAY, 12), local(MONDAY, 13))])
        times = starts(slots)

        self.assertNotIn("12:00", times)
        self.assertNotIn("12:30", times)
        self.assertIn("11:30", times)
        self.assertEqual(times[times.index("11:30") + 1], "13:00")
        self.assertEqual(len(slots), 14)

    def test_cancelled_bookings_are_not_passed_in(self):
        # Only active bookings are handed to the generator; none means the full day
        self.assertEqual(len(monday_slots(bookings=[])), 16)


class TestSlotProperties(unittest.TestCase):

    def test_no_rules_yields_nothing(self):
        self.assertEqual(monday_slots(rules=[]), [])

    def test_rule_for_another_day_yields_nothing(self):
        self.assertEqual(monday_slots(rules=[rule(day_of_week=2)]), [])

    def test_every_slot_has_exact_length_and_stays_inside_window(self):
        slots = monday_slots(
            rules=[rule(start=time(8), end=time(11, 50)), rule(start=time(13), end=time(18))],
            slot_minutes=45,
        )
        windows = [(local(MONDAY, 8), local(MONDAY, 11, 50)), (local(MONDAY, 13), local(MONDAY, 18))]

        self.assertTrue(slots)
        for slot in slots:
            self.assertEqual(slot.slot_end - slot.slot_start, timedelta(minutes=45))
            self.assertTrue(any(start <= slot.slot_start and slot.slot_end <= end for start, end in windows))

    def test_slots_never_overlap_bookings_or_blocks(self):
        busy = [
            (local(MONDAY, 9, 15), local(MONDAY, 9, 45)),
            (local(MONDAY, 14), local(MONDAY, 15, 30)),
        ]
        slots = monday_slots(
            blocks=[block(*busy[1])],
            bookings=[booking(*busy[0])],
            slot_minutes=15,
        )

        for slot in slots:
            for start, end in busy:
                self.assertFalse(slot.slot_start < end and start < slot.slot_end)

    def test_overlapping_rules_are_merged(self):
        slots = monday_slots(rules=[rule(start=time(9), end=time(12)), rule(start=time(11), end=time(13))])
        self.assertEqual(len(slots), 8)

    def test_no_partial_slot_at_window_end(self):
        slots = monday_slots(rules=[rule(start=time(9), end=time(10, 20))])
        self.assertEqual(starts(slots), ["09:00", "09:30"])

    def test_range_clips_the_window(self):
        slots = compute_slots(
            provider_id=PROVIDER,
            rules=[rule()],
            blocks=[],
            bookings=[],
            range_start=local(MONDAY, 10),
            range_end=local(MONDAY, 11),
            slot_minutes=30,
            tz=NEW_YORK,
        )
        self.assertEqual(starts(slots), ["10:00", "10:30"])

    def test_narrow_range_keeps_the_window_grid(self):
        """Querying a misaligned interval yields nothing instead of a shifted slot"""
        slots = compute_slots(
            provider_id=PROVIDER,
            rules=[rule()],
            blocks=[],
            bookings=[],
            range_start=local(MONDAY, 9, 10),
            range_end=local(MONDAY, 9, 40),
            slot_minutes=30,
            tz=NEW_YORK,
        )
        self.assertEqual(slots, [])

    def test_is_idempotent(self):
        self.assertEqual(monday_slots(), monday_slots())

    def test_holiday_removes_the_whole_local_day(self):
        self.assertEqual(monday_slots(holiday_dates=[MONDAY]), [])

    def test_multi_day_range_is_chronological(self):
        slots = compute_slots(
            provider_id=PROVIDER,
            rules=[rule(day_of_week=d) for d in range(1, 6)],
            blocks=[],
            bookings=[],
            range_start=local(MONDAY, 0),
            range_end=local(MONDAY + timedelta(days=7), 0),
            slot_minutes=60,
            tz=NEW_YORK,
        )
        self.assertEqual(len(slots), 5 * 8)
        self.assertEqual(slots, sorted(slots, key=lambda s: s.slot_start))

    def test_dst_change_keeps_local_hours(self):
        """09:00 New York is 14:00 UTC before the March change and 13:00 UTC after"""
        slots = compute_slots(
            provider_id=PROVIDER,
            rules=[rule()],
            blocks=[],
            bookings=[],
            range_start=datetime(2030, 3, 4, tzinfo=timezone.utc),
            range_end=datetime(2030, 3, 12, tzinfo=timezone.utc),
            slot_minutes=60,
            tz=NEW_YORK,
        )
        firsts = {}
        for slot in slots:
            firsts.setdefault(slot.slot_start.date(), slot.slot_start)

        self.assertEqual(firsts[datetime(2030, 3, 4).date()].hour, 14)
        self.assertEqual(firsts[datetime(2030, 3, 11).date()].hour, 13)

    def test_group_by_local_date(self):
        grouped = group_slots_by_date(monday_slots(), NEW_YORK)
        self.assertEqual(list(grouped), ["2030-01-07"])
        self.assertEqual(len(grouped["2030-01-07"]), 16)
        self.assertEqual(grouped["2030-01-07"][0]["slot_start"], "2030-01-07T14:00:00+00:00")


class TestSlotRequestValidation(unittest.TestCase):

    def test_reversed_range(self):
        with self.assertRaises(InvalidRange):
            compute_slots(PROVIDER, [rule()], [], [], local(MONDAY, 10), local(MONDAY, 9), 30, NEW_YORK)

    def test_empty_range(self):
        with self.assertRaises(InvalidRange):
            compute_slots(PROVIDER, [rule()], [], [], local(MONDAY, 10), local(MONDAY, 10), 30, NEW_YORK)

    def test_range_too_long(self):
        with self.assertRaises(InvalidRange):
            compute_slots(
                PROVIDER, [rule()], [], [],
                local(MONDAY, 0), local(MONDAY + timedelta(days=90), 0), 30, NEW_YORK
            )

    def test_duration_bounds(self):
        for minutes in (0, 5, 14, 481):
            with self.assertRaises(InvalidDuration):
                monday_slots(slot_minutes=minutes)

    def test_invalid_errors_are_validation_errors(self):
        with self.assertRaises(ValidationError):
            monday_slots(slot_minutes=1000)

    def test_naive_range_rejected(self):
        with self.assertRaises(ValidationError):
            compute_slots(
                PROVIDER, [rule()], [], [],
                datetime(2030, 1, 7, 9), datetime(2030, 1, 7, 17), 30, NEW_YORK
            )


if __name__ == '__main__':
    unittest.main()
