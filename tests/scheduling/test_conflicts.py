#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import pytest

from roombook.scheduling.conflicts import find_conflicts, intervals_overlap, overlaps
from roombook.scheduling.models import Booking
from tests.utils import local_booking


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("09:30", "10:30", True),
        ("08:30", "09:30", True),
        ("08:00", "11:00", True),
        ("09:15", "09:45", True),
        ("09:00", "10:00", True),
        ("10:00", "11:00", False),
        ("08:00", "09:00", False),
        ("11:00", "12:00", False),
    ],
)
def test_intervals_overlap(morning_booking: Booking, start, end, expected):
    candidate = local_booking(room=0, start=start, end=end)
    assert intervals_overlap(candidate.interval, morning_booking.interval) is expected
    assert intervals_overlap(morning_booking.interval, candidate.interval) is expected


def test_find_conflicts_same_room(morning_booking: Booking):
    candidate = local_booking(room=0, start="09:30", end="10:30")
    assert find_conflicts(
        0, candidate.start, candidate.end, [morning_booking]
    ) == [morning_booking]


def test_adjacent_bookings_do_not_conflict(morning_booking: Booking):
    candidate = local_booking(room=0, start="10:00", end="11:00")
    assert not overlaps(0, candidate.start, candidate.end, [morning_booking])


def test_other_rooms_are_ignored(morning_booking: Booking):
    candidate = local_booking(room=1, start="09:00", end="10:00")
    assert not overlaps(1, candidate.start, candidate.end, [morning_booking])


def test_edited_booking_does_not_conflict_with_itself(morning_booking: Booking):
    moved = morning_booking.replace(
        start=local_booking(0, "09:30", "10:30").start,
        end=local_booking(0, "09:30", "10:30").end,
    )
    assert overlaps(0, moved.start, moved.end, [morning_booking])
    assert not overlaps(
        0, moved.start, moved.end, [morning_booking], exclude_id=moved.booking_id
    )


def test_exclude_id_keeps_other_conflicts(morning_booking: Booking):
    other = local_booking(room=0, start="10:00", end="11:00", person="Luis")
    moved = morning_booking.replace(
        start=local_booking(0, "09:30", "10:30").start,
        end=local_booking(0, "09:30", "10:30").end,
    )
    conflicts = find_conflicts(
        0,
        moved.start,
        moved.end,
        [morning_booking, other],
        exclude_id=morning_booking.booking_id,
    )
    assert conflicts == [other]


def test_no_existing_bookings():
    candidate = local_booking(room=0, start="09:00", end="10:00")
    assert find_conflicts(0, candidate.start, candidate.end, []) == []
