#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Detection of double bookings against a cached schedule.

The checks here only see the bookings they are handed. Two clients working
from stale snapshots can both pass them for overlapping intervals, so the
store remains the only place the invariant could be enforced."""

import datetime
from collections.abc import Iterable

from roombook.scheduling.models import Booking, BookingId
from roombook.scheduling.time_utils import TimeInterval


def intervals_overlap(interval_1: TimeInterval, interval_2: TimeInterval) -> bool:
    """Check if two half-open intervals share at least one instant. Intervals
    that only touch (one ends when the other starts) do not overlap."""
    return interval_1.start < interval_2.end and interval_2.start < interval_1.end


def find_conflicts(
    room: int,
    start: datetime.datetime,
    end: datetime.datetime,
    existing: Iterable[Booking],
    exclude_id: BookingId | None = None,
) -> list[Booking]:
    """Return the bookings of `room` overlapping `[start, end)`.

    Parameters
    ----------
    room
        The room the candidate interval is for. Bookings in other rooms
        never conflict.
    start, end
        The candidate interval.
    existing
        The bookings to check against, typically a cached `DaySnapshot`.
    exclude_id
        When editing, the identifier of the booking being replaced, whose
        previous instance must not conflict with its new one.
    """
    candidate = TimeInterval(start=start, end=end)
    return [
        booking
        for booking in existing
        if booking.room == room
        and booking.booking_id != exclude_id
        and intervals_overlap(candidate, booking.interval)
    ]


def overlaps(
    room: int,
    start: datetime.datetime,
    end: datetime.datetime,
    existing: Iterable[Booking],
    exclude_id: BookingId | None = None,
) -> bool:
    return bool(find_conflicts(room, start, end, existing, exclude_id=exclude_id))
