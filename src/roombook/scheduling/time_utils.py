#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""A light wrapper around the `datetime` library for converting between the
wall-clock times users book rooms in and the absolute instants bookings are
stored as, plus the slot grid a day is divided into.

All stored and compared times are timezone-aware UTC datetimes. Naive datetimes
represent wall-clock readings in the configured zone and only exist at the
boundary with the user."""

import datetime
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Self
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz as dateutil_tz
from dateutil.relativedelta import relativedelta

from roombook.scheduling.exceptions import ConfigurationError, InvalidRangeError

logger = logging.getLogger(__name__)

UTC = datetime.timezone.utc

Zone = ZoneInfo | str
TimeGetter = Callable[[], datetime.datetime]

TimeUnits = Enum("TimeUnits", ["Hours", "Minutes", "Days"])
"""Enumerations used for expressing booking durations in specific time units"""


def utc_now() -> datetime.datetime:
    """Return the current instant, in UTC."""
    return datetime.datetime.now(UTC)


class Duration(NamedTuple):
    """A time unit, for representing booking durations.

    Parameters
    ----------
    number
        A float or integer representing the length of time.
    unit
        The unit of time used to measure the duration.
    """

    number: int | float
    unit: TimeUnits

    def to_minutes(self) -> float:
        """Convert the Duration to minutes."""
        if self.unit == TimeUnits.Hours:
            return float(self.number * 60)
        elif self.unit == TimeUnits.Minutes:
            return float(self.number)
        elif self.unit == TimeUnits.Days:
            return float(self.number * 24 * 60)
        else:
            raise ValueError(f"Unsupported time unit: {self.unit}")

    def __eq__(self, other: Self) -> bool:
        return self.to_minutes() == other.to_minutes()

    def __hash__(self) -> int:
        return hash(self.to_minutes())


def cast_to_timedelta(duration: Duration) -> datetime.timedelta:
    return datetime.timedelta(minutes=duration.to_minutes())


class TimeInterval(NamedTuple):
    """Represents the half-open interval `[start, end)` between two time points."""

    start: datetime.datetime
    end: datetime.datetime

    def contains(self, dt: datetime.datetime) -> bool:
        """Check if a given datetime falls within this time interval. The end
        point is excluded."""
        return self.start <= dt < self.end

    @property
    def duration(self) -> Duration:
        minutes = (self.end - self.start).total_seconds() / 60
        return Duration(number=minutes, unit=TimeUnits.Minutes)


def get_zone(zone: Zone) -> ZoneInfo:
    """Resolve an IANA timezone name to a `ZoneInfo`.

    Raises
    ------
    ConfigurationError if the zone is unknown.
    """
    if isinstance(zone, ZoneInfo):
        return zone
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone '{zone}'") from e


def as_utc(dt: datetime.datetime) -> datetime.datetime:
    """Normalise an aware datetime to UTC. Naive values are rejected because
    they do not identify an instant."""
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError(f"Expected a timezone-aware datetime, got naive {dt}")
    return dt.astimezone(UTC)


def to_local(instant: datetime.datetime, zone: Zone) -> datetime.datetime:
    """Return the (naive) wall-clock reading of `instant` in `zone`."""
    return as_utc(instant).astimezone(get_zone(zone)).replace(tzinfo=None)


def _end_of_gap(local: datetime.datetime, zone: ZoneInfo) -> datetime.datetime:
    """Find the transition instant that skips over the nonexistent wall-clock
    time `local`, ie the earliest instant whose local reading is not before
    `local`."""
    candidates = [
        local.replace(tzinfo=zone, fold=fold).astimezone(UTC) for fold in (0, 1)
    ]
    lo, hi = min(candidates), max(candidates)
    # to_local(lo) < local <= to_local(hi); bisect on whole seconds
    lo_s, hi_s = 0, int((hi - lo).total_seconds())
    while hi_s - lo_s > 1:
        mid_s = (lo_s + hi_s) // 2
        if to_local(lo + datetime.timedelta(seconds=mid_s), zone) >= local:
            hi_s = mid_s
        else:
            lo_s = mid_s
    return lo + datetime.timedelta(seconds=hi_s)


def to_absolute(local: datetime.datetime, zone: Zone) -> datetime.datetime:
    """Convert a wall-clock time in `zone` to a UTC instant.

    Notes
    -----
    1. Wall-clock times skipped by a forward DST transition resolve to the
    first valid instant at or after them, which is the transition itself.
    2. Wall-clock times repeated by a backward DST transition resolve to the
    earlier of the two instants.
    3. Aware datetimes already identify an instant and are only normalised
    to UTC.
    """
    if local.tzinfo is not None:
        return as_utc(local)
    zone = get_zone(zone)
    local = local.replace(fold=0)
    if not dateutil_tz.datetime_exists(local, tz=zone):
        resolved = _end_of_gap(local, zone)
        logger.debug(f"{local} does not exist in {zone.key}, resolved to {resolved}")
        return resolved
    if dateutil_tz.datetime_ambiguous(local, tz=zone):
        logger.debug(f"{local} is ambiguous in {zone.key}, using the earlier instant")
    return local.replace(tzinfo=zone).astimezone(UTC)


def local_date_of(instant: datetime.datetime, zone: Zone) -> datetime.date:
    """The calendar day an instant falls on, in `zone`."""
    return to_local(instant, zone).date()


def combine(date: datetime.date, time: datetime.time) -> datetime.datetime:
    """Combine a date and time into a single (naive) wall-clock reading."""
    return datetime.datetime.combine(date, time)


def day_bounds_utc(day: datetime.date, zone: Zone) -> TimeInterval:
    """The UTC instants at which local calendar day `day` starts and ends.

    The interval is half-open and `day_bounds_utc(day).end` is exactly
    `day_bounds_utc(day + 1).start`, also on days with a DST transition.
    """
    next_day = day + relativedelta(days=1)
    return TimeInterval(
        start=to_absolute(combine(day, datetime.time.min), zone),
        end=to_absolute(combine(next_day, datetime.time.min), zone),
    )


@dataclass(frozen=True)
class SlotSequence:
    """The bookable start times of a day, as wall-clock readings.

    The sequence starts at `start_hour:00`, advances by `granularity_minutes`
    and stops strictly before `end_hour:00`. It can be iterated any number
    of times.

    Raises
    ------
    InvalidRangeError if the hours do not describe a non-empty range inside
    the day or the granularity does not evenly divide an hour.
    """

    day: datetime.date
    start_hour: int
    end_hour: int
    granularity_minutes: int

    def __post_init__(self):
        if not 0 <= self.start_hour <= 24 or not 0 <= self.end_hour <= 24:
            raise InvalidRangeError(
                f"Hours must be within [0, 24], got {self.start_hour}-{self.end_hour}"
            )
        if self.end_hour <= self.start_hour:
            raise InvalidRangeError(
                f"End hour {self.end_hour} must be after start hour {self.start_hour}"
            )
        if self.granularity_minutes <= 0:
            raise InvalidRangeError(
                f"Slot granularity must be positive, got {self.granularity_minutes}"
            )
        if 60 % self.granularity_minutes:
            raise InvalidRangeError(
                f"Slot granularity of {self.granularity_minutes} minutes "
                f"does not evenly divide an hour"
            )

    @property
    def first(self) -> datetime.datetime:
        return combine(self.day, datetime.time.min) + datetime.timedelta(
            hours=self.start_hour
        )

    @property
    def stop(self) -> datetime.datetime:
        """The excluded upper bound."""
        return combine(self.day, datetime.time.min) + datetime.timedelta(
            hours=self.end_hour
        )

    def __iter__(self) -> Iterator[datetime.datetime]:
        step = datetime.timedelta(minutes=self.granularity_minutes)
        slot, stop = self.first, self.stop
        while slot < stop:
            yield slot
            slot += step

    def __len__(self) -> int:
        return (self.end_hour - self.start_hour) * 60 // self.granularity_minutes

    def labels(self) -> list[str]:
        """The `HH:MM` labels for each slot."""
        return [slot.strftime("%H:%M") for slot in self]


def enumerate_slots(
    day: datetime.date, start_hour: int, end_hour: int, granularity_minutes: int
) -> SlotSequence:
    """Return the slot start times for `day` between `start_hour` (inclusive) and
    `end_hour` (exclusive)."""
    return SlotSequence(
        day=day,
        start_hour=start_hour,
        end_hour=end_hour,
        granularity_minutes=granularity_minutes,
    )
