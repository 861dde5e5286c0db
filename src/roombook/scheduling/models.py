#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The bookings, rooms and day schedules the scheduling core operates on."""

import datetime
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, NamedTuple, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator
from rapidfuzz import fuzz, process, utils

from roombook.scheduling.exceptions import SearchError
from roombook.scheduling.time_utils import (
    UTC,
    Duration,
    SlotSequence,
    TimeInterval,
    as_utc,
    enumerate_slots,
    utc_now,
)

BookingId = str

RECORD_FIELDS = ("id", "room", "person", "purpose", "start", "end", "created_at")


class Booking(BaseModel):
    """A reservation of one room over the half-open interval `[start, end)`.

    Parameters
    ----------
    booking_id
        Opaque unique identifier, assigned when the reservation is first
        created and kept on every subsequent edit.
    room
        Index of the room in the `RoomCatalog`.
    person
        Who the room is booked for. May be empty unless names are required.
    purpose
        Optional free text.
    start, end
        Absolute instants. Aware datetimes in any zone are accepted and
        normalised to UTC.
    created_at
        When the reservation was first created.
    """

    model_config = ConfigDict(frozen=True)

    booking_id: BookingId
    room: int
    person: str = ""
    purpose: str = ""
    start: datetime.datetime
    end: datetime.datetime
    created_at: datetime.datetime = Field(default_factory=utc_now)

    @field_validator("start", "end", "created_at")
    @classmethod
    def _normalise_instant(cls, value: datetime.datetime) -> datetime.datetime:
        return as_utc(value)

    @classmethod
    def create(
        cls,
        room: int,
        start: datetime.datetime,
        end: datetime.datetime,
        person: str = "",
        purpose: str = "",
        created_at: datetime.datetime | None = None,
    ) -> Self:
        """Create a new reservation with a fresh identifier."""
        return cls(
            booking_id=str(uuid.uuid4()),
            room=room,
            person=person.strip(),
            purpose=purpose.strip(),
            start=start,
            end=end,
            created_at=created_at or utc_now(),
        )

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

    @property
    def duration(self) -> Duration:
        return self.interval.duration

    def replace(self, **changes: Any) -> Self:
        """Return the edited reservation. The identifier and creation time are
        kept so that persisting the result replaces this booking."""
        changes.pop("booking_id", None)
        changes.pop("created_at", None)
        return self.model_validate({**self.model_dump(), **changes})

    def to_record(self) -> dict[str, Any]:
        """The persisted shape of the booking."""
        return {
            "id": self.booking_id,
            "room": self.room,
            "person": self.person,
            "purpose": self.purpose,
            "start": self.start,
            "end": self.end,
            "created_at": self.created_at,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        # stores hand back naive UTC datetimes
        instants = {
            k: record[k] if record[k].tzinfo else record[k].replace(tzinfo=UTC)
            for k in ("start", "end", "created_at")
        }
        return cls(
            booking_id=record["id"],
            room=record["room"],
            person=record["person"] or "",
            purpose=record["purpose"] or "",
            **instants,
        )

    def __str__(self) -> str:
        start = self.start.strftime("%Y-%m-%d %H:%M")
        end = self.end.strftime("%H:%M")
        who = self.person or "Unnamed"
        return f"{who} in room {self.room} from {start} to {end} UTC"


@dataclass(frozen=True)
class RoomCatalog:
    """The bookable rooms. A room's position in `names` is its identifier."""

    names: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def is_valid(self, room: int) -> bool:
        return 0 <= room < len(self.names)

    def name_of(self, room: int) -> str:
        """The display name of a room, or a generic label if the index is not in
        the catalog."""
        if self.is_valid(room):
            return self.names[room]
        return f"Room {room + 1}"

    def resolve(self, query: str | int, threshold: int = 85, margin: int = 10) -> int:
        """Find the index of a room given its index or its (approximate) name.

        Parameters
        ----------
        query
            Either the 0-based position of the room in the catalog, as an int
            or a string of digits, or a display name. Names are first matched
            exactly, ignoring case, and only then approximately.
        threshold
            Minimum score for an approximate match.
        margin
            How far the best approximate match must score above the runner-up.
            A name which matches several rooms about equally well (eg `Room 5`
            against `Room 1` ... `Room 4`) is not resolved.

        Raises
        ------
        SearchError if no room matches, or several rooms match equally well.
        """
        if isinstance(query, int) or str(query).strip().isdigit():
            room = int(query)
            if not self.is_valid(room):
                raise SearchError(
                    f"Room {room} not found, the catalog has {len(self)} rooms "
                    f"numbered from 0"
                )
            return room
        key = utils.default_process(query)
        for room, name in enumerate(self.names):
            if utils.default_process(name) == key:
                return room
        matches = process.extract(
            query,
            self.names,
            processor=utils.default_process,
            scorer=fuzz.WRatio,
            score_cutoff=threshold,
            limit=2,
        )
        if not matches:
            raise SearchError(f"Room '{query}' not found")
        if len(matches) > 1 and matches[0][1] - matches[1][1] < margin:
            raise SearchError(
                f"Room '{query}' is ambiguous, it could be "
                f"'{matches[0][0]}' or '{matches[1][0]}'"
            )
        return matches[0][2]


class OperatingWindow(NamedTuple):
    """The wall-clock hours rooms can be booked in, and the slot granularity."""

    start_hour: int
    end_hour: int
    slot_minutes: int

    def slots(self, day: datetime.date) -> SlotSequence:
        return enumerate_slots(day, self.start_hour, self.end_hour, self.slot_minutes)

    def validate(self) -> None:
        """Raise `InvalidRangeError` if the window cannot be sliced into slots."""
        self.slots(datetime.date.min)

    def time_options(self) -> list[str]:
        """The `HH:MM` start times a booking form offers."""
        return self.slots(datetime.date.min).labels()


class DaySnapshot(BaseModel):
    """The bookings starting on one local calendar day, ordered by start.

    Snapshots are immutable: a fresher view of the day replaces the snapshot
    wholesale.
    """

    model_config = ConfigDict(frozen=True)

    day: datetime.date
    bookings: tuple[Booking, ...] = ()

    @field_validator("bookings")
    @classmethod
    def _order_by_start(cls, bookings: tuple[Booking, ...]) -> tuple[Booking, ...]:
        return tuple(sorted(bookings, key=lambda b: b.start))

    def __len__(self) -> int:
        return len(self.bookings)

    def for_room(self, room: int) -> list[Booking]:
        return [b for b in self.bookings if b.room == room]

    def get(self, booking_id: BookingId) -> Booking | None:
        for booking in self.bookings:
            if booking.booking_id == booking_id:
                return booking
        return None

    def booking_at(self, room: int, instant: datetime.datetime) -> Booking | None:
        """The booking occupying `room` at `instant`, if any."""
        for booking in self.for_room(room):
            if booking.interval.contains(instant):
                return booking
        return None
