#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The values a booking form holds, and the explicit steps for loading an
existing booking into it for editing."""

import datetime
import logging
from enum import StrEnum, auto
from typing import NamedTuple, Self

from pydantic import BaseModel

from roombook.scheduling.exceptions import EditStateError, SearchError
from roombook.scheduling.models import Booking, BookingId, DaySnapshot
from roombook.scheduling.time_utils import (
    Duration,
    TimeUnits,
    Zone,
    cast_to_timedelta,
    combine,
    to_absolute,
    to_local,
    utc_now,
)

logger = logging.getLogger(__name__)

DURATION_OPTIONS = tuple(
    Duration(minutes, TimeUnits.Minutes) for minutes in (30, 60, 90, 120, 180, 240)
)
DEFAULT_START_TIME = datetime.time(9, 0)


class BookingDraft(BaseModel):
    """The editable fields of a booking, as entered in local time.

    Parameters
    ----------
    booking_id
        Set when the draft edits an existing booking, `None` for a new one.
    created_at
        Creation time of the booking being edited.
    start_time
        Local wall-clock start time on the day the booking is made for.
    duration
        Length of the booking.
    """

    booking_id: BookingId | None = None
    created_at: datetime.datetime | None = None
    room: int = 0
    person: str = ""
    purpose: str = ""
    start_time: datetime.time = DEFAULT_START_TIME
    duration: Duration = DURATION_OPTIONS[1]

    @property
    def is_edit(self) -> bool:
        return self.booking_id is not None

    @classmethod
    def from_booking(cls, booking: Booking, zone: Zone) -> Self:
        """Load an existing booking, converting its instants to local time."""
        start = to_local(booking.start, zone)
        return cls(
            booking_id=booking.booking_id,
            created_at=booking.created_at,
            room=booking.room,
            person=booking.person,
            purpose=booking.purpose,
            start_time=start.time(),
            duration=booking.duration,
        )

    def to_booking(
        self,
        day: datetime.date,
        zone: Zone,
        now: datetime.datetime | None = None,
    ) -> Booking:
        """Build the booking the draft describes on local day `day`.

        Editing drafts keep the identifier and creation time of the booking they
        were loaded from, so persisting the result replaces it.
        """
        local_start = combine(day, self.start_time)
        start = to_absolute(local_start, zone)
        end = to_absolute(local_start + cast_to_timedelta(self.duration), zone)
        if self.booking_id is None:
            return Booking.create(
                room=self.room,
                start=start,
                end=end,
                person=self.person,
                purpose=self.purpose,
                created_at=now,
            )
        return Booking(
            booking_id=self.booking_id,
            room=self.room,
            person=self.person.strip(),
            purpose=self.purpose.strip(),
            start=start,
            end=end,
            created_at=self.created_at or now or utc_now(),
        )


class EditStatus(StrEnum):
    Idle = auto()
    PendingConfirmation = auto()
    Loaded = auto()


class EditState(NamedTuple):
    """Where the edit workflow stands.

    Attributes
    ----------
    status
    booking
        The booking the user asked to edit, while confirmation is pending.
    draft
        The draft the form shows once loaded.
    """

    status: EditStatus
    booking: Booking | None = None
    draft: BookingDraft | None = None


class EditController:
    """Moves a booking from the day grid into the booking form.

    Editing is a two step transition: `request_edit` puts the workflow in
    `PendingConfirmation` and `confirm_edit` loads the booking into a draft.
    Either step can be abandoned with `cancel_edit`.
    """

    def __init__(self, zone: Zone):
        self._zone = zone
        self._state = EditState(status=EditStatus.Idle)

    @property
    def state(self) -> EditState:
        return self._state

    def request_edit(self, booking_id: BookingId, snapshot: DaySnapshot) -> EditState:
        """
        Raises
        ------
        SearchError if the booking is not in the snapshot.
        EditStateError if another edit is awaiting confirmation.
        """
        if self._state.status == EditStatus.PendingConfirmation:
            raise EditStateError(
                "An edit is already awaiting confirmation, confirm or cancel it first"
            )
        booking = snapshot.get(booking_id)
        if booking is None:
            raise SearchError(f"No booking with id {booking_id} on {snapshot.day}")
        self._state = EditState(status=EditStatus.PendingConfirmation, booking=booking)
        return self._state

    def confirm_edit(self) -> EditState:
        if self._state.status != EditStatus.PendingConfirmation:
            raise EditStateError("There is no edit awaiting confirmation")
        draft = BookingDraft.from_booking(self._state.booking, self._zone)
        logger.debug(f"Loaded booking {draft.booking_id} for editing")
        self._state = EditState(status=EditStatus.Loaded, draft=draft)
        return self._state

    def cancel_edit(self) -> EditState:
        self._state = EditState(status=EditStatus.Idle)
        return self._state

    def new_draft(self, room: int = 0) -> BookingDraft:
        """Reset the form for a new booking."""
        self._state = EditState(status=EditStatus.Idle)
        return BookingDraft(room=room)
