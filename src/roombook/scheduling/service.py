#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The entry point forms and grids use to create, edit and delete bookings.

A submission is validated, checked for conflicts against the cached day,
persisted and then confirmed by refreshing the cached day, in that order. The
first step to fail ends the submission. Nothing is written to the cache
optimistically: the schedule only changes once the store has accepted the
write and a refresh has brought it back."""

import datetime
import logging
from typing import NamedTuple

from roombook.config import BookingSettings
from roombook.scheduling.conflicts import find_conflicts
from roombook.scheduling.editing import BookingDraft
from roombook.scheduling.exceptions import (
    ConflictError,
    RepositoryError,
    SchedulingError,
    ValidationError,
)
from roombook.scheduling.models import Booking, BookingId, DaySnapshot
from roombook.scheduling.reconciler import ChangeReconciler
from roombook.scheduling.time_utils import (
    TimeGetter,
    day_bounds_utc,
    local_date_of,
    utc_now,
)
from roombook.storage.repository import BookingRepository

logger = logging.getLogger(__name__)


class BookingResult(NamedTuple):
    """The outcome of a booking operation: the booking on success, otherwise
    the error the operation ended with."""

    booking: Booking | None = None
    error: SchedulingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BookingService:
    """Validates, conflict-checks and persists bookings.

    Parameters
    ----------
    settings
        Room catalog and booking policies.
    repository
        The shared store.
    reconciler
        Owner of the cached snapshot of the viewed day.
    time_getter
        Returns the current instant. Policies on past bookings are evaluated
        against it.
    """

    def __init__(
        self,
        settings: BookingSettings,
        repository: BookingRepository,
        reconciler: ChangeReconciler,
        time_getter: TimeGetter | None = None,
    ):
        self._settings = settings
        self._repository = repository
        self._reconciler = reconciler
        self._time_getter: TimeGetter = (
            utc_now if time_getter is None else time_getter
        )

    def validate(self, booking: Booking) -> None:
        """
        Raises
        ------
        ValidationError if the booking is for an unknown room, does not end
        after it starts, runs past the end of the local day it starts on, has
        no name when one is required or lies in the past when that is not
        allowed.
        """
        if not self._settings.catalog.is_valid(booking.room):
            raise ValidationError(
                f"Room {booking.room} does not exist, "
                f"there are {len(self._settings.catalog)} rooms"
            )
        if booking.end <= booking.start:
            raise ValidationError("A booking must end after it starts")
        zone = self._settings.zone
        day = local_date_of(booking.start, zone)
        if booking.end > day_bounds_utc(day, zone).end:
            raise ValidationError("A booking must end on the day it starts")
        if self._settings.require_name and not booking.person.strip():
            raise ValidationError("Add a person or team name to the booking")
        if not self._settings.allow_past and booking.end < self._time_getter():
            raise ValidationError("Bookings in the past are not allowed")

    async def _snapshot_for(self, day: datetime.date) -> DaySnapshot:
        snapshot = self._reconciler.snapshot
        if snapshot is not None and snapshot.day == day:
            return snapshot
        # the booking is for a day not in view, check against a one-off fetch
        return await self._repository.fetch_for_day(day)

    async def check_conflicts(self, booking: Booking) -> None:
        """
        Raises
        ------
        ConflictError if the booking overlaps another booking of its room on the
        cached schedule of its day. Its own previous instance is ignored.
        """
        day = local_date_of(booking.start, self._settings.zone)
        snapshot = await self._snapshot_for(day)
        conflicts = find_conflicts(
            booking.room,
            booking.start,
            booking.end,
            snapshot.bookings,
            exclude_id=booking.booking_id,
        )
        if conflicts:
            room_name = self._settings.catalog.name_of(booking.room)
            raise ConflictError(
                f"{room_name} is already booked at that time", conflicts=conflicts
            )

    async def submit(self, booking: Booking) -> BookingResult:
        """Create a booking, or replace the booking with the same identifier."""
        try:
            self.validate(booking)
            await self.check_conflicts(booking)
            await self._repository.upsert(booking)
            await self._reconciler.refresh()
        except SchedulingError as e:
            logger.warning(f"Booking {booking.booking_id} rejected: {e}")
            return BookingResult(error=e)
        logger.info(f"Booking {booking.booking_id} confirmed")
        return BookingResult(booking=booking)

    async def submit_draft(
        self, draft: BookingDraft, day: datetime.date
    ) -> BookingResult:
        """Submit the booking a form draft describes on local day `day`."""
        booking = draft.to_booking(day, self._settings.zone, now=self._time_getter())
        return await self.submit(booking)

    async def delete(self, booking_id: BookingId) -> BookingResult:
        """Delete a booking. Deleting a booking that no longer exists succeeds.

        Returns
        -------
        On success, the deleted booking if it was in the cached snapshot.
        """
        snapshot = self._reconciler.snapshot
        deleted = snapshot.get(booking_id) if snapshot is not None else None
        try:
            await self._repository.delete(booking_id)
            await self._reconciler.refresh()
        except RepositoryError as e:
            logger.warning(f"Could not delete booking {booking_id}: {e}")
            return BookingResult(error=e)
        logger.info(f"Booking {booking_id} deleted")
        return BookingResult(booking=deleted)
