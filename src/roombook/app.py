#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The state of one booking client: which day is in view, its cached schedule
and the booking form. A UI layer drives it and renders from `snapshot`."""

import datetime
import logging
from types import TracebackType
from typing import Self

from dateutil.relativedelta import relativedelta

from roombook.config import BookingSettings
from roombook.scheduling.calendar_export import encode, export_filename
from roombook.scheduling.editing import BookingDraft, EditController, EditState
from roombook.scheduling.exceptions import SearchError
from roombook.scheduling.models import Booking, BookingId, DaySnapshot
from roombook.scheduling.reconciler import ChangeReconciler
from roombook.scheduling.service import BookingResult, BookingService
from roombook.scheduling.time_utils import (
    SlotSequence,
    TimeGetter,
    local_date_of,
    utc_now,
)
from roombook.storage.polars_store import InMemoryBookingRepository
from roombook.storage.repository import BookingRepository

logger = logging.getLogger(__name__)


class RoomBookingApp:
    """Owns the components of a booking client and their lifecycle.

    Use as an async context manager, or call `initialize` and `teardown`.

    Parameters
    ----------
    settings
        Validated settings.
    repository
        The shared store. An empty in-memory store is used if not given.
    day
        The local day initially in view. Defaults to today.
    time_getter
        Returns the current instant.
    """

    def __init__(
        self,
        settings: BookingSettings,
        repository: BookingRepository | None = None,
        day: datetime.date | None = None,
        time_getter: TimeGetter | None = None,
    ):
        settings.validate()
        self.settings = settings
        self._time_getter: TimeGetter = (
            utc_now if time_getter is None else time_getter
        )
        self.repository = repository or InMemoryBookingRepository(settings.zone)
        self.reconciler = ChangeReconciler(self.repository, day or self.today())
        self.service = BookingService(
            settings, self.repository, self.reconciler, time_getter=self._time_getter
        )
        self.editor = EditController(settings.zone)
        self.draft = self.editor.new_draft()

    async def initialize(self) -> None:
        logger.info(f"Starting booking client on {self.day}")
        await self.reconciler.start()

    async def teardown(self) -> None:
        await self.reconciler.close()
        logger.info("Booking client stopped")

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        del exc_type, exc_val, exc_tb
        await self.teardown()

    @property
    def day(self) -> datetime.date:
        return self.reconciler.day

    @property
    def snapshot(self) -> DaySnapshot | None:
        return self.reconciler.snapshot

    def today(self) -> datetime.date:
        return local_date_of(self._time_getter(), self.settings.zone)

    def slots(self) -> SlotSequence:
        return self.settings.window.slots(self.day)

    async def select_day(self, day: datetime.date) -> DaySnapshot | None:
        return await self.reconciler.view_day(day)

    async def next_day(self) -> DaySnapshot | None:
        return await self.select_day(self.day + relativedelta(days=1))

    async def previous_day(self) -> DaySnapshot | None:
        return await self.select_day(self.day - relativedelta(days=1))

    async def go_to_today(self) -> DaySnapshot | None:
        return await self.select_day(self.today())

    async def submit(self, draft: BookingDraft | None = None) -> BookingResult:
        """Submit the current form draft (or `draft`) for the day in view. On
        success the form is reset for a new booking in the same room."""
        draft = draft or self.draft
        result = await self.service.submit_draft(draft, self.day)
        if result.ok:
            self.draft = self.editor.new_draft(room=draft.room)
        return result

    async def delete(self, booking_id: BookingId) -> BookingResult:
        return await self.service.delete(booking_id)

    def request_edit(self, booking_id: BookingId) -> EditState:
        if self.snapshot is None:
            raise SearchError(f"The schedule for {self.day} has not been loaded yet")
        return self.editor.request_edit(booking_id, self.snapshot)

    def confirm_edit(self) -> BookingDraft:
        self.draft = self.editor.confirm_edit().draft
        return self.draft

    def cancel_edit(self) -> None:
        self.editor.cancel_edit()

    def _find(self, booking_id: BookingId) -> Booking:
        booking = self.snapshot.get(booking_id) if self.snapshot else None
        if booking is None:
            raise SearchError(f"No booking with id {booking_id} on {self.day}")
        return booking

    def export(self, booking_id: BookingId) -> tuple[str, bytes]:
        """Encode a booking of the viewed day as a calendar document.

        Returns
        -------
        The suggested file name and the document.
        """
        booking = self._find(booking_id)
        room_name = self.settings.catalog.name_of(booking.room)
        return (
            export_filename(booking, room_name, self.settings.zone),
            encode(booking, room_name, now=self._time_getter()),
        )
