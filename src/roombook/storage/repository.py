#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The contract between the scheduling core and the durable booking store."""

import datetime
import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from roombook.scheduling.models import Booking, BookingId, DaySnapshot
from roombook.scheduling.time_utils import Zone, get_zone

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]
Unsubscribe = Callable[[], None]


class BookingRepository(ABC):
    """Asynchronous access to the shared, authoritative set of bookings.

    Implementations raise `RepositoryError` on any storage or transport
    failure and never return partial results. Writes are last-write-wins by
    booking identifier; the store is not expected to reject overlaps.

    Parameters
    ----------
    zone
        The timezone local days are interpreted in by `fetch_for_day`.
    """

    def __init__(self, zone: Zone):
        self._zone = get_zone(zone)
        self._subscribers: dict[int, ChangeCallback] = {}
        self._tokens = itertools.count()

    @property
    def zone(self):
        return self._zone

    @abstractmethod
    async def fetch_for_day(self, day: datetime.date) -> DaySnapshot:
        """Return the bookings whose start falls in local day `day`, ie in
        `[day_start, day_end)` in UTC, ordered by start."""

    @abstractmethod
    async def upsert(self, booking: Booking) -> None:
        """Insert `booking`, or replace the stored booking with the same
        identifier."""

    @abstractmethod
    async def delete(self, booking_id: BookingId) -> None:
        """Delete a booking. Deleting an unknown identifier is not an error."""

    def subscribe_to_changes(self, callback: ChangeCallback) -> Unsubscribe:
        """Call `callback` (with no arguments) whenever any booking in the store
        is inserted, replaced or deleted.

        Returns
        -------
        A function which removes the subscription. Calling it more than once
        has no further effect.
        """
        token = next(self._tokens)
        self._subscribers[token] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    @property
    def num_subscribers(self) -> int:
        return len(self._subscribers)

    def _notify_subscribers(self) -> None:
        for callback in list(self._subscribers.values()):
            try:
                callback()
            except Exception:
                # one broken subscriber must not starve the others
                logger.exception("Change subscriber raised")
