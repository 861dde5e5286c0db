#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import asyncio
import datetime

from roombook.scheduling.exceptions import RepositoryError
from roombook.scheduling.models import Booking, BookingId, DaySnapshot
from roombook.scheduling.time_utils import Zone, combine, to_absolute
from roombook.storage.polars_store import InMemoryBookingRepository
from roombook.storage.repository import BookingRepository

ZONE_NAME = "Europe/Madrid"
DAY = datetime.date(2024, 6, 3)


def local_booking(
    room: int,
    start: str,
    end: str,
    day: datetime.date = DAY,
    person: str = "Ana",
    purpose: str = "",
    booking_id: BookingId | None = None,
    zone: Zone = ZONE_NAME,
) -> Booking:
    """A booking between two `HH:MM` wall-clock times of `day`."""
    booking = Booking.create(
        room=room,
        start=to_absolute(combine(day, datetime.time.fromisoformat(start)), zone),
        end=to_absolute(combine(day, datetime.time.fromisoformat(end)), zone),
        person=person,
        purpose=purpose,
        created_at=datetime.datetime(2024, 5, 1, tzinfo=datetime.timezone.utc),
    )
    if booking_id is not None:
        booking = booking.model_copy(update={"booking_id": booking_id})
    return booking


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class GatedRepository(BookingRepository):
    """A store whose fetches only complete when the test resolves them, in
    whatever order it chooses. Mutations are recorded and do nothing."""

    def __init__(self, zone: Zone = ZONE_NAME):
        super().__init__(zone)
        self.pending: list[tuple[datetime.date, asyncio.Future]] = []
        self.upserts: list[Booking] = []
        self.deletes: list[BookingId] = []

    async def fetch_for_day(self, day: datetime.date) -> DaySnapshot:
        future = asyncio.get_running_loop().create_future()
        self.pending.append((day, future))
        return await future

    async def upsert(self, booking: Booking) -> None:
        self.upserts.append(booking)

    async def delete(self, booking_id: BookingId) -> None:
        self.deletes.append(booking_id)

    def notify_change(self) -> None:
        self._notify_subscribers()

    def complete(self, index: int, snapshot: DaySnapshot) -> None:
        self.pending[index][1].set_result(snapshot)

    def fail(self, index: int, message: str = "connection reset") -> None:
        self.pending[index][1].set_exception(RepositoryError(message))


class FailingWritesRepository(InMemoryBookingRepository):
    """An in-memory store whose writes always fail."""

    async def upsert(self, booking: Booking) -> None:
        raise RepositoryError("store unavailable")

    async def delete(self, booking_id: BookingId) -> None:
        raise RepositoryError("store unavailable")
