#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Booking stores backed by a `polars.DataFrame`, kept in memory or persisted
to a parquet file."""

import asyncio
import datetime
import logging
import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import polars as pl
from filelock import FileLock
from polars.exceptions import PolarsError

from roombook.scheduling.exceptions import RepositoryError
from roombook.scheduling.models import Booking, BookingId, DaySnapshot
from roombook.scheduling.time_utils import Zone, day_bounds_utc
from roombook.storage.repository import BookingRepository
from roombook.storage.schemas import BOOKINGS_SCHEMA
from roombook.storage.utils import (
    exact_match_filter_dataframe,
    exclude_filter_dataframe,
    filter_dataframe,
    gt_eq_filter_dataframe,
    lt_filter_dataframe,
)

logger = logging.getLogger(__name__)

INSTANT_FIELDS = ("start", "end", "created_at")
# seconds a writer waits for another to release the store
LOCK_TIMEOUT = 10


def _naive_utc(instant: datetime.datetime) -> datetime.datetime:
    return instant.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def _to_row(booking: Booking) -> dict[str, Any]:
    row = booking.to_record()
    for field in INSTANT_FIELDS:
        row[field] = _naive_utc(row[field])
    return row


class InMemoryBookingRepository(BookingRepository):
    """A store holding all bookings in a single dataframe.

    Several clients sharing one instance see each other's writes and are
    notified of them. Mutations are serialised so concurrent writers cannot
    lose each other's updates.

    Parameters
    ----------
    zone
        The timezone local days are interpreted in.
    bookings
        Initial contents of the store.
    """

    schema: dict[str, Any] = BOOKINGS_SCHEMA

    def __init__(self, zone: Zone, bookings: Iterable[Booking] = ()):
        super().__init__(zone)
        rows = [_to_row(b) for b in bookings]
        self._bookings = pl.DataFrame(rows, schema=self.schema)
        self._lock = asyncio.Lock()

    def get_database(self) -> pl.DataFrame:
        """The stored rows. Treat the returned frame as immutable."""
        return self._bookings

    async def _load(self) -> pl.DataFrame:
        return self._bookings

    async def _commit(self, dataframe: pl.DataFrame) -> None:
        self._bookings = dataframe

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        """Hold exclusive access to the stored rows for a read-modify-write."""
        async with self._lock:
            yield

    async def fetch_for_day(self, day: datetime.date) -> DaySnapshot:
        bounds = day_bounds_utc(day, self.zone)
        try:
            rows = (
                filter_dataframe(
                    await self._load(),
                    filter_criteria=[
                        ("start", _naive_utc(bounds.start), gt_eq_filter_dataframe),
                        ("start", _naive_utc(bounds.end), lt_filter_dataframe),
                    ],
                )
                .sort("start")
                .to_dicts()
            )
        except PolarsError as e:
            raise RepositoryError(f"Could not load bookings for {day}") from e
        return DaySnapshot(day=day, bookings=[Booking.from_record(r) for r in rows])

    async def upsert(self, booking: Booking) -> None:
        async with self._transaction():
            try:
                current = await self._load()
                updated = exclude_filter_dataframe(
                    current, "id", booking.booking_id
                ).vstack(pl.DataFrame([_to_row(booking)], schema=self.schema))
            except PolarsError as e:
                raise RepositoryError(
                    f"Could not save booking {booking.booking_id}"
                ) from e
            await self._commit(updated)
        logger.info(f"Saved booking {booking.booking_id}: {booking}")
        self._notify_subscribers()

    async def delete(self, booking_id: BookingId) -> None:
        async with self._transaction():
            try:
                current = await self._load()
                if exact_match_filter_dataframe(current, "id", booking_id).is_empty():
                    logger.debug(f"Booking {booking_id} not found, nothing to delete")
                    return
                updated = exclude_filter_dataframe(current, "id", booking_id)
            except PolarsError as e:
                raise RepositoryError(f"Could not delete booking {booking_id}") from e
            await self._commit(updated)
        logger.info(f"Deleted booking {booking_id}")
        self._notify_subscribers()


class ParquetBookingRepository(InMemoryBookingRepository):
    """A store persisted to a parquet file.

    The file is re-read before every query and mutation, so processes sharing
    the file see each other's bookings, although change notifications only
    reach subscribers in this process. Each write replaces the file atomically.
    """

    def __init__(self, zone: Zone, path: Path | str):
        super().__init__(zone)
        self._path = Path(path)
        self._file_lock = FileLock(
            self._path.with_name(f"{self._path.name}.lock"),
            timeout=LOCK_TIMEOUT,
            thread_local=False,
        )
        if self._path.exists():
            self._bookings = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> pl.DataFrame:
        try:
            return pl.read_parquet(self._path).select(
                [pl.col(name).cast(dtype) for name, dtype in self.schema.items()]
            )
        except (OSError, PolarsError) as e:
            raise RepositoryError(f"Could not read booking store {self._path}") from e

    def _write(self, dataframe: pl.DataFrame) -> None:
        staging = self._path.with_name(f"{self._path.name}.{uuid.uuid4().hex}.tmp")
        try:
            dataframe.write_parquet(staging)
            staging.replace(self._path)
        except (OSError, PolarsError) as e:
            staging.unlink(missing_ok=True)
            raise RepositoryError(f"Could not write booking store {self._path}") from e

    async def _load(self) -> pl.DataFrame:
        if not self._path.exists():
            return self._bookings
        self._bookings = await asyncio.to_thread(self._read)
        return self._bookings

    async def _commit(self, dataframe: pl.DataFrame) -> None:
        await asyncio.to_thread(self._write, dataframe)
        self._bookings = dataframe

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        """Also hold the lock file next to the store, so that writers in other
        processes, or other instances on the same file, wait for this one."""
        async with super()._transaction():
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                await asyncio.to_thread(self._file_lock.acquire)
            except OSError as e:
                raise RepositoryError(
                    f"Could not lock booking store {self._path}"
                ) from e
            try:
                yield
            finally:
                self._file_lock.release()
