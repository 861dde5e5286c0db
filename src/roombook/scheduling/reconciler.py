#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Keeps a client's cached view of one day in step with the shared store.

Fetches are asynchronous and may complete in any order, so a response to an
early fetch can arrive after the response to a later one. Every fetch is
numbered when it is issued and its result is applied only if no later fetch
has been issued for the same day since. Switching to another day starts a new
generation and numbering restarts; responses from older generations are
dropped whenever they arrive. Fetches are never cancelled."""

import asyncio
import datetime
import logging
from collections.abc import Callable

from roombook.scheduling.exceptions import RepositoryError
from roombook.scheduling.models import DaySnapshot
from roombook.storage.repository import BookingRepository, Unsubscribe

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[DaySnapshot], None]


class ChangeReconciler:
    """Maintains the authoritative `DaySnapshot` of the day being viewed.

    Parameters
    ----------
    repository
        The store to fetch from and subscribe to.
    day
        The local calendar day initially in view.
    """

    def __init__(self, repository: BookingRepository, day: datetime.date):
        self._repository = repository
        self._day = day
        self._generation = 0
        self._issued = 0
        self._applied = 0
        self._snapshot: DaySnapshot | None = None
        self._latest: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        self._listeners: list[SnapshotListener] = []
        self._unsubscribe: Unsubscribe | None = None

    @property
    def day(self) -> datetime.date:
        return self._day

    @property
    def snapshot(self) -> DaySnapshot | None:
        """The last applied snapshot of the viewed day, or `None` if no fetch for
        this day has completed yet."""
        return self._snapshot

    @property
    def issued(self) -> int:
        """The sequence number of the most recently issued fetch for this day."""
        return self._issued

    @property
    def applied(self) -> int:
        """The sequence number of the fetch the snapshot came from."""
        return self._applied

    @property
    def is_running(self) -> bool:
        return self._unsubscribe is not None

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call `listener` with every snapshot that gets applied.

        Returns
        -------
        A function which removes the listener.
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def start(self) -> DaySnapshot | None:
        """Subscribe to changes in the store and load the viewed day."""
        if self._unsubscribe is None:
            self._unsubscribe = self._repository.subscribe_to_changes(
                self._on_change
            )
        return await self.refresh()

    async def close(self) -> None:
        """Stop listening for changes and wait for in-flight fetches to settle."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    async def view_day(self, day: datetime.date) -> DaySnapshot | None:
        """Switch to another day and load it. Fetches still in flight for the
        previous day will be discarded when they complete."""
        if day != self._day:
            logger.info(f"Switching view from {self._day} to {day}")
            self._day = day
            self._generation += 1
            self._issued = 0
            self._applied = 0
            self._snapshot = None
            self._latest = None
        return await self.refresh()

    async def refresh(self) -> DaySnapshot | None:
        """Fetch the viewed day and wait until the snapshot reflects a fetch
        issued no earlier than this call.

        If this fetch is superseded by a later one, the later one is awaited
        instead. If the view moves to another day meanwhile, the snapshot of
        the new day (`None` until loaded) is returned.

        Raises
        ------
        RepositoryError if the fetch the snapshot would be taken from fails. The
        previous snapshot is left in place.
        """
        generation = self._generation
        seq = self._issue()
        while generation == self._generation and self._applied < seq:
            await self._latest
        return self._snapshot

    def _issue(self) -> int:
        self._issued += 1
        seq = self._issued
        task = asyncio.get_running_loop().create_task(
            self._fetch(self._generation, seq, self._day)
        )
        self._latest = task
        self._in_flight.add(task)
        task.add_done_callback(self._settle)
        return seq

    def _settle(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        # store failures are logged in _fetch and re-raised to awaiting callers
        error = task.exception()
        if error is not None and not isinstance(error, RepositoryError):
            logger.error("Fetch failed unexpectedly", exc_info=error)

    def _on_change(self) -> None:
        logger.debug(f"Store changed, refreshing {self._day}")
        self._issue()

    async def _fetch(self, generation: int, seq: int, day: datetime.date) -> bool:
        try:
            snapshot = await self._repository.fetch_for_day(day)
        except RepositoryError as e:
            logger.warning(
                f"Fetch #{seq} for {day} failed, keeping the previous snapshot: {e}"
            )
            raise
        return self._apply(generation, seq, snapshot)

    def _apply(self, generation: int, seq: int, snapshot: DaySnapshot) -> bool:
        if generation != self._generation:
            logger.debug(
                f"Discarding fetch #{seq} for {snapshot.day}: day no longer viewed"
            )
            return False
        if seq != self._issued:
            logger.debug(
                f"Discarding fetch #{seq} for {snapshot.day}: "
                f"#{self._issued} already issued"
            )
            return False
        self._snapshot = snapshot
        self._applied = seq
        logger.debug(
            f"Applied fetch #{seq} for {snapshot.day} ({len(snapshot)} bookings)"
        )
        for listener in list(self._listeners):
            listener(snapshot)
        return True
