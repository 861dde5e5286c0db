#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import asyncio
import datetime
import logging

import hydra
from omegaconf import DictConfig, OmegaConf
from rich.console import Console
from rich.table import Table

from roombook.config import BookingSettings, settings_from_config
from roombook.constants import CONFIGS_ROOT
from roombook.scheduling.models import DaySnapshot
from roombook.scheduling.time_utils import to_absolute, to_local
from roombook.storage.polars_store import ParquetBookingRepository

logger = logging.getLogger(__name__)


def render_day(snapshot: DaySnapshot, settings: BookingSettings) -> Table:
    """Lay the bookings of a day out as a grid of slots by rooms. A booking is
    labelled in the slot it starts in, and the slots it continues into are
    marked."""
    zone = settings.zone
    table = Table(title=snapshot.day.strftime("%A %d %B %Y"))
    table.add_column("Time")
    for name in settings.catalog:
        table.add_column(name)
    step = datetime.timedelta(minutes=settings.slot_minutes)
    for slot in settings.window.slots(snapshot.day):
        slot_start, slot_end = to_absolute(slot, zone), to_absolute(slot + step, zone)
        row = [slot.strftime("%H:%M")]
        for room in range(len(settings.catalog)):
            starting = [
                b
                for b in snapshot.for_room(room)
                if slot_start <= b.start < slot_end
            ]
            if starting:
                b = starting[0]
                span = (
                    f"{to_local(b.start, zone):%H:%M}–{to_local(b.end, zone):%H:%M}"
                )
                row.append(f"{b.person or 'Booking'} {span}")
            elif snapshot.booking_at(room, slot_start) is not None:
                row.append("│")
            else:
                row.append("")
        table.add_row(*row)
    return table


@hydra.main(config_name="day_summary", config_path=CONFIGS_ROOT, version_base="1.3")
def day_summary(cfg: DictConfig):
    if cfg.debug:
        logger.info(OmegaConf.to_yaml(cfg, resolve=True))
    settings = settings_from_config(cfg.settings)
    day = datetime.date.fromisoformat(str(cfg.day))
    repository = ParquetBookingRepository(settings.zone, cfg.store_path)
    snapshot = asyncio.run(repository.fetch_for_day(day))
    Console().print(render_day(snapshot, settings))


if __name__ == "__main__":
    day_summary()
