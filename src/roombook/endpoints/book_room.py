#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Book a room from the command line, eg

    roombook-book booking.day=2024-06-03 booking.room="Room 1" \
        booking.person=Ana booking.start_time=10:00 export=true
"""
import asyncio
import datetime
import logging
from pathlib import Path

import hydra
from omegaconf import DictConfig, OmegaConf

from roombook.app import RoomBookingApp
from roombook.config import settings_from_config
from roombook.constants import CONFIGS_ROOT
from roombook.scheduling.editing import BookingDraft
from roombook.scheduling.time_utils import Duration, TimeUnits
from roombook.storage.polars_store import ParquetBookingRepository

logger = logging.getLogger(__name__)


async def _book(cfg: DictConfig) -> bool:
    settings = settings_from_config(cfg.settings)
    day = datetime.date.fromisoformat(str(cfg.booking.day))
    draft = BookingDraft(
        room=settings.catalog.resolve(cfg.booking.room),
        person=cfg.booking.person,
        purpose=cfg.booking.purpose,
        start_time=datetime.time.fromisoformat(str(cfg.booking.start_time)),
        duration=Duration(cfg.booking.duration_minutes, TimeUnits.Minutes),
    )
    repository = ParquetBookingRepository(settings.zone, cfg.store_path)
    async with RoomBookingApp(settings, repository=repository, day=day) as app:
        result = await app.submit(draft)
        if not result.ok:
            logger.error(f"Booking rejected: {result.error}")
            return False
        logger.info(f"Booked: {result.booking}")
        if cfg.export:
            filename, document = app.export(result.booking.booking_id)
            out_dir = Path(cfg.out_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            (out_dir / filename).write_bytes(document)
            logger.info(f"Calendar event written to {out_dir / filename}")
    return True


@hydra.main(config_name="book_room", config_path=CONFIGS_ROOT, version_base="1.3")
def book_room(cfg: DictConfig):
    if cfg.debug:
        logger.info(OmegaConf.to_yaml(cfg, resolve=True))
    if not asyncio.run(_book(cfg)):
        raise SystemExit(1)


if __name__ == "__main__":
    book_room()
