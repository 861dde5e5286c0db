#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import asyncio
from pathlib import Path

import pytest
from hydra import compose, initialize_config_module
from omegaconf import DictConfig

from roombook.config import settings_from_config
from roombook.endpoints.book_room import _book
from roombook.endpoints.day_summary import render_day
from roombook.scheduling.models import DaySnapshot
from roombook.storage.polars_store import ParquetBookingRepository
from tests.utils import DAY, ZONE_NAME, local_booking


def _compose(config_name: str, overrides: list[str]) -> DictConfig:
    with initialize_config_module(
        config_module="roombook.configs", version_base="1.3"
    ):
        return compose(config_name=config_name, overrides=overrides)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "bookings.parquet"


def _book_room_config(store_path: Path, out_dir: Path, *overrides: str) -> DictConfig:
    return _compose(
        "book_room",
        [
            f"store_path={store_path}",
            f"out_dir={out_dir}",
            "settings.allow_past=true",
            "booking.day=2024-06-03",
            "booking.room=1",
            "booking.person=Ana",
            *overrides,
        ],
    )


def test_book_room(store_path: Path, tmp_path: Path):
    cfg = _book_room_config(store_path, tmp_path / "ics", "export=true")
    assert asyncio.run(_book(cfg))
    snapshot = asyncio.run(
        ParquetBookingRepository(ZONE_NAME, store_path).fetch_for_day(DAY)
    )
    assert len(snapshot) == 1
    assert snapshot.bookings[0].room == 1
    assert snapshot.bookings[0].person == "Ana"
    exported = list((tmp_path / "ics").glob("*.ics"))
    assert [p.name for p in exported] == ["20240603-0900-Room_2.ics"]


def test_book_room_conflict(store_path: Path, tmp_path: Path):
    cfg = _book_room_config(store_path, tmp_path)
    assert asyncio.run(_book(cfg))
    assert not asyncio.run(_book(cfg))
    assert not list(tmp_path.glob("*.ics"))


def test_default_store_path_resolves():
    cfg = _compose("day_summary", ["day=2024-06-03"])
    assert str(cfg.store_path).endswith("bookings.parquet")


def test_render_day():
    cfg = _compose("day_summary", ["day=2024-06-03"])
    settings = settings_from_config(cfg.settings)
    snapshot = DaySnapshot(
        day=DAY,
        bookings=[
            local_booking(0, "09:00", "10:30", person="Ana"),
            local_booking(3, "21:30", "22:00", person=""),
        ],
    )
    table = render_day(snapshot, settings)
    assert table.row_count == 28
    assert len(table.columns) == 5
    room_1 = list(table.columns[1].cells)
    # 08:00, 08:30, then the booking starting at 09:00
    assert room_1[2] == "Ana 09:00–10:30"
    assert room_1[3] == room_1[4] == "│"
    assert room_1[5] == ""
    assert list(table.columns[4].cells)[-1] == "Booking 21:30–22:00"
