#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from zoneinfo import ZoneInfo

import pytest

from roombook.config import BookingSettings
from roombook.scheduling.models import Booking
from tests.utils import ZONE_NAME, local_booking


@pytest.fixture
def zone() -> ZoneInfo:
    return ZoneInfo(ZONE_NAME)


@pytest.fixture
def settings() -> BookingSettings:
    return BookingSettings(
        rooms=["Room A", "Room B", "Meeting Room", "Phone Booth"],
        start_hour=8,
        end_hour=22,
        slot_minutes=30,
        require_name=True,
        allow_past=False,
        timezone=ZONE_NAME,
    )


@pytest.fixture
def now() -> datetime.datetime:
    """The current time the tests run at, before the day bookings are made for."""
    return datetime.datetime(2024, 6, 1, 12, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def morning_booking() -> Booking:
    """Room 0, 09:00-10:00 local on 2024-06-03."""
    return local_booking(room=0, start="09:00", end="10:00", purpose="Standup")
