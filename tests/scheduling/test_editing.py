#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

import pytest

from roombook.scheduling.editing import (
    DEFAULT_START_TIME,
    DURATION_OPTIONS,
    BookingDraft,
    EditController,
    EditStatus,
)
from roombook.scheduling.exceptions import EditStateError, SearchError
from roombook.scheduling.models import Booking, DaySnapshot
from roombook.scheduling.time_utils import Duration, TimeUnits
from tests.utils import DAY, ZONE_NAME, local_booking

UTC = datetime.timezone.utc


@pytest.fixture
def snapshot(morning_booking: Booking) -> DaySnapshot:
    return DaySnapshot(
        day=DAY, bookings=[morning_booking, local_booking(1, "12:00", "14:00")]
    )


def test_new_draft_defaults():
    draft = EditController(ZONE_NAME).new_draft(room=2)
    assert draft.room == 2
    assert not draft.is_edit
    assert draft.start_time == DEFAULT_START_TIME
    assert draft.duration in DURATION_OPTIONS
    assert draft.duration == Duration(1, TimeUnits.Hours)


def test_draft_from_booking_uses_local_time(morning_booking: Booking):
    draft = BookingDraft.from_booking(morning_booking, ZONE_NAME)
    assert draft.is_edit
    assert draft.booking_id == morning_booking.booking_id
    assert draft.start_time == datetime.time(9, 0)
    assert draft.duration == Duration(60, TimeUnits.Minutes)
    assert draft.purpose == "Standup"


def test_edit_draft_keeps_identity(morning_booking: Booking):
    draft = BookingDraft.from_booking(morning_booking, ZONE_NAME).model_copy(
        update={"start_time": datetime.time(16, 0), "room": 3}
    )
    booking = draft.to_booking(DAY, ZONE_NAME)
    assert booking.booking_id == morning_booking.booking_id
    assert booking.created_at == morning_booking.created_at
    assert booking.room == 3
    assert booking.start == datetime.datetime(2024, 6, 3, 14, 0, tzinfo=UTC)
    assert booking.end == datetime.datetime(2024, 6, 3, 15, 0, tzinfo=UTC)


def test_new_draft_creates_new_booking():
    now = datetime.datetime(2024, 6, 1, tzinfo=UTC)
    draft = BookingDraft(room=1, person="Ana", start_time=datetime.time(10, 0))
    first = draft.to_booking(DAY, ZONE_NAME, now=now)
    second = draft.to_booking(DAY, ZONE_NAME, now=now)
    assert first.booking_id != second.booking_id
    assert first.created_at == now


def test_draft_across_spring_forward():
    # 02:30 does not exist on 2024-03-31 in Madrid
    draft = BookingDraft(
        person="Ana",
        start_time=datetime.time(2, 30),
        duration=Duration(60, TimeUnits.Minutes),
    )
    booking = draft.to_booking(datetime.date(2024, 3, 31), ZONE_NAME)
    assert booking.start == datetime.datetime(2024, 3, 31, 1, 0, tzinfo=UTC)
    assert booking.end == datetime.datetime(2024, 3, 31, 1, 30, tzinfo=UTC)


def test_edit_workflow(morning_booking: Booking, snapshot: DaySnapshot):
    controller = EditController(ZONE_NAME)
    assert controller.state.status == EditStatus.Idle

    state = controller.request_edit(morning_booking.booking_id, snapshot)
    assert state.status == EditStatus.PendingConfirmation
    assert state.booking == morning_booking
    assert state.draft is None

    state = controller.confirm_edit()
    assert state.status == EditStatus.Loaded
    assert state.draft.booking_id == morning_booking.booking_id


def test_only_one_pending_edit(morning_booking: Booking, snapshot: DaySnapshot):
    controller = EditController(ZONE_NAME)
    controller.request_edit(morning_booking.booking_id, snapshot)
    other = snapshot.bookings[1].booking_id
    with pytest.raises(EditStateError):
        controller.request_edit(other, snapshot)
    controller.cancel_edit()
    assert controller.request_edit(other, snapshot).booking.room == 1


def test_edit_unknown_booking(snapshot: DaySnapshot):
    controller = EditController(ZONE_NAME)
    with pytest.raises(SearchError):
        controller.request_edit("missing", snapshot)
    assert controller.state.status == EditStatus.Idle


def test_confirm_without_request():
    controller = EditController(ZONE_NAME)
    with pytest.raises(EditStateError):
        controller.confirm_edit()


def test_cancel_pending_edit(morning_booking: Booking, snapshot: DaySnapshot):
    controller = EditController(ZONE_NAME)
    controller.request_edit(morning_booking.booking_id, snapshot)
    assert controller.cancel_edit().status == EditStatus.Idle
    with pytest.raises(EditStateError):
        controller.confirm_edit()


def test_new_edit_after_loaded(morning_booking: Booking, snapshot: DaySnapshot):
    controller = EditController(ZONE_NAME)
    controller.request_edit(morning_booking.booking_id, snapshot)
    controller.confirm_edit()
    state = controller.request_edit(snapshot.bookings[1].booking_id, snapshot)
    assert state.status == EditStatus.PendingConfirmation
