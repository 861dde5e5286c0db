#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Hand a booking over to external calendar tools as a single-event iCalendar
document, or as a short plain-text summary."""

import datetime
import re
import uuid

from roombook.scheduling.models import Booking
from roombook.scheduling.time_utils import Zone, as_utc, to_local, utc_now

PRODUCT_ID = "-//roombook//v1//EN"
DEFAULT_DESCRIPTION = "Room booking"
LINE_TERMINATOR = "\r\n"

# backslash goes first so the escapes added afterwards are left alone
_ESCAPES = (("\\", "\\\\"), ("\n", "\\n"), (",", "\\,"), (";", "\\;"))


def escape_text(text: str) -> str:
    """Escape a free-text property value. Line breaks of any convention become
    `\\n`; characters other than backslash, comma and semicolon are otherwise
    passed through unchanged."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    for char, escaped in _ESCAPES:
        text = text.replace(char, escaped)
    return text


def format_timestamp(instant: datetime.datetime) -> str:
    """Render an instant as an iCalendar UTC date-time, eg `20240603T070000Z`."""
    return as_utc(instant).strftime("%Y%m%dT%H%M%SZ")


def event_title(booking: Booking, room_name: str) -> str:
    if booking.person:
        return f"Booking {room_name} · {booking.person}"
    return f"Booking {room_name}"


def encode(
    booking: Booking,
    room_name: str,
    now: datetime.datetime | None = None,
    uid: str | None = None,
) -> bytes:
    """Encode a booking as an iCalendar document with a single event.

    Parameters
    ----------
    booking
        A booking with `start < end`. Malformed intervals are rejected before
        a booking gets here.
    room_name
        Used as the event location and in the title.
    now
        The document's creation time (`DTSTAMP`). Defaults to the current time.
    uid
        The event identifier. A fresh one is generated if not given; it is
        not derived from the booking identifier.
    """
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODUCT_ID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid or uuid.uuid4()}",
        f"DTSTAMP:{format_timestamp(now or utc_now())}",
        f"DTSTART:{format_timestamp(booking.start)}",
        f"DTEND:{format_timestamp(booking.end)}",
        f"SUMMARY:{escape_text(event_title(booking, room_name))}",
        f"DESCRIPTION:{escape_text(booking.purpose or DEFAULT_DESCRIPTION)}",
        f"LOCATION:{escape_text(room_name)}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "".join(line + LINE_TERMINATOR for line in lines).encode("utf-8")


def export_filename(booking: Booking, room_name: str, zone: Zone) -> str:
    """A file name for the exported document, eg `20240603-0900-Room_A.ics`."""
    start = to_local(booking.start, zone).strftime("%Y%m%d-%H%M")
    name = re.sub(r"\s+", "_", room_name)
    return f"{start}-{name}.ics"


def summarise_booking(booking: Booking, room_name: str, zone: Zone) -> str:
    """A short human-readable description of a booking, in local time, for
    pasting into messages."""
    start, end = to_local(booking.start, zone), to_local(booking.end, zone)
    return (
        f"{booking.person or 'Booking'} — {booking.purpose}\n"
        f"{start.strftime('%d %b %Y %H:%M')}–{end.strftime('%H:%M')}\n"
        f"{room_name}"
    )
