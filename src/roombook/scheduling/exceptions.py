#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from roombook.scheduling.models import Booking


class SchedulingError(Exception):
    """Base class for the failures a booking operation can end in."""

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(SchedulingError):
    """The candidate booking breaks a local policy (missing name, booking in the
    past, empty or inverted interval, unknown room)."""


class ConflictError(SchedulingError):
    """The candidate overlaps an existing booking in the same room."""

    def __init__(self, message: str, conflicts: "list[Booking] | None" = None):
        super().__init__(message)
        self.conflicts = conflicts or []


class RepositoryError(SchedulingError):
    """The durable store could not be read or written."""


class InvalidRangeError(SchedulingError):
    pass


class SearchError(SchedulingError):
    pass


class EditStateError(SchedulingError):
    pass


class ConfigurationError(SchedulingError):
    pass
