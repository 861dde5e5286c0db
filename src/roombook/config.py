#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Settings consumed by the scheduling core.

Settings are an `omegaconf` structured config: the defaults below can be
overridden by a YAML file and by dotlist overrides (eg `allow_past=true`)."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo

from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from roombook.scheduling.exceptions import ConfigurationError, InvalidRangeError
from roombook.scheduling.models import OperatingWindow, RoomCatalog
from roombook.scheduling.time_utils import get_zone

logger = logging.getLogger(__name__)


def _default_rooms() -> list[str]:
    return ["Room 1", "Room 2", "Room 3", "Room 4"]


@dataclass
class BookingSettings:
    """
    Parameters
    ----------
    rooms
        Display names of the bookable rooms. A room is identified by its
        position in this list.
    start_hour, end_hour
        Bookable wall-clock hours. Slots start at `start_hour:00` and the last
        one starts before `end_hour:00`.
    slot_minutes
        Slot granularity. Must evenly divide an hour.
    require_name
        Reject bookings without a person or team name.
    allow_past
        Accept bookings which ended before the current time.
    timezone
        IANA name of the zone all rooms are in.
    """

    rooms: list[str] = field(default_factory=_default_rooms)
    start_hour: int = 8
    end_hour: int = 22
    slot_minutes: int = 30
    require_name: bool = True
    allow_past: bool = False
    timezone: str = "Europe/Madrid"

    @property
    def catalog(self) -> RoomCatalog:
        return RoomCatalog(names=tuple(self.rooms))

    @property
    def window(self) -> OperatingWindow:
        return OperatingWindow(self.start_hour, self.end_hour, self.slot_minutes)

    @property
    def zone(self) -> ZoneInfo:
        return get_zone(self.timezone)

    def validate(self) -> None:
        """
        Raises
        ------
        ConfigurationError if the room catalog is empty, the operating hours or
        slot granularity are invalid or the timezone is unknown.
        """
        if not self.rooms:
            raise ConfigurationError("At least one room must be configured")
        try:
            self.window.validate()
        except InvalidRangeError as e:
            raise ConfigurationError(f"Invalid operating window: {e}") from e
        get_zone(self.timezone)


def settings_from_config(cfg: DictConfig | None = None) -> BookingSettings:
    """Build validated settings from a (possibly partial) config node."""
    try:
        merged = OmegaConf.merge(
            OmegaConf.structured(BookingSettings), cfg or OmegaConf.create()
        )
        settings = OmegaConf.to_object(merged)
    except OmegaConfBaseException as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
    settings.validate()
    return settings


def load_settings(
    path: Path | str | None = None, overrides: list[str] | None = None
) -> BookingSettings:
    """Load settings from the defaults, an optional YAML file and optional
    dotlist overrides, in increasing order of precedence."""
    configs = []
    try:
        if path is not None:
            logger.info(f"Loading settings from {path}")
            configs.append(OmegaConf.load(path))
        if overrides:
            configs.append(OmegaConf.from_dotlist(overrides))
        cfg = OmegaConf.merge(*configs) if configs else None
    except (OSError, OmegaConfBaseException) as e:
        raise ConfigurationError(f"Could not load settings: {e}") from e
    return settings_from_config(cfg)
