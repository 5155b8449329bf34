"""
Slot generation

Produces the bookable start times of a working day. Pure configuration, no I/O:
the output is the same for every calendar day.
"""

from dataclasses import dataclass
from datetime import time
from functools import lru_cache
from typing import Optional

from ...config import SLOT_DAY_START, SLOT_GRANULARITY_MINUTES, SLOT_LAST_START
from ...shared.validators import parse_time_of_day


@dataclass(frozen=True)
class SlotConfig:
    """
    Business hours for slot generation.

    Attributes:
        day_start: First bookable start time (inclusive)
        last_start: Last bookable start time (inclusive)
        granularity_minutes: Step between consecutive starts
    """

    day_start: time = time(9, 0)
    last_start: time = time(19, 30)
    granularity_minutes: int = 30

    def __post_init__(self):
        if self.granularity_minutes <= 0:
            raise ValueError(
                f"granularity_minutes must be positive, got {self.granularity_minutes}"
            )
        if self.last_start < self.day_start:
            raise ValueError("last_start must not be earlier than day_start")

    @property
    def first_minute(self) -> int:
        return self.day_start.hour * 60 + self.day_start.minute

    @property
    def last_minute(self) -> int:
        return self.last_start.hour * 60 + self.last_start.minute


@lru_cache
def get_slot_config() -> SlotConfig:
    """Slot configuration from environment settings"""
    return SlotConfig(
        day_start=parse_time_of_day(SLOT_DAY_START),
        last_start=parse_time_of_day(SLOT_LAST_START),
        granularity_minutes=SLOT_GRANULARITY_MINUTES,
    )


def generate_time_slots(config: Optional[SlotConfig] = None) -> list[time]:
    """
    Ordered start times for one day.

    With the default configuration: 09:00, 09:30, ..., 19:00, 19:30.
    """
    config = config or get_slot_config()
    slots = []
    minute = config.first_minute
    while minute <= config.last_minute:
        slots.append(time(minute // 60, minute % 60))
        minute += config.granularity_minutes
    return slots


def format_slot(slot: time) -> str:
    """Slot as "HH:MM" """
    return slot.strftime("%H:%M")
