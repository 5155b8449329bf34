"""
Availability calculation

Subtracts busy intervals and days off from the generated slots for a requested
service duration. Everything here is a pure function of its inputs; the result
is advisory only - the booking writer re-checks conflicts at write time.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from ...config import SALON_TIMEZONE
from .slots import SlotConfig, generate_time_slots


@dataclass(frozen=True)
class BusyInterval:
    """Time already taken by a non-cancelled appointment: [start, end)"""

    start: datetime
    end: datetime


@lru_cache
def salon_timezone() -> ZoneInfo:
    return ZoneInfo(SALON_TIMEZONE)


def localize(value: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Express an instant in the salon timezone.

    Naive values are wall-clock salon time (SQLite drops offsets on storage).
    """
    tz = tz or salon_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def slot_start(day: date, slot: time, tz: Optional[tzinfo] = None) -> datetime:
    """The instant a slot begins on a given day"""
    return datetime.combine(day, slot, tzinfo=tz or salon_timezone())


def day_window(day: date, tz: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
    """[local midnight, next local midnight) for a day"""
    start = datetime.combine(day, time.min, tzinfo=tz or salon_timezone())
    return start, start + timedelta(days=1)


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end) share time"""
    return a_start < b_end and b_start < a_end


def compute_available_slots(
    day: date,
    duration_minutes: int,
    busy: Iterable[BusyInterval],
    days_off: Iterable[date] = (),
    config: Optional[SlotConfig] = None,
    tz: Optional[tzinfo] = None,
) -> list[time]:
    """
    Slots of `day` whose interval [slot, slot + duration) is free.

    A slot whose interval runs past the last configured start is still offered;
    only start times are bounded by business hours.

    Args:
        day: Requested date
        duration_minutes: Service duration of the chosen offering
        busy: Busy intervals of the employee on that day
        days_off: The employee's days off; a match empties the result
        config: Slot configuration (environment settings by default)
        tz: Salon timezone (environment settings by default)

    Returns:
        Available slot start times in increasing order
    """
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")

    if day in set(days_off):
        return []

    tz = tz or salon_timezone()
    duration = timedelta(minutes=duration_minutes)
    busy_local = [(localize(b.start, tz), localize(b.end, tz)) for b in busy]

    available = []
    for slot in generate_time_slots(config):
        start = slot_start(day, slot, tz)
        end = start + duration
        if not any(intervals_overlap(start, end, b_start, b_end) for b_start, b_end in busy_local):
            available.append(slot)
    return available
