from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from salonbook.domain.scheduling.availability import (
    BusyInterval,
    compute_available_slots,
    intervals_overlap,
)
from salonbook.domain.scheduling.slots import SlotConfig, generate_time_slots

KYIV = ZoneInfo("Europe/Kyiv")
DAY = date(2026, 11, 2)
CONFIG = SlotConfig()


def _busy(start: time, end: time) -> BusyInterval:
    return BusyInterval(
        start=datetime.combine(DAY, start, tzinfo=KYIV),
        end=datetime.combine(DAY, end, tzinfo=KYIV),
    )


def _available(duration: int, busy=(), days_off=()) -> list[time]:
    return compute_available_slots(DAY, duration, busy, days_off=days_off, config=CONFIG, tz=KYIV)


def test_free_day_offers_every_slot() -> None:
    assert _available(60) == generate_time_slots(CONFIG)


def test_slots_overlapping_a_visit_are_removed() -> None:
    slots = _available(60, [_busy(time(10, 0), time(11, 0))])

    assert time(9, 30) not in slots
    assert time(10, 0) not in slots
    assert time(10, 30) not in slots
    # Half-open intervals: ending exactly at 10:00 or starting at 11:00 is fine
    assert time(9, 0) in slots
    assert time(11, 0) in slots


def test_shorter_service_fits_right_before_a_visit() -> None:
    slots = _available(30, [_busy(time(10, 0), time(11, 0))])

    assert time(9, 30) in slots
    assert time(10, 0) not in slots
    assert time(10, 30) not in slots


def test_result_is_subset_of_generated_slots_and_ordered() -> None:
    slots = _available(90, [_busy(time(12, 0), time(13, 30)), _busy(time(15, 0), time(15, 30))])

    assert set(slots) <= set(generate_time_slots(CONFIG))
    assert slots == sorted(slots)


def test_day_off_empties_the_day() -> None:
    assert _available(30, days_off=[DAY]) == []


def test_other_days_off_do_not_matter() -> None:
    assert _available(30, days_off=[DAY + timedelta(days=1)]) == generate_time_slots(CONFIG)


def test_same_inputs_give_same_result() -> None:
    busy = [_busy(time(14, 0), time(15, 0))]

    assert _available(45, busy) == _available(45, busy)


def test_last_slot_may_run_past_closing() -> None:
    assert time(19, 30) in _available(120)


def test_naive_busy_times_are_salon_wall_time() -> None:
    naive = BusyInterval(start=datetime(2026, 11, 2, 10, 0), end=datetime(2026, 11, 2, 11, 0))

    assert _available(60, [naive]) == _available(60, [_busy(time(10, 0), time(11, 0))])


def test_busy_times_in_other_zones_are_converted() -> None:
    # Kyiv is UTC+2 in November
    utc_busy = BusyInterval(
        start=datetime(2026, 11, 2, 8, 0, tzinfo=timezone.utc),
        end=datetime(2026, 11, 2, 9, 0, tzinfo=timezone.utc),
    )

    slots = _available(30, [utc_busy])

    assert time(10, 0) not in slots
    assert time(11, 0) in slots


@pytest.mark.parametrize("duration", [0, -15])
def test_non_positive_duration_is_rejected(duration: int) -> None:
    with pytest.raises(ValueError):
        _available(duration)


def test_adjacent_intervals_do_not_overlap() -> None:
    a = datetime(2026, 11, 2, 10, 0, tzinfo=KYIV)
    b = a + timedelta(hours=1)
    c = b + timedelta(hours=1)

    assert not intervals_overlap(a, b, b, c)
    assert intervals_overlap(a, c, b, c)
