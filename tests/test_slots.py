from __future__ import annotations

from datetime import time

import pytest

from salonbook.domain.scheduling.slots import SlotConfig, format_slot, generate_time_slots


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def test_default_day_runs_from_nine_to_half_past_seven() -> None:
    slots = generate_time_slots(SlotConfig())

    assert slots[0] == time(9, 0)
    assert slots[-1] == time(19, 30)
    assert len(slots) == 22


def test_slots_are_strictly_increasing_with_fixed_spacing() -> None:
    slots = generate_time_slots(SlotConfig(granularity_minutes=15))

    gaps = {_minutes(b) - _minutes(a) for a, b in zip(slots, slots[1:])}
    assert gaps == {15}


def test_last_start_is_inclusive_only_when_on_the_grid() -> None:
    slots = generate_time_slots(
        SlotConfig(day_start=time(10, 0), last_start=time(11, 0), granularity_minutes=45)
    )

    assert slots == [time(10, 0), time(10, 45)]


def test_single_slot_day() -> None:
    config = SlotConfig(day_start=time(12, 0), last_start=time(12, 0))

    assert generate_time_slots(config) == [time(12, 0)]


@pytest.mark.parametrize("granularity", [0, -30])
def test_non_positive_granularity_is_rejected(granularity: int) -> None:
    with pytest.raises(ValueError):
        SlotConfig(granularity_minutes=granularity)


def test_last_start_before_day_start_is_rejected() -> None:
    with pytest.raises(ValueError):
        SlotConfig(day_start=time(18, 0), last_start=time(9, 0))


def test_format_slot_is_zero_padded() -> None:
    assert format_slot(time(9, 5)) == "09:05"
