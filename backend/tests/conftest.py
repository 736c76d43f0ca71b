"""
Shared pytest helpers for timecalc tests.

Bookings are built from "HH:MM" strings; everything runs without I/O.
"""
from datetime import date

import pytest

from timecalc.schemas.booking import BookingCategory, BookingDirection, BookingEvent
from timecalc.schemas.schedule import BreakRule, BreakType, ScheduleConfig, Tolerance

DAY = date(2025, 9, 1)  # Montag


# ── Stub-Helfer ───────────────────────────────────────────────────────────────

def hm(value: str) -> int:
    h, m = map(int, value.split(":"))
    return h * 60 + m


def make_booking(
    direction: BookingDirection,
    at: str,
    category: BookingCategory = BookingCategory.WORK,
    day: date = DAY,
    **kwargs,
) -> BookingEvent:
    return BookingEvent(
        booking_date=day,
        direction=direction,
        category=category,
        original_time=hm(at),
        **kwargs,
    )


def come(at: str, **kwargs) -> BookingEvent:
    return make_booking(BookingDirection.ARRIVAL, at, **kwargs)


def go(at: str, **kwargs) -> BookingEvent:
    return make_booking(BookingDirection.DEPARTURE, at, **kwargs)


def break_start(at: str, **kwargs) -> BookingEvent:
    return make_booking(BookingDirection.DEPARTURE, at, category=BookingCategory.BREAK, **kwargs)


def break_end(at: str, **kwargs) -> BookingEvent:
    return make_booking(BookingDirection.ARRIVAL, at, category=BookingCategory.BREAK, **kwargs)


def make_plan(**overrides) -> ScheduleConfig:
    """Fester Plan 08:00–16:30, Soll 8h, 30 min Mindestpause nach 6h."""
    data = dict(
        code="STD",
        come_from=hm("08:00"),
        go_to=hm("16:30"),
        target_minutes=480,
        tolerance=Tolerance(come_plus=5, go_plus=10, go_minus=5),
        breaks=[BreakRule(break_type=BreakType.MINIMUM, after_work_minutes=360, duration=30)],
    )
    data.update(overrides)
    return ScheduleConfig(**data)


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def plan() -> ScheduleConfig:
    return make_plan()


@pytest.fixture
def flex_plan() -> ScheduleConfig:
    """Gleitzeit 07:00–10:00 Kommen, 15:00–19:00 Gehen, Kernzeit 09:00–15:00."""
    return make_plan(
        code="GLZ",
        plan_type="flextime",
        come_from=hm("07:00"),
        come_to=hm("10:00"),
        go_from=hm("15:00"),
        go_to=hm("19:00"),
        core_start=hm("09:00"),
        core_end=hm("15:00"),
        tolerance=Tolerance(),
        breaks=[],
    )
