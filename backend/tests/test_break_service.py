"""
Tests für Pausenabzug – feste, variable und Mindestpause, gebuchte Pausen.
"""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from timecalc.schemas.schedule import BreakRule, BreakType
from timecalc.services.break_service import (
    WARN_AUTO_BREAK_APPLIED,
    WARN_MANUAL_BREAK,
    WARN_NO_BREAK_RECORDED,
    calculate_breaks,
    minimum_break_minutes,
)
from timecalc.services.pairing_service import pair_bookings
from tests.conftest import break_end, break_start, come, go, hm


def _breaks(bookings, rules):
    pairing = pair_bookings(bookings)
    return calculate_breaks(pairing.work_pairs, pairing.break_pairs, pairing.work_minutes, rules)


FIXED_LUNCH = BreakRule(break_type=BreakType.FIXED, start=hm("12:00"), end=hm("12:30"), duration=30)
VARIABLE_30 = BreakRule(break_type=BreakType.VARIABLE, duration=30)
MINIMUM_6H = BreakRule(break_type=BreakType.MINIMUM, after_work_minutes=360, duration=30)


# ── feste Pause ───────────────────────────────────────────────────────────────

def test_fixed_break_full_overlap():
    result = _breaks([come("08:00"), go("17:00")], [FIXED_LUNCH])
    assert result.auto_minutes == 30
    assert WARN_AUTO_BREAK_APPLIED in result.warnings


def test_fixed_break_partial_overlap():
    """Gehen um 12:10 → nur 10 min der Pausenzeit gearbeitet."""
    result = _breaks([come("08:00"), go("12:10")], [FIXED_LUNCH])
    assert result.auto_minutes == 10


def test_fixed_break_stacks_on_manual_break():
    """Gebuchte 45 min + feste 30 min = 75 min."""
    bookings = [come("08:00"), break_start("12:00"), break_end("12:45"), go("17:00")]
    result = _breaks(bookings, [FIXED_LUNCH])
    assert result.recorded_minutes == 45
    assert result.auto_minutes == 30
    assert result.total_minutes == 75


# ── variable Pause ────────────────────────────────────────────────────────────

def test_variable_break_without_manual_break():
    result = _breaks([come("08:00"), go("17:00")], [VARIABLE_30])
    assert result.auto_minutes == 30
    assert WARN_NO_BREAK_RECORDED in result.warnings


def test_variable_break_suppressed_by_manual_break():
    bookings = [come("08:00"), break_start("12:00"), break_end("12:15"), go("17:00")]
    result = _breaks(bookings, [VARIABLE_30])
    assert result.auto_minutes == 0
    assert result.total_minutes == 15
    assert WARN_MANUAL_BREAK in result.warnings
    assert WARN_AUTO_BREAK_APPLIED not in result.warnings


@given(duration=st.integers(1, 120), manual=st.integers(1, 90))
def test_break_exclusivity_property(duration, manual):
    """Mit gebuchter Pause trägt die variable Regel nie Minuten bei."""
    start = hm("12:00")
    bookings = [
        come("08:00"),
        break_start("12:00"),
        break_end(f"{(start + manual) // 60:02d}:{(start + manual) % 60:02d}"),
        go("18:00"),
    ]
    rule = BreakRule(break_type=BreakType.VARIABLE, duration=duration)
    result = _breaks(bookings, [rule])
    assert "variable" not in result.by_type
    assert result.auto_minutes == 0


# ── Mindestpause ──────────────────────────────────────────────────────────────

@pytest.mark.parametrize("gross,expected", [
    (359, 0),
    (360, 30),
    (370, 30),
    (600, 30),
])
def test_minimum_break_threshold(gross, expected):
    assert minimum_break_minutes(MINIMUM_6H, gross) == expected


@pytest.mark.parametrize("gross,expected", [
    (360, 0),
    (370, 10),
    (390, 30),
    (480, 30),
])
def test_minimum_break_proportional(gross, expected):
    rule = MINIMUM_6H.model_copy(update={"proportional": True})
    assert minimum_break_minutes(rule, gross) == expected


def test_paid_break_not_deducted():
    rule = VARIABLE_30.model_copy(update={"paid": True})
    result = _breaks([come("08:00"), go("17:00")], [rule])
    assert result.paid_minutes == 30
    assert result.auto_minutes == 0
    assert result.total_minutes == 0


def test_no_rules_no_warning_without_manual_break():
    result = _breaks([come("08:00"), go("12:00")], [])
    assert result.warnings == []
    assert result.total_minutes == 0


def test_rule_validation():
    with pytest.raises(ValueError):
        BreakRule(break_type=BreakType.FIXED, start=hm("12:30"), end=hm("12:00"), duration=30)
    with pytest.raises(ValueError):
        BreakRule(break_type=BreakType.MINIMUM, duration=30)
