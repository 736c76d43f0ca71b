"""
Tests für Schichterkennung – eigener Plan, Alternativen in Reihenfolge,
kein Treffer, Validierung der Erkennungsfenster.
"""
import uuid

import pytest
from pydantic import ValidationError

from timecalc.schemas.schedule import ShiftDetectionWindows
from timecalc.services.shift_service import (
    WARN_NO_MATCHING_SHIFT,
    MatchType,
    ShiftDetector,
    match_windows,
    validate_shift_detection,
)
from tests.conftest import hm, make_plan


def _plans():
    late = make_plan(
        code="SPAET",
        target_minutes=450,
        shift_detection=ShiftDetectionWindows(
            arrive_from=hm("13:00"), arrive_to=hm("15:00"),
            depart_from=hm("21:00"), depart_to=hm("23:00"),
        ),
    )
    night = make_plan(
        code="NACHT",
        shift_detection=ShiftDetectionWindows(arrive_from=hm("21:00"), arrive_to=hm("23:00")),
    )
    early = make_plan(
        code="FRUEH",
        shift_detection=ShiftDetectionWindows(arrive_from=hm("05:00"), arrive_to=hm("07:00")),
        alternative_plan_ids=[uuid.uuid4(), late.id, night.id],
    )
    return early, late, night


def test_assigned_plan_kept_when_windows_match():
    early, late, night = _plans()
    detector = ShiftDetector({late.id: late, night.id: night})
    result = detector.detect(early, hm("06:00"), hm("14:00"))
    assert result.schedule is early
    assert result.match_type == MatchType.ARRIVAL
    assert result.is_original
    assert result.warnings == []


def test_first_matching_alternative_selected():
    """Fehlender Alternativplan wird übersprungen, dann Spätschicht (beide Fenster)."""
    early, late, night = _plans()
    detector = ShiftDetector({late.id: late, night.id: night})
    result = detector.detect(early, hm("13:30"), hm("22:00"))
    assert result.schedule.code == "SPAET"
    assert result.match_type == MatchType.BOTH
    assert not result.is_original


def test_both_windows_must_match():
    early, late, night = _plans()
    assert match_windows(late.shift_detection, hm("13:30"), hm("18:00")) == MatchType.NONE


def test_later_alternative_when_earlier_does_not_match():
    early, late, night = _plans()
    detector = ShiftDetector({late.id: late, night.id: night})
    result = detector.detect(early, hm("22:00"), hm("06:00"))
    assert result.schedule.code == "NACHT"


def test_no_match_keeps_original_with_warning():
    early, late, night = _plans()
    detector = ShiftDetector({late.id: late, night.id: night})
    result = detector.detect(early, hm("10:00"), hm("18:00"))
    assert result.schedule is early
    assert result.is_original
    assert result.warnings == [WARN_NO_MATCHING_SHIFT]


def test_no_detection_windows_keeps_plan():
    plan = make_plan()
    result = ShiftDetector({}).detect(plan, hm("10:00"), hm("18:00"))
    assert result.schedule is plan
    assert result.match_type == MatchType.NONE
    assert result.warnings == []


def test_no_times_keeps_plan():
    early, _, _ = _plans()
    result = ShiftDetector({}).detect(early, None, None)
    assert result.schedule is early
    assert result.warnings == []


def test_detector_plans_are_read_only():
    early, late, _ = _plans()
    detector = ShiftDetector({late.id: late})
    with pytest.raises(TypeError):
        detector.plans[early.id] = early


def test_at_most_six_alternatives():
    with pytest.raises(ValidationError):
        make_plan(alternative_plan_ids=[uuid.uuid4() for _ in range(7)])


# ── validate_shift_detection ──────────────────────────────────────────────────

def test_valid_windows_have_no_errors():
    assert validate_shift_detection(ShiftDetectionWindows(arrive_from=300, arrive_to=420)) == []
    assert validate_shift_detection(ShiftDetectionWindows()) == []


def test_incomplete_window_reported():
    errors = validate_shift_detection(ShiftDetectionWindows(arrive_from=300))
    assert len(errors) == 1
    assert "Kommen" in errors[0]


def test_reversed_window_reported():
    errors = validate_shift_detection(ShiftDetectionWindows(depart_from=900, depart_to=800))
    assert len(errors) == 1
    assert "Gehen" in errors[0]


def test_out_of_range_reported():
    errors = validate_shift_detection(ShiftDetectionWindows(arrive_from=300, arrive_to=1500))
    assert any("arrive_to" in e for e in errors)
