"""
Schichterkennung: wählt anhand von erstem Kommen / letztem Gehen den
tatsächlich gültigen Tagesplan (zugewiesener Plan oder bis zu sechs Alternativen).
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from timecalc.schemas.schedule import ScheduleConfig, ShiftDetectionWindows

logger = logging.getLogger(__name__)

WARN_NO_MATCHING_SHIFT = "NO_MATCHING_SHIFT"


class MatchType(str, Enum):
    NONE = "none"
    ARRIVAL = "arrival"
    DEPARTURE = "departure"
    BOTH = "both"


@dataclass
class ShiftDetectionResult:
    schedule: ScheduleConfig
    match_type: MatchType = MatchType.NONE
    is_original: bool = True
    warnings: list[str] = field(default_factory=list)

    @property
    def schedule_id(self) -> uuid.UUID:
        return self.schedule.id


def validate_shift_detection(windows: ShiftDetectionWindows) -> list[str]:
    """Prüft die Erkennungsfenster; liefert Fehlertexte (leer = gültig)."""
    errors: list[str] = []
    for name in ("arrive_from", "arrive_to", "depart_from", "depart_to"):
        value = getattr(windows, name)
        if value is not None and not 0 <= value <= 1440:
            errors.append(f"{name} muss zwischen 0 und 1440 liegen")

    for label, lo, hi in (
        ("Kommen", windows.arrive_from, windows.arrive_to),
        ("Gehen", windows.depart_from, windows.depart_to),
    ):
        if (lo is None) != (hi is None):
            errors.append(f"{label}-Fenster: von und bis müssen beide gesetzt sein")
        elif lo is not None and lo > hi:
            errors.append(f"{label}-Fenster: von liegt nach bis")
    return errors


def match_windows(
    windows: ShiftDetectionWindows,
    first_arrival: Optional[int],
    last_departure: Optional[int],
) -> MatchType:
    arrival_ok = (
        windows.has_arrival_window
        and first_arrival is not None
        and windows.arrive_from <= first_arrival <= windows.arrive_to
    )
    departure_ok = (
        windows.has_departure_window
        and last_departure is not None
        and windows.depart_from <= last_departure <= windows.depart_to
    )
    # Sind beide Fenster konfiguriert, müssen beide passen
    if windows.has_arrival_window and windows.has_departure_window:
        return MatchType.BOTH if arrival_ok and departure_ok else MatchType.NONE
    if arrival_ok:
        return MatchType.ARRIVAL
    if departure_ok:
        return MatchType.DEPARTURE
    return MatchType.NONE


class ShiftDetector:

    def __init__(self, plans: Mapping[uuid.UUID, ScheduleConfig]):
        # Nur lesend – Pläne werden von außen übergeben, nie verändert
        self.plans = MappingProxyType(dict(plans))

    def detect(
        self,
        assigned: ScheduleConfig,
        first_arrival: Optional[int],
        last_departure: Optional[int],
    ) -> ShiftDetectionResult:
        windows = assigned.shift_detection
        if not windows.is_configured or (first_arrival is None and last_departure is None):
            return ShiftDetectionResult(assigned)

        match = match_windows(windows, first_arrival, last_departure)
        if match != MatchType.NONE:
            return ShiftDetectionResult(assigned, match)

        for plan_id in assigned.alternative_plan_ids:
            plan = self.plans.get(plan_id)
            if plan is None:
                logger.debug("Alternativplan %s nicht vorhanden – übersprungen", plan_id)
                continue
            match = match_windows(plan.shift_detection, first_arrival, last_departure)
            if match != MatchType.NONE:
                logger.debug("Schicht erkannt: %s statt %s (%s)", plan.code, assigned.code, match.value)
                return ShiftDetectionResult(plan, match, is_original=False)

        logger.warning(
            "Keine passende Schicht für Plan %s (Kommen=%s, Gehen=%s)",
            assigned.code, first_arrival, last_departure,
        )
        return ShiftDetectionResult(assigned, warnings=[WARN_NO_MATCHING_SHIFT])
