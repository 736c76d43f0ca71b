"""
CalculationEngine: Tagesberechnung aus Buchungen und Tagesplan.

Ablauf: Toleranz/Rundung → Paarbildung → Rahmenprüfung → Brutto → Pausen
→ Kappung → Netto → Mehr-/Minderzeit. Fachliche Befunde werden als Codes
gesammelt, nur fehlerhafte Eingaben brechen ab.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from timecalc.core.exceptions import MissingConfigurationError
from timecalc.schemas.booking import BookingCategory, BookingEvent
from timecalc.schemas.schedule import NoBookingBehavior, ScheduleConfig
from timecalc.services.break_service import calculate_breaks
from timecalc.services.capping_service import (
    CappingResult,
    aggregate_capping,
    max_net_capping,
    plan_span,
    window_capping,
)
from timecalc.services.pairing_service import BookingPair, pair_bookings
from timecalc.services.surcharge_service import SurchargeCredit
from timecalc.services.tolerance_service import normalize_bookings

logger = logging.getLogger(__name__)

# Fehlercodes
ERR_NO_BOOKINGS = "NO_BOOKINGS"
ERR_MISSING_GO = "MISSING_GO"
ERR_MISSING_COME = "MISSING_COME"
ERR_EARLY_COME = "EARLY_COME"
ERR_LATE_COME = "LATE_COME"
ERR_EARLY_GO = "EARLY_GO"
ERR_LATE_GO = "LATE_GO"
ERR_MISSED_CORE_START = "MISSED_CORE_START"
ERR_MISSED_CORE_END = "MISSED_CORE_END"
ERR_BELOW_MIN_WORK_TIME = "BELOW_MIN_WORK_TIME"

# Hinweise
WARN_NO_BOOKINGS_DEDUCTED = "NO_BOOKINGS_DEDUCTED"
WARN_NO_BOOKINGS_CREDITED = "NO_BOOKINGS_CREDITED"
WARN_VOCATIONAL_SCHOOL = "VOCATIONAL_SCHOOL"
WARN_ORDER_BOOKING_REQUIRED = "ORDER_BOOKING_REQUIRED"
WARN_MAX_TIME_REACHED = "MAX_TIME_REACHED"


class DailyStatus(str, Enum):
    CALCULATED = "calculated"
    ERROR = "error"


@dataclass
class DailyResult:
    work_date: Optional[date] = None
    schedule_id: Optional[uuid.UUID] = None
    schedule_code: str = ""
    gross_minutes: int = 0
    net_minutes: int = 0
    target_minutes: int = 0
    overtime_minutes: int = 0
    undertime_minutes: int = 0
    break_minutes: int = 0
    first_arrival: Optional[int] = None
    last_departure: Optional[int] = None
    booking_count: int = 0
    calculated_times: dict[uuid.UUID, int] = field(default_factory=dict)
    pairs: list[BookingPair] = field(default_factory=list)
    unpaired_in_ids: list[uuid.UUID] = field(default_factory=list)
    unpaired_out_ids: list[uuid.UUID] = field(default_factory=list)
    capping: CappingResult = field(default_factory=CappingResult)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    surcharges: list[SurchargeCredit] = field(default_factory=list)
    # auto_complete: synthetische Buchungen und Eröffnungspaare für den Folgetag
    synthetic_bookings: list[BookingEvent] = field(default_factory=list)
    next_day_pairs: list[BookingPair] = field(default_factory=list)

    @property
    def status(self) -> DailyStatus:
        return DailyStatus.ERROR if self.errors else DailyStatus.CALCULATED

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def capped_minutes(self) -> int:
        return self.capping.total_minutes

    @property
    def work_pairs(self) -> list[BookingPair]:
        return [p for p in self.pairs if p.category == BookingCategory.WORK and p.is_complete]

    def add_error(self, code: str) -> None:
        if code not in self.errors:
            self.errors.append(code)

    def add_warning(self, code: str) -> None:
        if code not in self.warnings:
            self.warnings.append(code)

    def settle(self) -> None:
        self.overtime_minutes = max(0, self.net_minutes - self.target_minutes)
        self.undertime_minutes = max(0, self.target_minutes - self.net_minutes)


class CalculationEngine:

    def calculate(
        self,
        schedule: ScheduleConfig,
        bookings: Iterable[BookingEvent],
        work_date: Optional[date] = None,
        target_minutes: Optional[int] = None,
    ) -> DailyResult:
        if schedule is None:
            raise MissingConfigurationError("Kein Tagesplan für die Berechnung")
        bookings = list(bookings)

        # 0. Sollzeit und Buchungsanzahl
        result = DailyResult(
            work_date=work_date,
            schedule_id=schedule.id,
            schedule_code=schedule.code,
            target_minutes=schedule.target_minutes if target_minutes is None else target_minutes,
            booking_count=sum(1 for b in bookings if not b.synthetic),
        )

        # 1. Keine Buchungen
        if not bookings:
            self._apply_no_booking_behavior(result, schedule.no_booking_behavior)
            return result

        # 2. Toleranz und Rundung
        times = normalize_bookings(bookings, schedule)

        # 3. Paarbildung
        pairing = pair_bookings(bookings, times, schedule.day_change_behavior)
        for b in pairing.synthetic:
            times[b.id] = b.edited_time
        result.calculated_times = times
        result.pairs = pairing.pairs
        result.next_day_pairs = pairing.next_day_pairs
        result.synthetic_bookings = pairing.synthetic
        for w in pairing.warnings:
            result.add_warning(w)
        result.unpaired_in_ids = [b.id for b in pairing.unpaired_in]
        result.unpaired_out_ids = [b.id for b in pairing.unpaired_out]
        if any(b.is_work for b in pairing.unpaired_in):
            result.add_error(ERR_MISSING_GO)
        if any(b.is_work for b in pairing.unpaired_out):
            result.add_error(ERR_MISSING_COME)

        # 4. Erstes Kommen / letztes Gehen
        work_pairs = pairing.work_pairs
        departure, departure_open, started_before = self._extract_first_last(
            result, schedule, work_pairs, bookings, times,
        )

        # 5. + 6. Rahmen und Kernzeit; läuft die Schicht über 24:00 weiter,
        # wird das Gehen erst am Folgetag geprüft
        self._check_windows(result, schedule, None if departure_open else departure)
        if schedule.is_flextime:
            self._check_core_time(result, schedule, departure, departure_open, started_before)

        # 7. Brutto
        result.gross_minutes = pairing.work_minutes

        # 8. Pausen
        breaks = calculate_breaks(work_pairs, pairing.break_pairs, result.gross_minutes, schedule.breaks)
        result.break_minutes = breaks.total_minutes
        for w in breaks.warnings:
            result.add_warning(w)

        # 9. Kappung und Netto
        entries = window_capping(work_pairs, schedule)
        window_capped = sum(e.minutes for e in entries)
        net = max(0, result.gross_minutes - result.break_minutes - window_capped)
        net, max_entry = max_net_capping(net, schedule.max_net_work_time)
        if max_entry is not None:
            entries.append(max_entry)
            result.add_warning(WARN_MAX_TIME_REACHED)
        result.capping = aggregate_capping(entries)
        result.net_minutes = net

        # 10. Mindestarbeitszeit
        if schedule.min_work_time is not None and net < schedule.min_work_time:
            result.add_error(ERR_BELOW_MIN_WORK_TIME)

        # 11. Mehr-/Minderzeit
        result.settle()
        logger.debug(
            "Tag %s (%s): brutto=%d pause=%d netto=%d soll=%d",
            work_date, schedule.code, result.gross_minutes, result.break_minutes,
            result.net_minutes, result.target_minutes,
        )
        return result

    @staticmethod
    def _apply_no_booking_behavior(result: DailyResult, behavior: NoBookingBehavior) -> None:
        if behavior == NoBookingBehavior.ERROR:
            result.add_error(ERR_NO_BOOKINGS)
        elif behavior == NoBookingBehavior.DEDUCT_TARGET:
            result.add_warning(WARN_NO_BOOKINGS_DEDUCTED)
        else:
            # Sollzeit wird gutgeschrieben
            result.gross_minutes = result.target_minutes
            result.net_minutes = result.target_minutes
            if behavior == NoBookingBehavior.VOCATIONAL_SCHOOL:
                result.add_warning(WARN_VOCATIONAL_SCHOOL)
            else:
                result.add_warning(WARN_NO_BOOKINGS_CREDITED)
            if behavior == NoBookingBehavior.TARGET_WITH_ORDER:
                result.add_warning(WARN_ORDER_BOOKING_REQUIRED)
        result.settle()

    @staticmethod
    def _extract_first_last(
        result: DailyResult,
        schedule: ScheduleConfig,
        work_pairs: list[BookingPair],
        bookings: list[BookingEvent],
        times: dict[uuid.UUID, int],
    ) -> tuple[Optional[int], bool, bool]:
        """
        Setzt erstes Kommen / letztes Gehen und liefert
        (letztes Gehen in Planminuten, Schicht läuft über 24:00 weiter,
        Schicht begann am Vortag).
        """
        arrivals = [times[b.id] for b in bookings if b.is_work and b.is_arrival and not b.synthetic]
        if arrivals:
            result.first_arrival = min(arrivals)
        started_before = any(p.start.synthetic for p in work_pairs)

        if work_pairs:
            spans = [(plan_span(p, schedule), p) for p in work_pairs]
            (_, end), last = max(spans, key=lambda item: item[0][1])
            result.last_departure = last.end_minutes
            return end, last.end.synthetic, started_before
        departures = [times[b.id] for b in bookings if b.is_work and not b.is_arrival and not b.synthetic]
        if departures:
            result.last_departure = max(departures)
            return schedule.plan_minutes(result.last_departure), False, started_before
        return None, False, started_before

    @staticmethod
    def _check_windows(result: DailyResult, schedule: ScheduleConfig, departure: Optional[int]) -> None:
        arrival = result.first_arrival
        if arrival is not None and schedule.come_from is not None:
            latest = schedule.plan_minutes(schedule.come_to if schedule.come_to is not None else schedule.come_from)
            if arrival < schedule.come_from:
                result.add_error(ERR_EARLY_COME)
            elif arrival > latest:
                result.add_error(ERR_LATE_COME)

        edge = schedule.plan_minutes(schedule.departure_edge)
        if departure is not None and edge is not None:
            earliest = schedule.plan_minutes(schedule.go_from) if schedule.go_from is not None else edge
            if departure < earliest:
                result.add_error(ERR_EARLY_GO)
            elif departure > edge:
                result.add_error(ERR_LATE_GO)

    @staticmethod
    def _check_core_time(
        result: DailyResult,
        schedule: ScheduleConfig,
        departure: Optional[int],
        departure_open: bool,
        started_before: bool,
    ) -> None:
        core_start = schedule.plan_minutes(schedule.core_start)
        core_end = schedule.plan_minutes(schedule.core_end)
        if core_start is not None and not (result.first_arrival is None and started_before):
            if result.first_arrival is None or result.first_arrival > core_start:
                result.add_error(ERR_MISSED_CORE_START)
        if core_end is not None and not departure_open:
            if departure is None or departure < core_end:
                result.add_error(ERR_MISSED_CORE_END)


def apply_calculated_times(bookings: Iterable[BookingEvent], result: DailyResult) -> list[BookingEvent]:
    """Schreibt die berechneten Zeiten zurück in die Buchungen (zum Persistieren durch den Aufrufer)."""
    updated = []
    for b in bookings:
        if b.id in result.calculated_times:
            b.calculated_time = result.calculated_times[b.id]
            updated.append(b)
    return updated
