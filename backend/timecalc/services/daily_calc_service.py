"""
DailyCalcService: Tagesberechnung inkl. freier Tage, Feiertage, Tageswechsel,
Schichterkennung und Zuschlägen; Neuberechnung ganzer Zeiträume.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from timecalc.core.exceptions import MalformedInputError
from timecalc.schemas.booking import BookingEvent
from timecalc.schemas.schedule import ScheduleConfig
from timecalc.services.calculation_engine import CalculationEngine, DailyResult
from timecalc.services.pairing_service import select_day_bookings
from timecalc.services.shift_service import ShiftDetector
from timecalc.services.surcharge_service import calculate_surcharges
from timecalc.utils.german_holidays import holiday_category as lookup_holiday_category

logger = logging.getLogger(__name__)

WARN_OFF_DAY = "OFF_DAY"
WARN_BOOKINGS_ON_OFF_DAY = "BOOKINGS_ON_OFF_DAY"
WARN_HOLIDAY = "HOLIDAY"
WARN_WORKED_ON_HOLIDAY = "WORKED_ON_HOLIDAY"

OFF_DAY_CODE = "FREI"


@dataclass
class DayInput:
    work_date: date
    schedule: Optional[ScheduleConfig]
    bookings: Sequence[BookingEvent] = ()
    previous_bookings: Sequence[BookingEvent] = ()
    next_bookings: Sequence[BookingEvent] = ()
    holiday_category: Optional[int] = None
    employee_target: Optional[int] = None
    is_absence_day: bool = False


@dataclass
class RangeResult:
    results: dict[date, DailyResult] = field(default_factory=dict)
    failures: dict[date, str] = field(default_factory=dict)

    @property
    def is_ok(self) -> bool:
        return len(self.failures) == 0


def _raw_first_last(bookings: Sequence[BookingEvent]) -> tuple[Optional[int], Optional[int]]:
    real = [b for b in bookings if b.is_work and not b.synthetic]
    arrivals = [b.edited_time for b in real if b.is_arrival]
    departures = [b.edited_time for b in real if not b.is_arrival]
    return (min(arrivals) if arrivals else None, max(departures) if departures else None)


class DailyCalcService:

    def __init__(
        self,
        plans: Mapping[uuid.UUID, ScheduleConfig] | None = None,
        engine: CalculationEngine | None = None,
        holiday_state: str | None = None,
    ):
        self.detector = ShiftDetector(plans or {})
        self.engine = engine or CalculationEngine()
        self.holiday_state = holiday_state

    def calculate_day(self, day: DayInput) -> DailyResult:
        category = day.holiday_category
        if category is None:
            category = lookup_holiday_category(day.work_date, self.holiday_state)
        is_holiday = category > 0
        schedule = day.schedule

        # Freier Tag: kein Tagesplan zugewiesen
        if schedule is None:
            return self._off_day(day)

        bookings = select_day_bookings(
            day.bookings,
            schedule.day_change_behavior,
            previous=day.previous_bookings,
            following=day.next_bookings,
            work_date=day.work_date,
        )

        if is_holiday and not bookings:
            return self._holiday_credit(day, schedule, category)

        # Schichterkennung auf Basis der unbearbeiteten Zeiten
        first_arrival, last_departure = _raw_first_last(bookings)
        detection = self.detector.detect(schedule, first_arrival, last_departure)
        resolved = detection.schedule
        target = resolved.resolve_target(day.employee_target, day.is_absence_day)

        result = self.engine.calculate(resolved, bookings, work_date=day.work_date, target_minutes=target)
        for w in detection.warnings:
            result.add_warning(w)
        if is_holiday:
            result.add_warning(WARN_WORKED_ON_HOLIDAY)

        result.surcharges = calculate_surcharges(
            result.work_pairs,
            resolved.surcharges,
            is_holiday=is_holiday,
            holiday_category=category if is_holiday else None,
            worked_minutes=result.net_minutes,
        )
        return result

    def _off_day(self, day: DayInput) -> DailyResult:
        if not day.bookings:
            result = DailyResult(work_date=day.work_date, schedule_code=OFF_DAY_CODE)
            result.add_warning(WARN_OFF_DAY)
            return result
        # Gebuchte Zeit am freien Tag wird ohne Rahmen und Soll bewertet
        result = self.engine.calculate(
            ScheduleConfig(code=OFF_DAY_CODE), day.bookings, work_date=day.work_date, target_minutes=0,
        )
        result.schedule_id = None
        result.add_warning(WARN_OFF_DAY)
        result.add_warning(WARN_BOOKINGS_ON_OFF_DAY)
        return result

    @staticmethod
    def _holiday_credit(day: DayInput, schedule: ScheduleConfig, category: int) -> DailyResult:
        target = schedule.resolve_target(day.employee_target, day.is_absence_day)
        credit = schedule.holiday_credits.get(category, 0)
        result = DailyResult(
            work_date=day.work_date,
            schedule_id=schedule.id,
            schedule_code=schedule.code,
            target_minutes=target,
            gross_minutes=credit,
            net_minutes=credit,
        )
        result.add_warning(WARN_HOLIDAY)
        result.settle()
        return result

    def recalculate_range(self, days: Iterable[DayInput]) -> RangeResult:
        """
        Berechnet mehrere Tage. Ein Tag mit fehlerhaften Eingaben wird
        übersprungen und gemeldet, der Rest läuft weiter.
        """
        outcome = RangeResult()
        for day in days:
            try:
                outcome.results[day.work_date] = self.calculate_day(day)
            except MalformedInputError as e:
                logger.warning("Tag %s nicht berechnet: %s", day.work_date, e)
                outcome.failures[day.work_date] = str(e)
        return outcome
