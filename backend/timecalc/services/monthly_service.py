"""
MonthlyAggregator: Monatssummen aus Tagesergebnissen und Gleitzeitübertrag.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from timecalc.core.exceptions import OrderingError
from timecalc.schemas.monthly import CreditType, MonthlyEvaluationRules
from timecalc.services.calculation_engine import DailyResult, DailyStatus

logger = logging.getLogger(__name__)

WARN_MONTHLY_CAP_REACHED = "MONTHLY_CAP_REACHED"
WARN_FLEXTIME_CAPPED = "FLEXTIME_CAPPED"
WARN_BELOW_THRESHOLD = "BELOW_THRESHOLD"
WARN_NO_CARRYOVER = "NO_CARRYOVER"
WARN_ZERO_FLOOR_APPLIED = "ZERO_FLOOR_APPLIED"


@dataclass
class MonthlyResult:
    year: int
    month: int
    gross_minutes: int = 0
    net_minutes: int = 0
    target_minutes: int = 0
    overtime_minutes: int = 0
    undertime_minutes: int = 0
    break_minutes: int = 0
    work_days: int = 0
    days_with_errors: int = 0

    flextime_start: int = 0
    flextime_change: int = 0
    flextime_raw: int = 0          # start + change vor allen Regeln
    flextime_credited: int = 0
    flextime_forfeited: int = 0
    flextime_end: int = 0
    annual_carryover: Optional[int] = None   # nur Dezember mit Jahresuntergrenze

    credit_type: Optional[CreditType] = None
    applied_caps: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    absences: dict[str, Decimal] = field(default_factory=dict)


def annual_rollover(balance: int, annual_floor: Optional[int]) -> int:
    """Jahreswechsel: negativer Saldo wird auf -annual_floor begrenzt."""
    if annual_floor is not None and balance < -annual_floor:
        return -annual_floor
    return balance


class MonthlyAggregator:

    def aggregate(
        self,
        year: int,
        month: int,
        daily_results: Sequence[DailyResult],
        previous_balance: int = 0,
        rules: MonthlyEvaluationRules | None = None,
        absences: Mapping[str, Decimal] | None = None,
    ) -> MonthlyResult:
        self._check_order(year, month, daily_results)

        result = MonthlyResult(year=year, month=month, flextime_start=previous_balance)
        for day in daily_results:
            result.gross_minutes += day.gross_minutes
            result.net_minutes += day.net_minutes
            result.target_minutes += day.target_minutes
            result.overtime_minutes += day.overtime_minutes
            result.undertime_minutes += day.undertime_minutes
            result.break_minutes += day.break_minutes
            if day.gross_minutes > 0:
                result.work_days += 1
            if day.status == DailyStatus.ERROR:
                result.days_with_errors += 1
        if absences:
            result.absences = dict(absences)

        result.flextime_change = result.overtime_minutes - result.undertime_minutes
        result.flextime_raw = previous_balance + result.flextime_change

        if rules is None:
            # ohne Auswertungsregeln: direkter Übertrag
            result.flextime_credited = result.flextime_change
            result.flextime_end = result.flextime_raw
            return result

        result.credit_type = rules.credit_type
        self._apply_credit_type(result, rules)

        if month == 12 and rules.annual_floor is not None:
            result.annual_carryover = annual_rollover(result.flextime_end, rules.annual_floor)
        logger.debug(
            "Monat %d-%02d: Änderung=%d Saldo %d → %d (%s)",
            year, month, result.flextime_change, previous_balance,
            result.flextime_end, rules.credit_type.value,
        )
        return result

    @staticmethod
    def _check_order(year: int, month: int, daily_results: Sequence[DailyResult]) -> None:
        previous = None
        for day in daily_results:
            if day.work_date is None:
                raise OrderingError("Tagesergebnis ohne Datum")
            if (day.work_date.year, day.work_date.month) != (year, month):
                raise OrderingError(f"{day.work_date} gehört nicht zu {year}-{month:02d}")
            if previous is not None and day.work_date <= previous:
                raise OrderingError(f"Tagesergebnisse nicht aufsteigend: {previous} → {day.work_date}")
            previous = day.work_date

    def _apply_credit_type(self, result: MonthlyResult, rules: MonthlyEvaluationRules) -> None:
        change = result.flextime_change
        credit_type = rules.credit_type

        if credit_type == CreditType.NO_CARRYOVER:
            result.flextime_credited = 0
            result.flextime_forfeited = max(0, result.flextime_raw)
            result.flextime_end = 0
            result.warnings.append(WARN_NO_CARRYOVER)
            return

        credited = change
        if credit_type == CreditType.AFTER_THRESHOLD:
            threshold = rules.flextime_threshold or 0
            if change > threshold:
                credited = change - threshold
                result.flextime_forfeited += threshold
            elif change > 0:
                credited = 0
                result.flextime_forfeited += change
                result.warnings.append(WARN_BELOW_THRESHOLD)
            # Minderzeit wird voll abgezogen

        if rules.max_flextime_per_month is not None and credited > rules.max_flextime_per_month:
            result.flextime_forfeited += credited - rules.max_flextime_per_month
            credited = rules.max_flextime_per_month
            result.applied_caps.append("monthly")
            result.warnings.append(WARN_MONTHLY_CAP_REACHED)

        result.flextime_credited = credited
        end = result.flextime_start + credited

        if credit_type == CreditType.ZERO_FLOOR and end < 0:
            end = 0
            result.applied_caps.append("zero_floor")
            result.warnings.append(WARN_ZERO_FLOOR_APPLIED)

        if rules.upper_limit is not None and end > rules.upper_limit:
            result.flextime_forfeited += end - rules.upper_limit
            end = rules.upper_limit
            result.applied_caps.append("upper")
            result.warnings.append(WARN_FLEXTIME_CAPPED)
        if rules.lower_limit is not None and end < -rules.lower_limit:
            end = -rules.lower_limit
            result.applied_caps.append("lower")
            if WARN_FLEXTIME_CAPPED not in result.warnings:
                result.warnings.append(WARN_FLEXTIME_CAPPED)

        result.flextime_end = end
