"""
VacationCalculator: Jahresurlaubsanspruch (anteilig, Teilzeit, Zusatzurlaub)
und Resturlaubsübertrag mit Kappungsregeln und Mitarbeiter-Ausnahmen.
"""
from __future__ import annotations

import calendar
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from timecalc.core.config import settings
from timecalc.core.exceptions import OrderingError
from timecalc.schemas.vacation import (
    CappingRule,
    CappingRuleGroup,
    CappingScope,
    EmployeeCappingException,
    EntitlementInput,
    ExemptionType,
    SpecialCalcType,
    SpecialCalculation,
    VacationBasis,
    VacationYearBalance,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MONTHS_PER_YEAR = 12


# ── Datumshilfen ──────────────────────────────────────────────────────────────

def add_months(d: date, months: int) -> date:
    index = d.month - 1 + months
    year = d.year + index // 12
    month = index % 12 + 1
    return date(year, month, min(d.day, calendar.monthrange(year, month)[1]))


def full_years(since: date, on: date) -> int:
    """Vollendete Jahre zwischen since und on (Alter, Betriebszugehörigkeit)."""
    years = on.year - since.year - ((on.month, on.day) < (since.month, since.day))
    return max(0, years)


def basis_period(inp: EntitlementInput) -> tuple[date, date]:
    if inp.basis == VacationBasis.ENTRY_DATE and inp.entry_date is not None:
        month = inp.entry_date.month
        # 29.2. → 28.2. in Nicht-Schaltjahren
        day = min(inp.entry_date.day, calendar.monthrange(inp.year, month)[1])
        start = date(inp.year, month, day)
        return start, add_months(start, MONTHS_PER_YEAR) - timedelta(days=1)
    return date(inp.year, 1, 1), date(inp.year, 12, 31)


def months_employed(inp: EntitlementInput) -> int:
    """Beschäftigungsmonate im Bezugsjahr; angefangene Monate zählen voll."""
    start, _ = basis_period(inp)
    employed_from = inp.entry_date or date.min
    employed_to = inp.exit_date or date.max
    count = 0
    for i in range(MONTHS_PER_YEAR):
        month_start = add_months(start, i)
        month_end = add_months(start, i + 1) - timedelta(days=1)
        if employed_from <= month_end and employed_to >= month_start:
            count += 1
    return count


def round_vacation_days(days: Decimal, half_days: bool = True) -> Decimal:
    if half_days:
        return (days * 2).quantize(Decimal("1"), rounding=ROUND_HALF_UP) / 2
    return days.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ── Ergebnisse ────────────────────────────────────────────────────────────────

@dataclass
class EntitlementResult:
    base_days: Decimal
    months_employed: int
    prorated_days: Decimal
    part_time_factor: Decimal
    part_time_days: Decimal
    bonus_days: Decimal
    total_days: Decimal
    age: Optional[int] = None
    tenure_years: Optional[int] = None
    applied_bonuses: list[str] = field(default_factory=list)


@dataclass
class AppliedCappingRule:
    rule_id: uuid.UUID
    rule_name: str
    scope: CappingScope
    cap_value: Decimal
    applied: bool = False
    exception_active: bool = False
    forfeited_days: Decimal = ZERO


@dataclass
class CarryoverResult:
    available: Decimal
    capped_carryover: Decimal
    forfeited_days: Decimal = ZERO
    rules_applied: list[AppliedCappingRule] = field(default_factory=list)

    @property
    def has_exception(self) -> bool:
        return any(r.exception_active for r in self.rules_applied)


def resolve_capping_rules(
    tariff_group: CappingRuleGroup | None,
    employee_group: CappingRuleGroup | None = None,
) -> list[CappingRule]:
    """Mitarbeitergruppe überschreibt die Tarifgruppe; Jahresende vor Stichtag."""
    group = employee_group if employee_group is not None else tariff_group
    if group is None:
        return []
    return sorted(group.rules, key=lambda r: r.scope != CappingScope.YEAR_END)


class VacationCalculator:

    def __init__(self, standard_weekly_hours: Decimal | None = None, round_to_half_day: bool | None = None):
        self.standard_weekly_hours = standard_weekly_hours or settings.STANDARD_WEEKLY_HOURS
        self.round_to_half_day = (
            settings.VACATION_ROUND_TO_HALF_DAY if round_to_half_day is None else round_to_half_day
        )

    def calculate_entitlement(
        self,
        inp: EntitlementInput,
        special_calcs: Sequence[SpecialCalculation] = (),
    ) -> EntitlementResult:
        reference = inp.reference_date or date(inp.year, 12, 31)
        age = full_years(inp.birth_date, reference) if inp.birth_date else None
        tenure = full_years(inp.entry_date, reference) if inp.entry_date else None

        months = months_employed(inp)
        prorated = inp.base_days * months / MONTHS_PER_YEAR
        standard = inp.standard_weekly_hours or self.standard_weekly_hours
        factor = inp.weekly_hours / standard
        part_time = prorated * factor

        bonus = ZERO
        applied: list[str] = []
        for calc in special_calcs:
            if calc.calc_type == SpecialCalcType.AGE:
                hit = age is not None and calc.matches(age)
            elif calc.calc_type == SpecialCalcType.TENURE:
                hit = tenure is not None and calc.matches(tenure)
            else:
                hit = inp.has_disability
            if hit:
                bonus += calc.bonus_days
                applied.append(f"{calc.calc_type.value}>={calc.threshold}")

        total = round_vacation_days(part_time + bonus, self.round_to_half_day)
        return EntitlementResult(
            base_days=inp.base_days,
            months_employed=months,
            prorated_days=prorated,
            part_time_factor=factor,
            part_time_days=part_time,
            bonus_days=bonus,
            total_days=total,
            age=age,
            tenure_years=tenure,
            applied_bonuses=applied,
        )

    def calculate_carryover(
        self,
        balance: VacationYearBalance,
        rules: Sequence[CappingRule] = (),
        reference_date: date | None = None,
        exceptions: Sequence[EmployeeCappingException] = (),
    ) -> CarryoverResult:
        """
        Übertrag aus dem Jahr der Bilanz ins Folgejahr.

        Jahresende-Regeln kappen sofort, Stichtagsregeln erst wenn reference_date
        nach dem Stichtag (Folgejahr) liegt. Volle Ausnahme überspringt die Regel,
        Teilausnahme behält mindestens retain_days.
        """
        available = balance.available
        reference = reference_date or date(balance.year + 1, 1, 1)
        if available <= 0:
            return CarryoverResult(available=available, capped_carryover=ZERO)

        by_rule = {
            e.rule_id: e for e in exceptions if e.year is None or e.year == balance.year
        }
        result = CarryoverResult(available=available, capped_carryover=available)
        current = available

        for rule in rules:
            entry = AppliedCappingRule(rule.id, rule.name or rule.code, rule.scope, rule.cap_value)
            result.rules_applied.append(entry)
            exception = by_rule.get(rule.id)
            if exception is not None and exception.exemption_type == ExemptionType.FULL:
                entry.exception_active = True
                continue

            cap = rule.cap_value
            if exception is not None:
                entry.exception_active = True
                cap = max(cap, exception.retain_days)

            if rule.scope == CappingScope.MID_YEAR and reference <= rule.cutoff_date(balance.year):
                continue
            if current > cap:
                entry.applied = True
                entry.forfeited_days = current - cap
                result.forfeited_days += current - cap
                current = cap

        result.capped_carryover = current
        return result

    def roll_over(
        self,
        balances: Sequence[VacationYearBalance],
        rules: Sequence[CappingRule] = (),
        exceptions: Sequence[EmployeeCappingException] = (),
    ) -> list[VacationYearBalance]:
        """
        Trägt Resturlaub Jahr für Jahr weiter. Ausgewertet wird zum 1.1. des
        Folgejahres, Stichtagsregeln greifen also erst bei späterer Prüfung.
        """
        updated: list[VacationYearBalance] = []
        for balance in balances:
            if updated:
                prev = updated[-1]
                if balance.year <= prev.year:
                    raise OrderingError(f"Urlaubsjahre nicht aufsteigend: {prev.year} → {balance.year}")
                carry = self.calculate_carryover(prev, rules, date(prev.year + 1, 1, 1), exceptions)
                balance = balance.model_copy(update={"carryover": carry.capped_carryover})
                logger.debug(
                    "Urlaubsübertrag %d → %d: %s (verfallen %s)",
                    prev.year, balance.year, carry.capped_carryover, carry.forfeited_days,
                )
            updated.append(balance)
        return updated
