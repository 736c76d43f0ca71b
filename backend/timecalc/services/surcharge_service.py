"""
Zuschläge: Gutschrift auf Zeitkonten für Arbeit in konfigurierten Zeitfenstern
(Nacht, Feiertag, ...). Ersetzt die festen §3b-Sätze durch frei konfigurierbare Regeln.
"""
import uuid
from collections import defaultdict
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence

from timecalc.schemas.booking import MINUTES_PER_DAY
from timecalc.schemas.surcharge import SurchargeMode, SurchargeRule
from timecalc.services.pairing_service import BookingPair, overlap


@dataclass
class SurchargeCredit:
    account_id: uuid.UUID
    account_code: str
    overlap_minutes: int = 0
    credited_minutes: int = 0


def split_overnight_window(time_from: int, time_to: int, **rule_fields: Any) -> list[SurchargeRule]:
    """22:00–06:00 → [22:00, 24:00) und [00:00, 06:00)."""
    if time_from < time_to:
        return [SurchargeRule(time_from=time_from, time_to=time_to, **rule_fields)]
    rules = [SurchargeRule(time_from=time_from, time_to=MINUTES_PER_DAY, **rule_fields)]
    if time_to > 0:
        rules.append(SurchargeRule(time_from=0, time_to=time_to, **rule_fields))
    return rules


def is_applicable(
    rule: SurchargeRule,
    is_holiday: bool,
    holiday_category: Optional[int] = None,
    worked_minutes: Optional[int] = None,
) -> bool:
    if is_holiday:
        if not rule.applies_on_holiday:
            return False
        if rule.holiday_categories and holiday_category not in rule.holiday_categories:
            return False
    elif not rule.applies_on_workday:
        return False
    if rule.min_work_minutes is not None and (worked_minutes or 0) < rule.min_work_minutes:
        return False
    return True


def pair_overlap(pair: BookingPair, rule: SurchargeRule) -> int:
    start, end = pair.start_minutes, pair.end_absolute
    minutes = overlap(start, end, rule.time_from, rule.time_to)
    if end > MINUTES_PER_DAY:
        # Anteil nach Mitternacht gegen das Fenster des Folgetags
        minutes += overlap(start, end, rule.time_from + MINUTES_PER_DAY, rule.time_to + MINUTES_PER_DAY)
    return minutes


def _credit(rule: SurchargeRule, pair: BookingPair, minutes: int) -> Decimal:
    if minutes <= 0:
        return Decimal("0")
    if rule.mode == SurchargeMode.FIXED:
        return rule.value
    if rule.mode == SurchargeMode.PER_MINUTE:
        return minutes * rule.value
    return pair.duration * rule.value / Decimal("100")


def calculate_surcharges(
    work_pairs: Sequence[BookingPair],
    rules: Sequence[SurchargeRule],
    is_holiday: bool = False,
    holiday_category: Optional[int] = None,
    worked_minutes: Optional[int] = None,
) -> list[SurchargeCredit]:
    """Summiert Überschneidung und Gutschrift je Zielkonto."""
    overlaps: dict[uuid.UUID, int] = defaultdict(int)
    credits: dict[uuid.UUID, Decimal] = defaultdict(Decimal)
    codes: dict[uuid.UUID, str] = {}

    for rule in rules:
        if not is_applicable(rule, is_holiday, holiday_category, worked_minutes):
            continue
        for pair in work_pairs:
            if not pair.is_complete:
                continue
            minutes = pair_overlap(pair, rule)
            overlaps[rule.account_id] += minutes
            credits[rule.account_id] += _credit(rule, pair, minutes)
            codes.setdefault(rule.account_id, rule.account_code)

    return [
        SurchargeCredit(
            account_id=account_id,
            account_code=codes[account_id],
            overlap_minutes=overlaps[account_id],
            credited_minutes=int(credits[account_id].quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
        )
        for account_id in codes
        if overlaps[account_id] > 0
    ]
