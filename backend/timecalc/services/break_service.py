"""
Pausenabzug: gebuchte Pausen plus feste, variable und Mindestpausen laut Tagesplan.
"""
from dataclasses import dataclass, field
from typing import Sequence

from timecalc.schemas.schedule import BreakRule, BreakType
from timecalc.services.pairing_service import BookingPair, overlap

WARN_MANUAL_BREAK = "MANUAL_BREAK"
WARN_NO_BREAK_RECORDED = "NO_BREAK_RECORDED"
WARN_AUTO_BREAK_APPLIED = "AUTO_BREAK_APPLIED"


@dataclass
class BreakResult:
    recorded_minutes: int = 0   # gebuchte Pausenpaare
    auto_minutes: int = 0       # aus Pausenregeln abgezogen
    paid_minutes: int = 0       # bezahlte Pausen, nicht abgezogen
    by_type: dict[str, int] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return self.recorded_minutes + self.auto_minutes


def fixed_break_minutes(rule: BreakRule, work_pairs: Sequence[BookingPair]) -> int:
    covered = sum(
        overlap(p.start_minutes, p.end_absolute, rule.start, rule.end) for p in work_pairs
    )
    return min(covered, rule.duration)


def minimum_break_minutes(rule: BreakRule, gross_minutes: int) -> int:
    threshold = rule.after_work_minutes
    if gross_minutes < threshold:
        return 0
    if rule.proportional:
        # knapp über der Schwelle nur die tatsächlich darüber liegende Zeit
        return min(rule.duration, gross_minutes - threshold)
    return rule.duration


def calculate_breaks(
    work_pairs: Sequence[BookingPair],
    break_pairs: Sequence[BookingPair],
    gross_minutes: int,
    rules: Sequence[BreakRule],
) -> BreakResult:
    result = BreakResult()
    result.recorded_minutes = sum(p.duration for p in break_pairs)
    has_manual_break = any(p.is_complete for p in break_pairs)

    if has_manual_break:
        result.warnings.append(WARN_MANUAL_BREAK)
    elif rules:
        result.warnings.append(WARN_NO_BREAK_RECORDED)

    for rule in rules:
        if rule.break_type == BreakType.FIXED:
            minutes = fixed_break_minutes(rule, work_pairs)
        elif rule.break_type == BreakType.VARIABLE:
            # gebuchte Pause ersetzt die variable Pause vollständig
            minutes = 0 if has_manual_break else rule.duration
        else:
            minutes = minimum_break_minutes(rule, gross_minutes)

        if minutes <= 0:
            continue
        key = rule.break_type.value
        result.by_type[key] = result.by_type.get(key, 0) + minutes
        if rule.paid:
            result.paid_minutes += minutes
        else:
            result.auto_minutes += minutes

    if result.auto_minutes > 0:
        result.warnings.append(WARN_AUTO_BREAK_APPLIED)
    return result
