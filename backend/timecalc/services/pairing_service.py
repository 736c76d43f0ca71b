"""
Paarbildung Kommen/Gehen bzw. Pausenbeginn/-ende, inkl. Mitternachtsübergang
und Auswahl der Buchungen über Tagesgrenzen (Tageswechselverhalten).
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from timecalc.schemas.booking import (
    MINUTES_PER_DAY,
    BookingCategory,
    BookingDirection,
    BookingEvent,
)
from timecalc.schemas.schedule import DayChangeBehavior

logger = logging.getLogger(__name__)

WARN_CROSS_MIDNIGHT = "CROSS_MIDNIGHT"


def overlap(s1: int, e1: int, s2: int, e2: int) -> int:
    return max(0, min(e1, e2) - max(s1, s2))


@dataclass
class BookingPair:
    category: BookingCategory
    start: BookingEvent
    end: Optional[BookingEvent]
    start_minutes: int
    end_minutes: Optional[int] = None
    cross_midnight: bool = False

    @property
    def is_complete(self) -> bool:
        return self.end is not None and self.end_minutes is not None

    @property
    def end_absolute(self) -> Optional[int]:
        """Ende in Minuten ab Mitternacht des Starttags (kann > 1440 sein)."""
        if self.end_minutes is None:
            return None
        return self.end_minutes + MINUTES_PER_DAY if self.cross_midnight else self.end_minutes

    @property
    def duration(self) -> int:
        if not self.is_complete:
            return 0
        return max(0, self.end_absolute - self.start_minutes)


@dataclass
class PairingResult:
    pairs: list[BookingPair] = field(default_factory=list)
    unpaired_in: list[BookingEvent] = field(default_factory=list)
    unpaired_out: list[BookingEvent] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # auto_complete: Eröffnungspaare, die zum Folgetag gehören
    next_day_pairs: list[BookingPair] = field(default_factory=list)
    synthetic: list[BookingEvent] = field(default_factory=list)

    @property
    def work_pairs(self) -> list[BookingPair]:
        return [p for p in self.pairs if p.category == BookingCategory.WORK and p.is_complete]

    @property
    def break_pairs(self) -> list[BookingPair]:
        return [p for p in self.pairs if p.category == BookingCategory.BREAK and p.is_complete]

    @property
    def work_minutes(self) -> int:
        return sum(p.duration for p in self.work_pairs)

    @property
    def gap_minutes(self) -> int:
        """Lücken zwischen aufeinanderfolgenden Arbeitspaaren."""
        ordered = sorted(self.work_pairs, key=lambda p: p.start_minutes)
        return sum(
            nxt.start_minutes - prev.end_absolute
            for prev, nxt in zip(ordered, ordered[1:])
        )


def _time(b: BookingEvent, times: Optional[dict[uuid.UUID, int]]) -> int:
    if times is not None and b.id in times:
        return times[b.id]
    return b.edited_time


def _opening_direction(category: BookingCategory) -> BookingDirection:
    # Arbeit beginnt mit Kommen, Pause mit "Gehen" (Pausenbeginn)
    return BookingDirection.ARRIVAL if category == BookingCategory.WORK else BookingDirection.DEPARTURE


def _pair_category(
    category: BookingCategory,
    bookings: list[BookingEvent],
    times: Optional[dict[uuid.UUID, int]],
    result: PairingResult,
) -> list[BookingPair]:
    opening = _opening_direction(category)
    starts = sorted((b for b in bookings if b.direction == opening), key=lambda b: b.edited_time)
    ends = sorted((b for b in bookings if b.direction != opening), key=lambda b: b.edited_time)
    by_id = {b.id: b for b in bookings}
    used: set[uuid.UUID] = set()
    pairs: list[BookingPair] = []

    # Zuordnung nach gebuchter Zeit, Dauer nach berechneter Zeit
    def make(start: BookingEvent, end: BookingEvent) -> BookingPair:
        used.update((start.id, end.id))
        return BookingPair(
            category, start, end, _time(start, times), _time(end, times),
            cross_midnight=end.edited_time < start.edited_time,
        )

    # 1. Explizite Paarreferenzen
    for start in starts:
        partner = by_id.get(start.pair_id) if start.pair_id else None
        if partner is None:
            partner = next((e for e in ends if e.pair_id == start.id), None)
        if partner is not None and partner.direction != opening and partner.id not in used:
            pairs.append(make(start, partner))

    # 2. Chronologisch: Start mit dem nächsten freien Ende zur selben oder späteren Zeit
    for start in starts:
        if start.id in used:
            continue
        s = start.edited_time
        end = next((e for e in ends if e.id not in used and e.edited_time >= s), None)
        if end is not None:
            pairs.append(make(start, end))

    # 3. Mitternachtsübergang: übriges Kommen mit früherem Gehen (nur Arbeit)
    if category == BookingCategory.WORK:
        for start in reversed(starts):
            if start.id in used:
                continue
            s = start.edited_time
            end = next((e for e in ends if e.id not in used and e.edited_time < s), None)
            if end is not None:
                pairs.append(make(start, end))
                result.warnings.append(WARN_CROSS_MIDNIGHT)

    for start in starts:
        if start.id not in used:
            pairs.append(BookingPair(category, start, None, _time(start, times)))
            result.unpaired_in.append(start)
    for end in ends:
        if end.id not in used:
            result.unpaired_out.append(end)
    return pairs


def _synthetic(template: BookingEvent, booking_date: date, direction: BookingDirection, minutes: int) -> BookingEvent:
    # deterministische ID: gleiche Eingabe ergibt dieselbe synthetische Buchung
    return BookingEvent(
        id=uuid.uuid5(template.id, f"{booking_date.isoformat()}/{direction.value}/{minutes}"),
        employee_id=template.employee_id,
        booking_date=booking_date,
        direction=direction,
        category=template.category,
        original_time=minutes,
        synthetic=True,
    )


def _split_at_midnight(pair: BookingPair, result: PairingResult) -> BookingPair:
    """Teilt ein Paar über Mitternacht in Schluss- (bis 24:00) und Eröffnungspaar (ab 00:00)."""
    day = pair.start.booking_date
    closing_end = _synthetic(pair.start, day, BookingDirection.DEPARTURE, MINUTES_PER_DAY)
    opening_start = _synthetic(pair.start, day + timedelta(days=1), BookingDirection.ARRIVAL, 0)
    result.synthetic.extend([closing_end, opening_start])
    result.next_day_pairs.append(
        BookingPair(pair.category, opening_start, pair.end, 0, pair.end_minutes)
    )
    return BookingPair(pair.category, pair.start, closing_end, pair.start_minutes, MINUTES_PER_DAY)


def pair_bookings(
    bookings: Iterable[BookingEvent],
    times: Optional[dict[uuid.UUID, int]] = None,
    day_change: DayChangeBehavior = DayChangeBehavior.NONE,
) -> PairingResult:
    """
    Bildet Paare getrennt nach Kategorie. Nicht zuordenbare Buchungen werden
    als unpaired_in/unpaired_out gemeldet, nie verworfen.
    """
    bookings = list(bookings)
    result = PairingResult()
    for category in (BookingCategory.WORK, BookingCategory.BREAK):
        pairs = _pair_category(category, [b for b in bookings if b.category == category], times, result)
        for pair in pairs:
            if pair.cross_midnight and day_change == DayChangeBehavior.AUTO_COMPLETE:
                pair = _split_at_midnight(pair, result)
            result.pairs.append(pair)
    result.pairs.sort(key=lambda p: (p.category != BookingCategory.WORK, p.start_minutes))
    return result


# ── Tageswechsel ──────────────────────────────────────────────────────────────

def _open_arrival(bookings: Sequence[BookingEvent]) -> Optional[BookingEvent]:
    """Letztes Kommen eines Tages ohne späteres Gehen (Schicht endet am Folgetag)."""
    work = sorted((b for b in bookings if b.is_work), key=lambda b: b.edited_time)
    if not work or not work[-1].is_arrival:
        return None
    return work[-1]


def _leading_departure(bookings: Sequence[BookingEvent]) -> Optional[BookingEvent]:
    """Erstes Gehen eines Tages vor jedem Kommen (Ende einer Vortagsschicht)."""
    work = sorted((b for b in bookings if b.is_work), key=lambda b: b.edited_time)
    if not work or work[0].is_arrival:
        return None
    return work[0]


def select_day_bookings(
    current: Sequence[BookingEvent],
    behavior: DayChangeBehavior,
    previous: Sequence[BookingEvent] = (),
    following: Sequence[BookingEvent] = (),
    work_date: Optional[date] = None,
) -> list[BookingEvent]:
    """
    Stellt die Buchungen zusammen, die für einen Tag ausgewertet werden.

    at_arrival:    Schicht zählt zum Tag des Kommens (Gehen vom Folgetag wird geholt).
    at_departure:  Schicht zählt zum Tag des Gehens (Kommen vom Vortag wird geholt).
    auto_complete: offene Schichten werden mit 24:00 / 00:00 geschlossen bzw. eröffnet.
    """
    selected = list(current)
    if behavior == DayChangeBehavior.NONE:
        return selected

    if behavior == DayChangeBehavior.AT_ARRIVAL:
        if _open_arrival(previous) is not None:
            leading = _leading_departure(current)
            if leading is not None:
                selected.remove(leading)
        if _open_arrival(current) is not None:
            leading_next = _leading_departure(following)
            if leading_next is not None:
                selected.append(leading_next)

    elif behavior == DayChangeBehavior.AT_DEPARTURE:
        open_today = _open_arrival(current)
        if open_today is not None and _leading_departure(following) is not None:
            selected.remove(open_today)
        if _leading_departure(current) is not None:
            open_prev = _open_arrival(previous)
            if open_prev is not None:
                selected.append(open_prev)

    elif behavior == DayChangeBehavior.AUTO_COMPLETE:
        day = work_date or (current[0].booking_date if current else None)
        leading = _leading_departure(current)
        if leading is not None and day is not None:
            selected.append(_synthetic(leading, day, BookingDirection.ARRIVAL, 0))
        open_today = _open_arrival(current)
        if open_today is not None and day is not None:
            selected.append(_synthetic(open_today, day, BookingDirection.DEPARTURE, MINUTES_PER_DAY))

    logger.debug("Tageswechsel %s: %d → %d Buchungen", behavior.value, len(current), len(selected))
    return selected
