"""
Toleranz und Rundung einzelner Buchungszeiten.

Toleranz: liegt die Zeit im Band um die Fenstergrenze, wird exakt auf die
Grenze gesetzt, sonst bleibt sie unverändert. Danach wird gerundet.
"""
from __future__ import annotations

import uuid
from typing import Iterable, Optional

from timecalc.core.config import settings
from timecalc.core.exceptions import InvalidTimeError
from timecalc.schemas.booking import MINUTES_PER_DAY, BookingEvent, BookingDirection
from timecalc.schemas.schedule import RoundingMode, RoundingRule, ScheduleConfig


def check_minutes(value: int, field: str = "time", allow_day_end: bool = False) -> int:
    limit = MINUTES_PER_DAY if allow_day_end else MINUTES_PER_DAY - 1
    if value is None or not 0 <= value <= limit:
        raise InvalidTimeError(field, value)
    return value


def apply_arrival_tolerance(minutes: int, schedule: ScheduleConfig) -> int:
    if schedule.come_from is None:
        return minutes
    tol = schedule.effective_tolerance()
    edge = schedule.come_from
    if edge - tol.come_minus <= minutes <= edge + tol.come_plus:
        return edge
    return minutes


def apply_departure_tolerance(minutes: int, schedule: ScheduleConfig) -> int:
    edge = schedule.departure_edge
    if edge is None:
        return minutes
    tol = schedule.effective_tolerance()
    if edge - tol.go_minus <= minutes <= edge + tol.go_plus:
        return edge
    return minutes


def round_time(minutes: int, rule: RoundingRule, anchor: int = 0) -> int:
    """Rundet auf das Intervall; anchor verschiebt das Raster (z. B. auf Planbeginn)."""
    mode = rule.mode
    if mode == RoundingMode.NONE:
        result = minutes
    elif mode == RoundingMode.ADD:
        result = minutes + rule.add_value
    elif mode == RoundingMode.SUBTRACT:
        result = minutes - rule.add_value
    else:
        interval = rule.interval
        offset = minutes - anchor
        if mode == RoundingMode.UP:
            offset = -(-offset // interval) * interval
        elif mode == RoundingMode.DOWN:
            offset = (offset // interval) * interval
        else:
            # kaufmännisch: genau in der Mitte → aufrunden
            offset = ((2 * offset + interval) // (2 * interval)) * interval
        result = anchor + offset
    return max(0, min(MINUTES_PER_DAY, result))


def _rounding_anchor(direction: BookingDirection, schedule: ScheduleConfig, relative: bool) -> int:
    if not relative:
        return 0
    edge = schedule.come_from if direction == BookingDirection.ARRIVAL else schedule.departure_edge
    return edge or 0


def normalize_time(
    minutes: int,
    direction: BookingDirection,
    schedule: ScheduleConfig,
    apply_rounding: bool = True,
    relative_to_plan: Optional[bool] = None,
) -> int:
    if direction == BookingDirection.ARRIVAL:
        result = apply_arrival_tolerance(minutes, schedule)
        rule = schedule.rounding.arrival
    else:
        result = apply_departure_tolerance(minutes, schedule)
        rule = schedule.rounding.departure
    if apply_rounding:
        if relative_to_plan is None:
            relative_to_plan = schedule.rounding.relative_to_plan
        if relative_to_plan is None:
            relative_to_plan = settings.ROUND_RELATIVE_TO_PLAN
        result = round_time(result, rule, _rounding_anchor(direction, schedule, relative_to_plan))
    return result


def normalize_bookings(
    bookings: Iterable[BookingEvent],
    schedule: ScheduleConfig,
) -> dict[uuid.UUID, int]:
    """
    Berechnete Zeit je Buchung. Grundlage ist immer die bearbeitete Zeit,
    nie eine frühere berechnete Zeit.

    Pausenbuchungen und synthetische Tagesgrenzen bleiben unverändert.
    Gerundet werden nur erstes Kommen und letztes Gehen, außer
    round_all_bookings ist gesetzt.
    """
    bookings = list(bookings)
    for b in bookings:
        check_minutes(b.edited_time, "edited_time", allow_day_end=b.synthetic)

    real_work = [b for b in bookings if b.is_work and not b.synthetic]
    arrivals = [b for b in real_work if b.is_arrival]
    departures = [b for b in real_work if not b.is_arrival]
    first_arrival = min(arrivals, key=lambda b: b.edited_time, default=None)
    last_departure = max(departures, key=lambda b: b.edited_time, default=None)
    round_all = schedule.rounding.round_all_bookings

    times: dict[uuid.UUID, int] = {}
    for b in bookings:
        if not b.is_work or b.synthetic:
            times[b.id] = b.edited_time
            continue
        should_round = round_all or b is first_arrival or b is last_departure
        times[b.id] = normalize_time(b.edited_time, b.direction, schedule, apply_rounding=should_round)
    return times
