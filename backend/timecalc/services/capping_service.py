"""
Kappung: Minuten, die erfasst, aber nicht gutgeschrieben werden.
Quellen: zu frühes Kommen, zu spätes Gehen, maximale Nettoarbeitszeit.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from timecalc.schemas.booking import MINUTES_PER_DAY
from timecalc.schemas.schedule import ScheduleConfig
from timecalc.services.pairing_service import BookingPair


class CappingSource(str, Enum):
    EARLY_ARRIVAL = "early_arrival"
    LATE_DEPARTURE = "late_departure"
    MAX_NET_TIME = "max_net_time"


@dataclass
class CappingEntry:
    minutes: int
    source: CappingSource
    reason: str = ""


@dataclass
class CappingResult:
    entries: list[CappingEntry] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return sum(e.minutes for e in self.entries)

    def minutes_for(self, source: CappingSource) -> int:
        return sum(e.minutes for e in self.entries if e.source == source)


def evaluation_window(schedule: ScheduleConfig) -> tuple[Optional[int], Optional[int]]:
    """
    Bewertungsrahmen: (frühestes anrechenbares Kommen, spätestes anrechenbares Gehen),
    in Minuten ab Mitternacht des Plantags. Bei Nachtplänen liegt das Ende über 1440.
    """
    start = schedule.come_from
    if start is not None and schedule.extends_arrival_window:
        start = max(0, start - schedule.tolerance.come_minus)
    end = schedule.plan_minutes(schedule.departure_edge)
    if end is not None:
        end = end + schedule.tolerance.go_plus
    return start, end


def plan_span(pair: BookingPair, schedule: ScheduleConfig) -> tuple[int, int]:
    """
    Start und Ende eines vollständigen Paars bezogen auf den Plantag.

    Bei Nachtplänen gehört ein um 00:00 synthetisch eröffnetes Paar zur
    Schicht des Vortags und wird um einen Tag verschoben.
    """
    start, end = pair.start_minutes, pair.end_absolute
    if schedule.is_overnight and pair.start.synthetic and start == 0:
        return start + MINUTES_PER_DAY, end + MINUTES_PER_DAY
    return start, end


def window_capping(work_pairs: Sequence[BookingPair], schedule: ScheduleConfig) -> list[CappingEntry]:
    start, end = evaluation_window(schedule)
    spans = [plan_span(p, schedule) for p in work_pairs]
    entries: list[CappingEntry] = []
    if start is not None:
        early = sum(max(0, min(e, start) - s) for s, e in spans)
        entries.append(CappingEntry(early, CappingSource.EARLY_ARRIVAL, f"vor {start} min"))
    if end is not None:
        # Früh- und Spätbereich dürfen sich nicht überschneiden
        late_from = end if start is None else max(end, start)
        late = sum(max(0, e - max(s, late_from)) for s, e in spans)
        entries.append(CappingEntry(late, CappingSource.LATE_DEPARTURE, f"nach {end} min"))
    return entries


def max_net_capping(net_minutes: int, max_net: Optional[int]) -> tuple[int, Optional[CappingEntry]]:
    if max_net is None or net_minutes <= max_net:
        return net_minutes, None
    excess = net_minutes - max_net
    return max_net, CappingEntry(excess, CappingSource.MAX_NET_TIME, f"über {max_net} min netto")


def aggregate_capping(entries: Sequence[CappingEntry]) -> CappingResult:
    """Fasst Einträge je Quelle zusammen; Einträge ohne Minuten entfallen."""
    merged: dict[CappingSource, CappingEntry] = {}
    for entry in entries:
        if entry.minutes <= 0:
            continue
        if entry.source in merged:
            merged[entry.source].minutes += entry.minutes
        else:
            merged[entry.source] = CappingEntry(entry.minutes, entry.source, entry.reason)
    return CappingResult(entries=list(merged.values()))
