"""
Deutsche gesetzliche Feiertage je Bundesland über workalendar.
"""
from datetime import date
from functools import lru_cache

from workalendar.core import Calendar
from workalendar.europe import (
    BadenWurttemberg,
    Bavaria,
    Berlin,
    Brandenburg,
    Bremen,
    Hamburg,
    Hesse,
    LowerSaxony,
    MecklenburgVorpommern,
    NorthRhineWestphalia,
    RhinelandPalatinate,
    Saarland,
    Saxony,
    SaxonyAnhalt,
    SchleswigHolstein,
    Thuringia,
)

from timecalc.core.config import settings
from timecalc.core.exceptions import MissingConfigurationError

STATE_CALENDARS: dict[str, type[Calendar]] = {
    "BW": BadenWurttemberg,
    "BY": Bavaria,
    "BE": Berlin,
    "BB": Brandenburg,
    "HB": Bremen,
    "HH": Hamburg,
    "HE": Hesse,
    "NI": LowerSaxony,
    "MV": MecklenburgVorpommern,
    "NW": NorthRhineWestphalia,
    "RP": RhinelandPalatinate,
    "SL": Saarland,
    "SN": Saxony,
    "ST": SaxonyAnhalt,
    "SH": SchleswigHolstein,
    "TH": Thuringia,
}

# Feiertagskategorie für Gutschrift und Zuschläge: 1 = gesetzlicher Feiertag
PUBLIC_HOLIDAY_CATEGORY = 1


@lru_cache(maxsize=64)
def get_holidays(year: int, state: str) -> dict[date, str]:
    """Gibt alle gesetzlichen Feiertage eines Bundeslandes für ein Jahr zurück."""
    try:
        calendar_cls = STATE_CALENDARS[state.upper()]
    except KeyError:
        raise MissingConfigurationError(f"Unbekanntes Bundesland: {state}") from None
    return {d: name for d, name in calendar_cls().holidays(year)}


def is_holiday(d: date, state: str | None = None) -> tuple[bool, str | None]:
    """Prüft ob ein Datum ein gesetzlicher Feiertag ist."""
    name = get_holidays(d.year, state or settings.HOLIDAY_STATE).get(d)
    return name is not None, name


def holiday_category(d: date, state: str | None = None) -> int:
    """0 = kein Feiertag, sonst Kategorie für holiday_credits / Zuschlagsfilter."""
    holiday, _ = is_holiday(d, state)
    return PUBLIC_HOLIDAY_CATEGORY if holiday else 0
