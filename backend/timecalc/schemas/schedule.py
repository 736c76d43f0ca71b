"""
Tagesplan-Konfiguration: Zeitfenster, Toleranzen, Rundung, Pausen, Schichterkennung.
Alle Zeitangaben in Minuten ab Mitternacht.
"""
import uuid
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from timecalc.schemas.surcharge import SurchargeRule

MAX_ALTERNATIVE_PLANS = 6


class PlanType(str, Enum):
    FIXED = "fixed"
    FLEXTIME = "flextime"


class RoundingMode(str, Enum):
    NONE = "none"
    UP = "up"
    DOWN = "down"
    NEAREST = "nearest"
    ADD = "add"
    SUBTRACT = "subtract"


class BreakType(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"
    MINIMUM = "minimum"


class NoBookingBehavior(str, Enum):
    ERROR = "error"
    DEDUCT_TARGET = "deduct_target"
    VOCATIONAL_SCHOOL = "vocational_school"
    ADOPT_TARGET = "adopt_target"
    TARGET_WITH_ORDER = "target_with_order"


class DayChangeBehavior(str, Enum):
    NONE = "none"
    AT_ARRIVAL = "at_arrival"
    AT_DEPARTURE = "at_departure"
    AUTO_COMPLETE = "auto_complete"


MinuteOfDay = Annotated[int, Field(ge=0, le=1440)]


class Tolerance(BaseModel):
    come_plus: int = Field(default=0, ge=0)
    come_minus: int = Field(default=0, ge=0)
    go_plus: int = Field(default=0, ge=0)
    go_minus: int = Field(default=0, ge=0)


class RoundingRule(BaseModel):
    mode: RoundingMode = RoundingMode.NONE
    interval: int = Field(default=0, ge=0)
    add_value: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def interval_required(self) -> "RoundingRule":
        if self.mode in (RoundingMode.UP, RoundingMode.DOWN, RoundingMode.NEAREST) and self.interval <= 0:
            raise ValueError(f"Rundungsart {self.mode.value} braucht ein Intervall > 0")
        return self


class RoundingConfig(BaseModel):
    arrival: RoundingRule = Field(default_factory=RoundingRule)
    departure: RoundingRule = Field(default_factory=RoundingRule)
    round_all_bookings: bool = False
    relative_to_plan: Optional[bool] = None   # None → Settings.ROUND_RELATIVE_TO_PLAN


class BreakRule(BaseModel):
    break_type: BreakType
    start: Optional[MinuteOfDay] = None
    end: Optional[MinuteOfDay] = None
    after_work_minutes: Optional[int] = Field(default=None, ge=0)
    duration: int = Field(ge=0)
    proportional: bool = False
    paid: bool = False

    @model_validator(mode="after")
    def check_type_fields(self) -> "BreakRule":
        if self.break_type == BreakType.FIXED:
            if self.start is None or self.end is None or self.start >= self.end:
                raise ValueError("Feste Pause braucht ein Zeitfenster start < end")
        if self.break_type == BreakType.MINIMUM and self.after_work_minutes is None:
            raise ValueError("Mindestpause braucht eine Schwelle after_work_minutes")
        return self


class ShiftDetectionWindows(BaseModel):
    arrive_from: Optional[int] = None
    arrive_to: Optional[int] = None
    depart_from: Optional[int] = None
    depart_to: Optional[int] = None

    @property
    def has_arrival_window(self) -> bool:
        return self.arrive_from is not None and self.arrive_to is not None

    @property
    def has_departure_window(self) -> bool:
        return self.depart_from is not None and self.depart_to is not None

    @property
    def is_configured(self) -> bool:
        return self.has_arrival_window or self.has_departure_window


class ScheduleConfig(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    code: str
    name: str = ""
    plan_type: PlanType = PlanType.FIXED

    # Kommen-/Gehen-Fenster und Kernzeit
    come_from: Optional[MinuteOfDay] = None
    come_to: Optional[MinuteOfDay] = None
    go_from: Optional[MinuteOfDay] = None
    go_to: Optional[MinuteOfDay] = None
    core_start: Optional[MinuteOfDay] = None
    core_end: Optional[MinuteOfDay] = None

    # Sollzeit
    target_minutes: int = Field(default=0, ge=0)
    absence_target_minutes: Optional[int] = Field(default=None, ge=0)
    target_from_employee_master: bool = False

    tolerance: Tolerance = Field(default_factory=Tolerance)
    variable_work_time: bool = False
    rounding: RoundingConfig = Field(default_factory=RoundingConfig)
    breaks: list[BreakRule] = []
    min_work_time: Optional[int] = Field(default=None, ge=0)
    max_net_work_time: Optional[int] = Field(default=None, ge=0)

    # Feiertagskategorie (1..3) → gutgeschriebene Minuten
    holiday_credits: dict[int, int] = {}

    no_booking_behavior: NoBookingBehavior = NoBookingBehavior.ERROR
    day_change_behavior: DayChangeBehavior = DayChangeBehavior.NONE
    shift_detection: ShiftDetectionWindows = Field(default_factory=ShiftDetectionWindows)
    alternative_plan_ids: list[uuid.UUID] = Field(default_factory=list, max_length=MAX_ALTERNATIVE_PLANS)
    surcharges: list[SurchargeRule] = []

    @field_validator("holiday_credits")
    @classmethod
    def check_holiday_credits(cls, v: dict[int, int]) -> dict[int, int]:
        for cat, minutes in v.items():
            if cat not in (1, 2, 3):
                raise ValueError(f"Unbekannte Feiertagskategorie: {cat}")
            if minutes < 0:
                raise ValueError("Feiertagsgutschrift darf nicht negativ sein")
        return v

    @property
    def is_flextime(self) -> bool:
        return self.plan_type == PlanType.FLEXTIME

    @property
    def departure_edge(self) -> Optional[int]:
        return self.go_to if self.go_to is not None else self.go_from

    @property
    def is_overnight(self) -> bool:
        """Nachtplan: Gehen-Grenze liegt vor der Kommen-Grenze, also am Folgetag."""
        edge = self.departure_edge
        return self.come_from is not None and edge is not None and edge < self.come_from

    def plan_minutes(self, value: Optional[int]) -> Optional[int]:
        """Planzeit in Minuten ab Mitternacht des Plantags (Folgetag → +1440)."""
        if value is None or not self.is_overnight or value >= self.come_from:
            return value
        return value + 1440

    def effective_tolerance(self) -> Tolerance:
        """
        Gleitzeit: kein come_plus/go_minus (Kommen/Gehen ist ohnehin frei).
        Fester Plan: come_minus nur mit variabler Arbeitszeit, sonst würde
        frühes Kommen Zeit gutschreiben.
        """
        tol = self.tolerance
        if self.is_flextime:
            return tol.model_copy(update={"come_plus": 0, "go_minus": 0})
        if not self.variable_work_time:
            return tol.model_copy(update={"come_minus": 0})
        return tol

    @property
    def extends_arrival_window(self) -> bool:
        # Gleitzeit schaltet variable Arbeitszeit implizit ab, das Fenster
        # wird aber um come_minus nach vorne geöffnet.
        return self.is_flextime or self.variable_work_time

    def resolve_target(self, employee_target: Optional[int] = None, is_absence_day: bool = False) -> int:
        if self.target_from_employee_master and employee_target is not None:
            return employee_target
        if is_absence_day and self.absence_target_minutes is not None:
            return self.absence_target_minutes
        return self.target_minutes
