import calendar
import uuid
from datetime import date as Date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from timecalc.core.exceptions import VacationBalanceError

ZERO = Decimal("0")


class VacationBasis(str, Enum):
    CALENDAR_YEAR = "calendar_year"
    ENTRY_DATE = "entry_date"   # Jahrestag des Eintritts


class SpecialCalcType(str, Enum):
    AGE = "age"
    TENURE = "tenure"
    DISABILITY = "disability"


class SpecialCalculation(BaseModel):
    """Zusatzurlaub: Wertebereich [threshold, threshold_to) → bonus_days."""
    calc_type: SpecialCalcType
    threshold: int = Field(default=0, ge=0)
    threshold_to: Optional[int] = None
    bonus_days: Decimal = Field(ge=0)

    def matches(self, value: int) -> bool:
        if value < self.threshold:
            return False
        return self.threshold_to is None or value < self.threshold_to


class EntitlementInput(BaseModel):
    year: int
    base_days: Decimal = Field(ge=0)
    entry_date: Optional[Date] = None
    exit_date: Optional[Date] = None
    birth_date: Optional[Date] = None
    weekly_hours: Decimal = Field(gt=0)
    standard_weekly_hours: Optional[Decimal] = Field(default=None, gt=0)
    has_disability: bool = False
    basis: VacationBasis = VacationBasis.CALENDAR_YEAR
    reference_date: Optional[Date] = None   # Stichtag für Alter/Betriebszugehörigkeit

    @model_validator(mode="after")
    def exit_after_entry(self) -> "EntitlementInput":
        if self.entry_date and self.exit_date and self.exit_date < self.entry_date:
            raise ValueError("Austritt liegt vor dem Eintritt")
        return self


class CappingScope(str, Enum):
    YEAR_END = "year_end"
    MID_YEAR = "mid_year"


class CappingRule(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    code: str = ""
    name: str = ""
    scope: CappingScope = CappingScope.YEAR_END
    cutoff_month: int = Field(default=12, ge=1, le=12)
    cutoff_day: int = Field(default=31, ge=1, le=31)
    cap_value: Decimal = Field(ge=0)
    group_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def valid_cutoff(self) -> "CappingRule":
        # Prüfung gegen ein Schaltjahr: 29.02. ist zulässig
        if self.cutoff_day > calendar.monthrange(2000, self.cutoff_month)[1]:
            raise ValueError(f"Ungültiger Stichtag {self.cutoff_day:02d}.{self.cutoff_month:02d}.")
        return self

    def cutoff_date(self, balance_year: int) -> Date:
        """Stichtag im Folgejahr der Bilanz; 29.02. → 28.02. in Nicht-Schaltjahren."""
        year = balance_year + 1
        day = min(self.cutoff_day, calendar.monthrange(year, self.cutoff_month)[1])
        return Date(year, self.cutoff_month, day)


class CappingRuleGroup(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    code: str
    name: str = ""
    rules: list[CappingRule] = []


class ExemptionType(str, Enum):
    FULL = "full"
    PARTIAL = "partial"


class EmployeeCappingException(BaseModel):
    rule_id: uuid.UUID
    exemption_type: ExemptionType
    retain_days: Optional[Decimal] = Field(default=None, ge=0)
    year: Optional[int] = None   # None = gilt für alle Jahre

    @model_validator(mode="after")
    def partial_needs_retain(self) -> "EmployeeCappingException":
        if self.exemption_type == ExemptionType.PARTIAL and self.retain_days is None:
            raise ValueError("Teilausnahme braucht retain_days")
        return self


class VacationYearBalance(BaseModel):
    employee_id: Optional[uuid.UUID] = None
    year: int
    entitlement: Decimal = ZERO
    carryover: Decimal = ZERO
    adjustments: Decimal = ZERO
    taken: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.entitlement + self.carryover + self.adjustments

    @property
    def available(self) -> Decimal:
        return self.total - self.taken

    @model_validator(mode="after")
    def not_overdrawn(self) -> "VacationYearBalance":
        if self.available < 0 and self.adjustments == 0:
            raise ValueError(
                f"Urlaubskonto {self.year} wäre negativ ({self.available}) ohne manuelle Korrektur"
            )
        return self

    def take(self, days: Decimal) -> "VacationYearBalance":
        """Gibt ein neues Konto mit zusätzlich genommenen Tagen zurück."""
        if days < 0:
            raise VacationBalanceError("Urlaubstage müssen positiv sein")
        if days > self.available and self.adjustments == 0:
            raise VacationBalanceError(
                f"Nur {self.available} Tage verfügbar, {days} angefragt"
            )
        return self.model_copy(update={"taken": self.taken + days})
