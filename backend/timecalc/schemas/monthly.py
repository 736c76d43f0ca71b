from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CreditType(str, Enum):
    NO_CARRYOVER = "no_carryover"               # Saldo verfällt jeden Monat
    COMPLETE_CARRYOVER = "complete_carryover"
    AFTER_THRESHOLD = "after_threshold"         # nur Mehrarbeit über der Schwelle
    ZERO_FLOOR = "zero_floor"                   # Saldo nie unter 0


class MonthlyEvaluationRules(BaseModel):
    credit_type: CreditType = CreditType.COMPLETE_CARRYOVER
    flextime_threshold: Optional[int] = Field(default=None, ge=0)
    max_flextime_per_month: Optional[int] = Field(default=None, ge=0)
    upper_limit: Optional[int] = Field(default=None, ge=0)   # positive Saldogrenze
    lower_limit: Optional[int] = Field(default=None, ge=0)   # negative Grenze, als Betrag
    annual_floor: Optional[int] = Field(default=None, ge=0)  # Jahreswechsel, als Betrag
