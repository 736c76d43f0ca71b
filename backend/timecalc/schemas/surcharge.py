import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class SurchargeMode(str, Enum):
    FIXED = "fixed"            # fester Wert je Paar mit Überschneidung
    PER_MINUTE = "per_minute"  # Überschneidung × Wert
    PERCENTAGE = "percentage"  # Wert % der Paardauer


class SurchargeRule(BaseModel):
    account_id: uuid.UUID
    account_code: str = ""
    time_from: int = Field(ge=0, le=1439)
    time_to: int = Field(ge=1, le=1440)
    applies_on_holiday: bool = False
    applies_on_workday: bool = True
    holiday_categories: list[int] = []   # leer = alle Feiertagskategorien
    mode: SurchargeMode = SurchargeMode.PER_MINUTE
    value: Decimal = Decimal("1")
    min_work_minutes: Optional[int] = Field(default=None, ge=0)

    @field_validator("holiday_categories")
    @classmethod
    def known_categories(cls, v: list[int]) -> list[int]:
        for cat in v:
            if cat not in (1, 2, 3):
                raise ValueError(f"Unbekannte Feiertagskategorie: {cat}")
        return v

    @model_validator(mode="after")
    def window_does_not_wrap(self) -> "SurchargeRule":
        if self.time_from >= self.time_to:
            raise ValueError(
                "Zeitfenster über Mitternacht nicht erlaubt – "
                "als zwei Regeln [von, 24:00) und [00:00, bis) anlegen"
            )
        return self
