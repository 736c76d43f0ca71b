import uuid
from datetime import date as Date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from timecalc.core.exceptions import ImmutableFieldError, InvalidTimeError

MINUTES_PER_DAY = 1440


class BookingDirection(str, Enum):
    ARRIVAL = "arrival"
    DEPARTURE = "departure"


class BookingCategory(str, Enum):
    WORK = "work"
    BREAK = "break"   # departure = Pausenbeginn, arrival = Pausenende


class BookingEvent(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    employee_id: Optional[uuid.UUID] = None
    booking_date: Date
    direction: BookingDirection
    category: BookingCategory = BookingCategory.WORK
    original_time: int = Field(ge=0, le=MINUTES_PER_DAY)
    edited_time: Optional[int] = Field(default=None, ge=0, le=MINUTES_PER_DAY)
    calculated_time: Optional[int] = None
    pair_id: Optional[uuid.UUID] = None
    synthetic: bool = False   # nur durch Tageswechsel-Vervollständigung erzeugt

    @model_validator(mode="before")
    @classmethod
    def default_edited_time(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("edited_time") is None:
            data = {**data, "edited_time": data.get("original_time")}
        return data

    @model_validator(mode="after")
    def day_end_only_for_synthetic(self) -> "BookingEvent":
        if not self.synthetic:
            for name in ("original_time", "edited_time"):
                if getattr(self, name) == MINUTES_PER_DAY:
                    raise ValueError(f"{name}: 1440 ist nur für synthetische Buchungen erlaubt")
        return self

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "original_time":
            raise ImmutableFieldError("original_time ist nach dem Anlegen unveränderlich")
        if name == "edited_time":
            limit = MINUTES_PER_DAY if self.synthetic else MINUTES_PER_DAY - 1
            if value is None or not 0 <= value <= limit:
                raise InvalidTimeError("edited_time", value)
            super().__setattr__(name, value)
            # Jede Korrektur macht die berechnete Zeit ungültig
            super().__setattr__("calculated_time", None)
            return
        super().__setattr__(name, value)

    @property
    def effective_time(self) -> int:
        return self.edited_time

    @property
    def is_arrival(self) -> bool:
        return self.direction == BookingDirection.ARRIVAL

    @property
    def is_work(self) -> bool:
        return self.category == BookingCategory.WORK
