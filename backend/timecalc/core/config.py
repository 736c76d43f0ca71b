from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    # Feiertage – Bundesland-Kürzel für workalendar (BW, BY, NW, ...)
    HOLIDAY_STATE: str = "BW"

    # Rundung relativ zum Planbeginn/-ende statt zur vollen Stunde,
    # wenn der Tagesplan selbst nichts vorgibt.
    ROUND_RELATIVE_TO_PLAN: bool = False

    # Urlaub
    STANDARD_WEEKLY_HOURS: Decimal = Decimal("40")
    VACATION_ROUND_TO_HALF_DAY: bool = True

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
