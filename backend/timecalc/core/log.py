import logging

from timecalc.core.config import settings


def configure_logging(level: str | None = None) -> None:
    """Richtet das Root-Logging für Batch-Läufe ein (Level aus Settings)."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=settings.LOG_FORMAT,
    )
