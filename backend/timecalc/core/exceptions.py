"""
Fehlerklassen der Berechnung.

Nur fehlerhafte Eingaben werden geworfen. Fachliche Befunde (fehlende Buchungen,
Kernzeitverletzungen, Kappungen ...) landen als Codes im jeweiligen Ergebnis.
"""


class CalculationError(Exception):
    """Base exception for the calculation engine."""


class MalformedInputError(CalculationError):
    """Input cannot be evaluated; the affected day/month/year is skipped by the caller."""


class InvalidTimeError(MalformedInputError, ValueError):
    """A minute value lies outside the day (0..1439, 1440 only for synthetic bookings)."""

    def __init__(self, field: str, value: int):
        self.field = field
        self.value = value
        super().__init__(f"{field}: {value} liegt außerhalb von 0..1440")


class MissingConfigurationError(MalformedInputError):
    """A required configuration (schedule, window, rule) is missing."""


class OrderingError(MalformedInputError):
    """Timeline input is not in ascending order (days within a month, vacation years)."""


class ImmutableFieldError(CalculationError, AttributeError):
    """A write-once field was reassigned."""


class VacationBalanceError(CalculationError):
    """Booking vacation would drive the available balance below zero."""
