"""timecalc: Berechnungskern für Zeiterfassung – Tag, Monat, Urlaub."""
from timecalc.services.calculation_engine import CalculationEngine, DailyResult
from timecalc.services.daily_calc_service import DailyCalcService, DayInput
from timecalc.services.monthly_service import MonthlyAggregator, MonthlyResult
from timecalc.services.vacation_service import VacationCalculator

__version__ = "0.1.0"

__all__ = [
    "CalculationEngine", "DailyResult",
    "DailyCalcService", "DayInput",
    "MonthlyAggregator", "MonthlyResult",
    "VacationCalculator",
]
