from timecalc.schemas.booking import BookingEvent, BookingDirection, BookingCategory
from timecalc.schemas.surcharge import SurchargeRule, SurchargeMode
from timecalc.schemas.schedule import (
    ScheduleConfig, PlanType, Tolerance, RoundingRule, RoundingConfig, RoundingMode,
    BreakRule, BreakType, ShiftDetectionWindows, NoBookingBehavior, DayChangeBehavior,
)
from timecalc.schemas.monthly import MonthlyEvaluationRules, CreditType
from timecalc.schemas.vacation import (
    VacationYearBalance, EntitlementInput, VacationBasis, SpecialCalculation, SpecialCalcType,
    CappingRule, CappingRuleGroup, CappingScope, EmployeeCappingException, ExemptionType,
)

__all__ = [
    "BookingEvent", "BookingDirection", "BookingCategory",
    "SurchargeRule", "SurchargeMode",
    "ScheduleConfig", "PlanType", "Tolerance", "RoundingRule", "RoundingConfig", "RoundingMode",
    "BreakRule", "BreakType", "ShiftDetectionWindows", "NoBookingBehavior", "DayChangeBehavior",
    "MonthlyEvaluationRules", "CreditType",
    "VacationYearBalance", "EntitlementInput", "VacationBasis", "SpecialCalculation", "SpecialCalcType",
    "CappingRule", "CappingRuleGroup", "CappingScope", "EmployeeCappingException", "ExemptionType",
]
