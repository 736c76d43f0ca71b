"""
Tests für VacationCalculator – Anspruch (anteilig, Teilzeit, Zusatzurlaub),
Resturlaubskappung mit Stichtag und Ausnahmen, Jahreswechsel.
"""
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from timecalc.core.exceptions import OrderingError, VacationBalanceError
from timecalc.schemas.vacation import (
    CappingRule,
    CappingRuleGroup,
    CappingScope,
    EmployeeCappingException,
    EntitlementInput,
    ExemptionType,
    SpecialCalcType,
    SpecialCalculation,
    VacationBasis,
    VacationYearBalance,
)
from timecalc.services.vacation_service import (
    VacationCalculator,
    add_months,
    full_years,
    resolve_capping_rules,
    round_vacation_days,
)


@pytest.fixture
def calc():
    return VacationCalculator(standard_weekly_hours=Decimal("40"), round_to_half_day=True)


def _balance(year=2024, entitlement="30", taken="22", **kw) -> VacationYearBalance:
    return VacationYearBalance(year=year, entitlement=Decimal(entitlement), taken=Decimal(taken), **kw)


def _year_end(cap) -> CappingRule:
    return CappingRule(code="JE", name="Jahresende", scope=CappingScope.YEAR_END, cap_value=Decimal(cap))


def _mid_year(cap, month=3, day=31) -> CappingRule:
    return CappingRule(
        code="MJ", name="Stichtag", scope=CappingScope.MID_YEAR,
        cutoff_month=month, cutoff_day=day, cap_value=Decimal(cap),
    )


# ── Datumshilfen ──────────────────────────────────────────────────────────────

def test_add_months_clamps_month_end():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)


def test_full_years():
    assert full_years(date(1970, 6, 1), date(2025, 5, 31)) == 54
    assert full_years(date(1970, 6, 1), date(2025, 6, 1)) == 55


def test_round_vacation_days():
    assert round_vacation_days(Decimal("18.75")) == Decimal("19")
    assert round_vacation_days(Decimal("18.2")) == Decimal("18")
    assert round_vacation_days(Decimal("18.25")) == Decimal("18.5")
    assert round_vacation_days(Decimal("18.754"), half_days=False) == Decimal("18.75")


# ── Anspruch ──────────────────────────────────────────────────────────────────

def test_prorated_part_time_entitlement(calc):
    """30 Tage, Eintritt 10.03. (10 Monate), 30/40 h → 18,75 → 19,0."""
    inp = EntitlementInput(year=2025, base_days=Decimal("30"), entry_date=date(2025, 3, 10), weekly_hours=Decimal("30"))
    result = calc.calculate_entitlement(inp)
    assert result.months_employed == 10
    assert result.prorated_days == Decimal("25")
    assert result.part_time_factor == Decimal("0.75")
    assert result.total_days == Decimal("19.0")


def test_exit_during_year(calc):
    inp = EntitlementInput(year=2025, base_days=Decimal("30"), exit_date=date(2025, 6, 15), weekly_hours=Decimal("40"))
    result = calc.calculate_entitlement(inp)
    assert result.months_employed == 6
    assert result.total_days == Decimal("15")


def test_without_half_day_rounding():
    calc = VacationCalculator(standard_weekly_hours=Decimal("40"), round_to_half_day=False)
    inp = EntitlementInput(year=2025, base_days=Decimal("30"), entry_date=date(2025, 3, 10), weekly_hours=Decimal("30"))
    assert calc.calculate_entitlement(inp).total_days == Decimal("18.75")


def test_entry_date_basis_counts_full_year(calc):
    inp = EntitlementInput(
        year=2025, base_days=Decimal("30"), entry_date=date(2020, 4, 15),
        weekly_hours=Decimal("40"), basis=VacationBasis.ENTRY_DATE,
    )
    assert calc.calculate_entitlement(inp).months_employed == 12


def test_special_calculations(calc):
    inp = EntitlementInput(
        year=2025, base_days=Decimal("30"), weekly_hours=Decimal("40"),
        entry_date=date(2010, 1, 1), birth_date=date(1970, 6, 1), has_disability=True,
    )
    specials = [
        SpecialCalculation(calc_type=SpecialCalcType.AGE, threshold=50, bonus_days=Decimal("2")),
        SpecialCalculation(calc_type=SpecialCalcType.TENURE, threshold=10, threshold_to=20, bonus_days=Decimal("1")),
        SpecialCalculation(calc_type=SpecialCalcType.TENURE, threshold=20, bonus_days=Decimal("3")),
        SpecialCalculation(calc_type=SpecialCalcType.DISABILITY, bonus_days=Decimal("5")),
    ]
    result = calc.calculate_entitlement(inp, specials)
    assert result.age == 55
    assert result.tenure_years == 15
    assert result.bonus_days == Decimal("8")
    assert result.total_days == Decimal("38")
    assert len(result.applied_bonuses) == 3


def test_age_measured_at_reference_date(calc):
    inp = EntitlementInput(
        year=2025, base_days=Decimal("30"), weekly_hours=Decimal("40"),
        birth_date=date(1975, 6, 1), reference_date=date(2025, 1, 1),
    )
    special = SpecialCalculation(calc_type=SpecialCalcType.AGE, threshold=50, bonus_days=Decimal("2"))
    result = calc.calculate_entitlement(inp, [special])
    assert result.age == 49
    assert result.bonus_days == 0


def test_exit_before_entry_rejected():
    with pytest.raises(ValidationError):
        EntitlementInput(
            year=2025, base_days=Decimal("30"), weekly_hours=Decimal("40"),
            entry_date=date(2025, 5, 1), exit_date=date(2025, 4, 30),
        )


# ── Übertrag / Kappung ────────────────────────────────────────────────────────

def test_year_end_cap(calc):
    result = calc.calculate_carryover(_balance(), [_year_end(5)])
    assert result.available == Decimal("8")
    assert result.capped_carryover == Decimal("5")
    assert result.forfeited_days == Decimal("3")
    assert result.rules_applied[0].applied


def test_no_rules_carries_everything(calc):
    assert calc.calculate_carryover(_balance()).capped_carryover == Decimal("8")


def test_mid_year_cutoff(calc):
    """Rest 3 Tage, Stichtag 31.03.: am 01.04. verfallen, am 31.03. noch da."""
    balance = _balance(taken="27")
    rules = [_mid_year(0)]
    assert calc.calculate_carryover(balance, rules, reference_date=date(2025, 4, 1)).capped_carryover == 0
    assert calc.calculate_carryover(balance, rules, reference_date=date(2025, 3, 31)).capped_carryover == Decimal("3")


def test_leap_day_cutoff_falls_back_to_feb_28(calc):
    """Stichtag 29.02.: in Nicht-Schaltjahren gilt der 28.02."""
    rule = _mid_year(0, month=2, day=29)
    assert rule.cutoff_date(2025) == date(2026, 2, 28)
    assert rule.cutoff_date(2027) == date(2028, 2, 29)
    balance = _balance(year=2025, taken="27")
    assert calc.calculate_carryover(balance, [rule], reference_date=date(2026, 3, 1)).capped_carryover == 0
    assert calc.calculate_carryover(balance, [rule], reference_date=date(2026, 2, 28)).capped_carryover == Decimal("3")


def test_impossible_cutoff_rejected():
    with pytest.raises(ValidationError):
        _mid_year(0, month=4, day=31)


def test_nothing_available(calc):
    result = calc.calculate_carryover(_balance(taken="30"), [_year_end(5)])
    assert result.capped_carryover == 0
    assert result.rules_applied == []


def test_full_exception_skips_rule(calc):
    rule = _year_end(5)
    exc = EmployeeCappingException(rule_id=rule.id, exemption_type=ExemptionType.FULL)
    result = calc.calculate_carryover(_balance(taken="20"), [rule], exceptions=[exc])
    assert result.capped_carryover == Decimal("10")
    assert result.has_exception


def test_partial_exception_retains_days(calc):
    rule = _year_end(5)
    exc = EmployeeCappingException(rule_id=rule.id, exemption_type=ExemptionType.PARTIAL, retain_days=Decimal("7"))
    result = calc.calculate_carryover(_balance(taken="20"), [rule], exceptions=[exc])
    assert result.capped_carryover == Decimal("7")
    assert result.forfeited_days == Decimal("3")


def test_exception_for_other_year_ignored(calc):
    rule = _year_end(5)
    exc = EmployeeCappingException(rule_id=rule.id, exemption_type=ExemptionType.FULL, year=2023)
    result = calc.calculate_carryover(_balance(taken="20"), [rule], exceptions=[exc])
    assert result.capped_carryover == Decimal("5")
    assert not result.has_exception


def test_partial_exception_requires_retain_days():
    with pytest.raises(ValidationError):
        EmployeeCappingException(rule_id=_year_end(5).id, exemption_type=ExemptionType.PARTIAL)


def test_rule_groups():
    mid, end = _mid_year(0), _year_end(5)
    tariff = CappingRuleGroup(code="TV", rules=[mid, end])
    employee = CappingRuleGroup(code="MA", rules=[_year_end(10)])
    assert resolve_capping_rules(tariff) == [end, mid]
    assert resolve_capping_rules(tariff, employee) == employee.rules
    assert resolve_capping_rules(None) == []


# ── Urlaubskonto ──────────────────────────────────────────────────────────────

def test_balance_cannot_be_overdrawn():
    with pytest.raises(ValidationError):
        _balance(year=2025, taken="31")


def test_manual_adjustment_allows_negative():
    balance = _balance(year=2025, taken="31", adjustments=Decimal("-1"))
    assert balance.available == Decimal("-2")


def test_take_days():
    balance = _balance(year=2025, taken="0")
    updated = balance.take(Decimal("5"))
    assert updated.available == Decimal("25")
    assert balance.taken == 0
    with pytest.raises(VacationBalanceError):
        updated.take(Decimal("26"))
    with pytest.raises(VacationBalanceError):
        updated.take(Decimal("-1"))


# ── Jahreswechsel ─────────────────────────────────────────────────────────────

def test_roll_over_applies_year_end_rules(calc):
    balances = [_balance(2024), _balance(2025, taken="0")]
    rolled = calc.roll_over(balances, [_year_end(5), _mid_year(0)])
    assert rolled[1].carryover == Decimal("5")
    assert rolled[1].available == Decimal("35")


def test_roll_over_mid_year_rule_pending(calc):
    rolled = calc.roll_over([_balance(2024), _balance(2025, taken="0")], [_mid_year(0)])
    assert rolled[1].carryover == Decimal("8")


def test_roll_over_requires_ascending_years(calc):
    with pytest.raises(OrderingError):
        calc.roll_over([_balance(2025, taken="0"), _balance(2024)])
