"""Data models for the projection engines.

This module defines dataclasses for the assumptions each calculator accepts,
the sparse per-year overrides an advisor can enter, and the year records and
results the engines emit. The ``from_form`` constructors are the input
boundary: they read a calculator's persisted ``formData`` (plus its override
maps) and apply the parse-or-default policy so that the engines themselves
only ever see clean ``Decimal`` values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from .utils import (
    ZERO,
    parse_flag,
    parse_int_or_default,
    parse_numeric_or_default,
    parse_offset_map,
)

LIABILITY_TYPES = ("principal_mortgage", "other_mortgage", "long_term_debt", "short_term_debt")
ACCOUNT_TYPES = ("registered", "non_registered", "tfsa")
REAL_ESTATE_TYPES = ("principal_residence", "investment", "other")


def _client_ids(form: Mapping[str, Any]) -> List[str]:
    ids = form.get("client_ids")
    if ids:
        return [str(i) for i in ids]
    if form.get("client_id"):
        return [str(form["client_id"])]
    return []


# ---------------------------------------------------------------------------
# Debt repayment
# ---------------------------------------------------------------------------


@dataclass
class LoanAssumptions:
    """Inputs of the debt repayment calculator.

    Attributes
    ----------
    principal: Decimal
        Outstanding balance at the start of the projection.
    annual_interest_rate_percent: Decimal
        Nominal annual rate in percent (``4`` means 4 %).
    amortization_years: Decimal
        Remaining amortization. Missing or zero values default to 30 years.
    extra_monthly_payment: Decimal
        Planned prepayment added to every month.
    start_age: Decimal
        Borrower's age in the first projected year.
    start_year: int
        Calendar year of offset 0.
    """

    principal: Decimal
    annual_interest_rate_percent: Decimal
    amortization_years: Decimal
    extra_monthly_payment: Decimal
    start_age: Decimal
    start_year: int
    liability_type: str = "principal_mortgage"
    name: str = "Debt Repayment"
    scenario_details: str = ""
    client_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_form(cls, form: Mapping[str, Any], current_year: int) -> "LoanAssumptions":
        liability_type = form.get("liability_type") or "principal_mortgage"
        if liability_type not in LIABILITY_TYPES:
            liability_type = "principal_mortgage"
        amortization_years = parse_numeric_or_default(form.get("amortization_years"))
        return cls(
            principal=parse_numeric_or_default(form.get("loan_balance")),
            annual_interest_rate_percent=parse_numeric_or_default(form.get("interest_rate")),
            amortization_years=amortization_years or Decimal("30"),
            extra_monthly_payment=parse_numeric_or_default(form.get("planned_extra_payment")),
            start_age=parse_numeric_or_default(form.get("current_age")),
            start_year=current_year,
            liability_type=liability_type,
            name=form.get("calculator_name") or "Debt Repayment",
            scenario_details=form.get("scenario_details") or "",
            client_ids=_client_ids(form),
        )


@dataclass
class RefinanceOverride:
    """A refinance event. Either field may be omitted."""

    new_balance: Optional[Decimal] = None
    new_rate_percent: Optional[Decimal] = None


@dataclass
class YearOverride:
    """Manual intervention for a single year offset."""

    manual_payment: Decimal = ZERO
    refinance: Optional[RefinanceOverride] = None


def _optional_number(value: Any) -> Optional[Decimal]:
    parsed = parse_numeric_or_default(value, default=Decimal("NaN"))
    return parsed if parsed.is_finite() else None


def parse_debt_overrides(
    manual_payments: Optional[Mapping[Any, Any]],
    refinance_data: Optional[Mapping[Any, Any]],
) -> Dict[int, YearOverride]:
    """Merge the calculator's two sparse maps into ``{offset: YearOverride}``."""
    overrides: Dict[int, YearOverride] = {}
    for offset, amount in parse_offset_map(manual_payments).items():
        overrides[offset] = YearOverride(manual_payment=amount)
    for key, raw in (refinance_data or {}).items():
        offset = parse_int_or_default(key, default=-1)
        if offset < 0 or not isinstance(raw, Mapping):
            continue
        refinance = RefinanceOverride(
            new_balance=_optional_number(raw.get("new_balance")),
            new_rate_percent=_optional_number(raw.get("new_rate")),
        )
        if refinance.new_balance is None and refinance.new_rate_percent is None:
            continue
        overrides.setdefault(offset, YearOverride()).refinance = refinance
    return overrides


@dataclass
class AmortizationYearRecord:
    """One year of a debt repayment schedule.

    Currency fields are rounded to whole units; ``interest_rate`` is the
    percentage in force for the year.
    """

    year: int
    age: Decimal
    opening_balance: Decimal
    interest_rate: Decimal
    periodic_payment: Decimal
    total_payment: Decimal
    manual_payment: Decimal
    refinance_amount: Decimal
    interest: Decimal
    principal: Decimal
    closing_balance: Decimal
    remaining_amortization: Decimal = ZERO
    cumulative_interest: Decimal = ZERO
    cumulative_payments: Decimal = ZERO


# ---------------------------------------------------------------------------
# Real estate
# ---------------------------------------------------------------------------


@dataclass
class PropertyAssumptions:
    """Inputs of the real estate calculator.

    ``adjusted_cost_base`` falls back to ``start_value`` when it is zero, and
    ``capital_gains_inclusion_rate_percent`` falls back to 50 %. A missing
    ``time_period`` falls back to ``default_time_period``: 50 years when the
    Main View reads a linked property, none for the calculator itself.
    """

    start_value: Decimal
    adjusted_cost_base: Decimal
    annual_growth_rate_percent: Decimal
    gross_annual_rent: Decimal
    rent_index_rate_percent: Decimal
    annual_expenses: Decimal
    expense_index_rate_percent: Decimal
    marginal_tax_rate_percent: Decimal
    capital_gains_inclusion_rate_percent: Decimal
    outstanding_mortgage: Decimal
    is_principal_residence: bool
    time_period_years: int
    start_age: Decimal
    start_year: int
    ownership_percentage: Decimal = Decimal("100")
    real_estate_type: str = "principal_residence"
    name: str = "Real Estate"
    client_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_form(
        cls,
        form: Mapping[str, Any],
        current_year: int,
        default_time_period: int = 50,
    ) -> "PropertyAssumptions":
        start_value = parse_numeric_or_default(form.get("start_value"))
        is_principal_residence = parse_flag(form.get("is_principal_residence"), default=True)
        real_estate_type = form.get("real_estate_type")
        if real_estate_type not in REAL_ESTATE_TYPES:
            real_estate_type = "principal_residence" if is_principal_residence else "investment"
        return cls(
            start_value=start_value,
            adjusted_cost_base=parse_numeric_or_default(form.get("acb")) or start_value,
            annual_growth_rate_percent=parse_numeric_or_default(form.get("growth_rate")),
            gross_annual_rent=parse_numeric_or_default(form.get("gross_rent")),
            rent_index_rate_percent=parse_numeric_or_default(form.get("rent_index_rate")),
            annual_expenses=parse_numeric_or_default(form.get("rental_expenses")),
            expense_index_rate_percent=parse_numeric_or_default(form.get("expenses_index_rate")),
            marginal_tax_rate_percent=parse_numeric_or_default(form.get("marginal_tax_rate")),
            capital_gains_inclusion_rate_percent=(
                parse_numeric_or_default(form.get("capital_gains_inclusion_rate")) or Decimal("50")
            ),
            outstanding_mortgage=parse_numeric_or_default(form.get("mortgage_outstanding")),
            is_principal_residence=is_principal_residence,
            time_period_years=parse_int_or_default(form.get("time_period"), default_time_period),
            start_age=parse_numeric_or_default(form.get("current_age")),
            start_year=current_year,
            ownership_percentage=parse_numeric_or_default(form.get("ownership_percentage")) or Decimal("100"),
            real_estate_type=real_estate_type,
            name=form.get("calculator_name") or form.get("property_name") or "Real Estate",
            client_ids=_client_ids(form),
        )


@dataclass
class RealEstateYearRecord:
    """One year of a property projection. Currency fields are whole units."""

    year: int
    age: Decimal
    starting_value: Decimal
    growth_rate: Decimal
    gross_rent: Decimal
    rental_expenses: Decimal
    net_rent: Decimal
    sale_proceeds: Decimal
    purchase_basis: Decimal
    capital_gain_loss: Decimal
    taxable_gain: Decimal
    marginal_tax_rate: Decimal
    tax_on_rent: Decimal
    tax_on_gain: Decimal
    end_value: Decimal
    mortgage_outstanding: Decimal
    equity_realized: Decimal


# ---------------------------------------------------------------------------
# Insurance needs
# ---------------------------------------------------------------------------


@dataclass
class InsuranceAssumptions:
    """Household inputs of the insurance needs analysis."""

    client_age: Decimal
    client_income: Decimal
    liquid_assets: Decimal
    illiquid_assets: Decimal
    total_debt: Decimal
    start_year: int
    has_spouse: bool = False
    spouse_age: Decimal = ZERO
    spouse_income: Decimal = ZERO
    include_illiquid_assets: bool = True
    client_income_recovery_percent: Decimal = Decimal("75")
    spouse_income_recovery_percent: Decimal = Decimal("75")
    years_of_income_needed: Decimal = Decimal("20")
    investment_return_rate_percent: Decimal = Decimal("5")
    inflation_rate_percent: Decimal = Decimal("2")
    final_expenses: Decimal = Decimal("15000")
    education_fund: Decimal = ZERO
    existing_life_insurance_client: Decimal = ZERO
    existing_life_insurance_spouse: Decimal = ZERO

    @classmethod
    def from_form(
        cls,
        form: Mapping[str, Any],
        current_year: int,
        include_illiquid_assets: Optional[bool] = None,
    ) -> "InsuranceAssumptions":
        def num(key: str, default: Any = 0) -> Decimal:
            return parse_numeric_or_default(form.get(key), default)

        if include_illiquid_assets is None:
            include_illiquid_assets = parse_flag(form.get("include_illiquid_assets"), default=True)
        has_spouse = bool(form.get("spouse_id")) or parse_flag(form.get("has_spouse"))
        return cls(
            client_age=num("client_age"),
            client_income=num("client_income"),
            liquid_assets=num("liquid_assets"),
            illiquid_assets=num("illiquid_assets"),
            total_debt=num("total_debt"),
            start_year=current_year,
            has_spouse=has_spouse,
            spouse_age=num("spouse_age"),
            spouse_income=num("spouse_income"),
            include_illiquid_assets=include_illiquid_assets,
            client_income_recovery_percent=num("client_income_recovery_perc", 75),
            spouse_income_recovery_percent=num("spouse_income_recovery_perc", 75),
            years_of_income_needed=num("years_of_income_needed", 20),
            investment_return_rate_percent=num("investment_return_rate", 5),
            inflation_rate_percent=num("inflation_rate", 2),
            final_expenses=num("final_expenses", 15000),
            education_fund=num("education_fund"),
            existing_life_insurance_client=num("existing_life_insurance_client"),
            existing_life_insurance_spouse=num("existing_life_insurance_spouse"),
        )


@dataclass
class InsuranceProjectionYear:
    year: int
    age: Decimal
    income_replacement: Decimal
    debt_coverage: Decimal
    final_expenses: Decimal
    education_fund: Decimal
    total_need: Decimal
    existing_coverage: Decimal
    gap: Decimal


@dataclass
class InsuranceNeedResult:
    insurance_need_on_client: Decimal
    insurance_need_on_spouse: Decimal
    capital_for_client_income: Decimal
    capital_for_spouse_income: Decimal
    assets_considered: Decimal
    real_return_rate: Decimal
    yearly_projection: List[InsuranceProjectionYear] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Main View aggregation
# ---------------------------------------------------------------------------


@dataclass
class CalculatorExtract:
    """A calculator's output normalised for aggregation.

    ``projection_data`` rows are dicts keyed by field name and always carry a
    calendar ``year``. ``category`` is the account type, liability type or
    real estate type that decides which bucket the rows feed.
    """

    name: str
    calculator_type: str
    category: Optional[str]
    projection_data: List[Dict[str, Any]]
    final_metrics: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HouseholdParams:
    """Household-level inputs of the Main View calculator."""

    current_year: int
    primary_age: int = 65
    spouse_age: int = 65
    has_spouse: bool = False
    projection_years: int = 30
    target_income: Decimal = Decimal("200000")
    inflation_rate_percent: Decimal = Decimal("2")
    average_tax_rate_percent: Decimal = Decimal("25")
    final_year_tax_rate_percent: Decimal = Decimal("50")
    actual_net_worth: Dict[int, Decimal] = field(default_factory=dict)

    @classmethod
    def from_form(
        cls,
        form: Mapping[str, Any],
        current_year: int,
        actual_net_worth: Any = None,
    ) -> "HouseholdParams":
        client_ids = form.get("client_ids") or []
        has_spouse = len(client_ids) > 1 or bool(form.get("spouse_id")) or parse_flag(form.get("has_spouse"))
        if isinstance(actual_net_worth, list):
            actual_net_worth = {i: v for i, v in enumerate(actual_net_worth)}
        return cls(
            current_year=current_year,
            primary_age=parse_int_or_default(form.get("primary_client_age"), 65),
            spouse_age=parse_int_or_default(form.get("spouse_age"), 65),
            has_spouse=has_spouse,
            projection_years=parse_int_or_default(form.get("projection_years"), 30),
            target_income=parse_numeric_or_default(form.get("target_income"), 200000),
            inflation_rate_percent=parse_numeric_or_default(form.get("inflation_rate"), 2),
            average_tax_rate_percent=parse_numeric_or_default(form.get("average_tax_rate"), 25),
            final_year_tax_rate_percent=parse_numeric_or_default(form.get("final_year_tax_rate"), 50),
            actual_net_worth=parse_offset_map(actual_net_worth),
        )


@dataclass
class LinkedYearData:
    """Linked calculator contributions bucketed by calendar year.

    Each mapping is ``{year: {field: Decimal}}``; capital assets and debt add
    one more level for the account or liability type.
    """

    fixed_income: Dict[int, Dict[str, Decimal]] = field(default_factory=dict)
    capital_assets: Dict[int, Dict[str, Dict[str, Decimal]]] = field(default_factory=dict)
    real_estate: Dict[int, Dict[str, Decimal]] = field(default_factory=dict)
    debt: Dict[int, Dict[str, Dict[str, Decimal]]] = field(default_factory=dict)


@dataclass
class IncomeYearRecord:
    year: int
    primary_age: int
    spouse_age: Optional[int]
    cpp: Decimal = ZERO
    oas: Decimal = ZERO
    bridge_pension: Decimal = ZERO
    private_pension: Decimal = ZERO
    registered_income: Decimal = ZERO
    non_registered_income: Decimal = ZERO
    tfsa_income: Decimal = ZERO
    other_income_1: Decimal = ZERO
    other_income_2: Decimal = ZERO
    total_income: Decimal = ZERO
    target_income: Decimal = ZERO
    percent_of_target_achieved: Decimal = ZERO
    shortfall_surplus: Decimal = ZERO
    tax_estimate: Decimal = ZERO
    after_tax_income: Decimal = ZERO


@dataclass
class AssetYearRecord:
    year: int
    primary_age: int
    spouse_age: Optional[int]
    registered_money_in: Decimal = ZERO
    registered_money_out: Decimal = ZERO
    registered_end_balance: Decimal = ZERO
    non_registered_money_in: Decimal = ZERO
    non_registered_money_out: Decimal = ZERO
    non_registered_end_balance: Decimal = ZERO
    tax_free_money_in: Decimal = ZERO
    tax_free_money_out: Decimal = ZERO
    tax_free_end_balance: Decimal = ZERO
    principal_residence_value: Decimal = ZERO
    investment_real_estate_value: Decimal = ZERO
    other_real_estate_value: Decimal = ZERO


@dataclass
class LiabilityYearRecord:
    year: int
    primary_age: int
    spouse_age: Optional[int]
    principal_mortgage_begin: Decimal = ZERO
    principal_mortgage_end: Decimal = ZERO
    other_mortgage_begin: Decimal = ZERO
    other_mortgage_end: Decimal = ZERO
    long_term_debt_begin: Decimal = ZERO
    long_term_debt_end: Decimal = ZERO
    short_term_debt_begin: Decimal = ZERO
    short_term_debt_end: Decimal = ZERO


@dataclass
class NetWorthYearRecord:
    year: int
    primary_age: int
    spouse_age: Optional[int]
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
    inflation_adjusted_net_worth: Decimal
    actual_net_worth: Optional[Decimal] = None


@dataclass
class EstateYearRecord:
    year: int
    primary_age: int
    spouse_age: Optional[int]
    gross_estate_value: Decimal
    probate_estimate: Decimal
    final_tax_on_registered_assets: Decimal
    final_estate_value: Decimal


@dataclass
class MainViewResult:
    income_table: List[IncomeYearRecord] = field(default_factory=list)
    asset_table: List[AssetYearRecord] = field(default_factory=list)
    liability_table: List[LiabilityYearRecord] = field(default_factory=list)
    net_worth_table: List[NetWorthYearRecord] = field(default_factory=list)
    estate_table: List[EstateYearRecord] = field(default_factory=list)
    linked_data: LinkedYearData = field(default_factory=LinkedYearData)
