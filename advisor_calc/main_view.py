"""Main View aggregation engine.

Linked calculator extracts are bucketed by calendar year, summing the fields
of every instance that shares a category (several mortgages, several
registered accounts and so on). The household projection then walks
``projection_years`` years from ``current_year`` and reads each bucket by
calendar year, deriving income against target, net worth and estate figures.

Aggregation is a pure sum; running it twice on the same inputs yields the
same tables.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .data_models import (
    AssetYearRecord,
    CalculatorExtract,
    EstateYearRecord,
    HouseholdParams,
    IncomeYearRecord,
    LiabilityYearRecord,
    LinkedYearData,
    MainViewResult,
    NetWorthYearRecord,
)
from .extractors import FIXED_INCOME_FIELDS, extract
from .utils import (
    ONE,
    ZERO,
    compound,
    parse_int_or_default,
    parse_numeric_or_default,
    percent,
    round_currency,
)

logger = logging.getLogger(__name__)

PROBATE_EXEMPTION = Decimal("50000")
PROBATE_RATE = Decimal("0.015")

_ACCOUNT_BUCKETS = ("registered", "non_registered", "tfsa")
_DEBT_BUCKETS = ("principal_mortgage", "other_mortgage", "long_term_debt", "short_term_debt")


def _account_bucket() -> Dict[str, Decimal]:
    return {"income": ZERO, "money_in": ZERO, "money_out": ZERO, "end_balance": ZERO}


def _debt_bucket() -> Dict[str, Decimal]:
    return {"begin_balance": ZERO, "end_balance": ZERO}


def _num(row: Mapping[str, Any], key: str) -> Decimal:
    return parse_numeric_or_default(row.get(key))


def bucket_by_year(extracts: Iterable[CalculatorExtract]) -> LinkedYearData:
    """Sum linked calculator rows into per-calendar-year category buckets."""
    data = LinkedYearData()
    for item in extracts:
        for row in item.projection_data:
            year = parse_int_or_default(row.get("year"), default=-1)
            if year < 0:
                logger.debug("Skipping %s row without a valid year", item.name)
                continue
            if item.calculator_type == "fixed_income":
                bucket = data.fixed_income.setdefault(year, {name: ZERO for name in FIXED_INCOME_FIELDS})
                for name in FIXED_INCOME_FIELDS:
                    bucket[name] += _num(row, name)

            elif item.calculator_type == "capital_assets":
                years = data.capital_assets.setdefault(
                    year, {name: _account_bucket() for name in _ACCOUNT_BUCKETS}
                )
                if item.category not in years:
                    continue
                bucket = years[item.category]
                bucket["income"] += _num(row, "periodic_redemption")
                bucket["money_in"] += _num(row, "periodic_contribution") + _num(row, "lump_sum_contribution")
                bucket["money_out"] += _num(row, "periodic_redemption") + _num(row, "lump_sum_redemption")
                bucket["end_balance"] += _num(row, "ending_balance")

            elif item.calculator_type == "real_estate":
                bucket = data.real_estate.setdefault(
                    year,
                    {
                        "principal_residence_value": ZERO,
                        "investment_real_estate_value": ZERO,
                        "other_real_estate_value": ZERO,
                        "rental_income": ZERO,
                    },
                )
                value = _num(row, "property_value")
                if item.category == "principal_residence":
                    bucket["principal_residence_value"] += value
                else:
                    if item.category == "other":
                        bucket["other_real_estate_value"] += value
                    else:
                        bucket["investment_real_estate_value"] += value
                    bucket["rental_income"] += _num(row, "rental_income")

            elif item.calculator_type == "mortgage":
                years = data.debt.setdefault(year, {name: _debt_bucket() for name in _DEBT_BUCKETS})
                bucket = years.get(item.category or "principal_mortgage")
                if bucket is None:
                    continue
                bucket["begin_balance"] += _num(row, "opening_balance")
                bucket["end_balance"] += _num(row, "ending_balance")
    logger.debug(
        "Bucketed linked data: %d fixed income, %d capital assets, %d real estate, %d debt years",
        len(data.fixed_income), len(data.capital_assets), len(data.real_estate), len(data.debt),
    )
    return data


def _income_record(year: int, primary_age: int, spouse_age: Optional[int], linked: LinkedYearData) -> IncomeYearRecord:
    record = IncomeYearRecord(year=year, primary_age=primary_age, spouse_age=spouse_age)
    fixed = linked.fixed_income.get(year)
    if fixed:
        record.cpp = round_currency(fixed["cpp_income"])
        record.oas = round_currency(fixed["oas_income"])
        record.bridge_pension = round_currency(fixed["bridge_income"])
        record.private_pension = round_currency(fixed["employer_pension_income"])
        record.other_income_1 = round_currency(fixed["other_income_1"])
        record.other_income_2 = round_currency(fixed["other_income_2"])
    accounts = linked.capital_assets.get(year)
    if accounts:
        record.registered_income = round_currency(accounts["registered"]["income"])
        record.non_registered_income = round_currency(accounts["non_registered"]["income"])
        record.tfsa_income = round_currency(accounts["tfsa"]["income"])
    real_estate = linked.real_estate.get(year)
    if real_estate:
        record.other_income_1 += round_currency(real_estate["rental_income"])
    return record


def _asset_record(year: int, primary_age: int, spouse_age: Optional[int], linked: LinkedYearData) -> AssetYearRecord:
    record = AssetYearRecord(year=year, primary_age=primary_age, spouse_age=spouse_age)
    accounts = linked.capital_assets.get(year)
    if accounts:
        for prefix, name in (("registered", "registered"), ("non_registered", "non_registered"), ("tax_free", "tfsa")):
            bucket = accounts[name]
            setattr(record, f"{prefix}_money_in", round_currency(bucket["money_in"]))
            setattr(record, f"{prefix}_money_out", round_currency(bucket["money_out"]))
            setattr(record, f"{prefix}_end_balance", round_currency(bucket["end_balance"]))
    real_estate = linked.real_estate.get(year)
    if real_estate:
        record.principal_residence_value = round_currency(real_estate["principal_residence_value"])
        record.investment_real_estate_value = round_currency(real_estate["investment_real_estate_value"])
        record.other_real_estate_value = round_currency(real_estate["other_real_estate_value"])
    return record


def _liability_record(year: int, primary_age: int, spouse_age: Optional[int], linked: LinkedYearData) -> LiabilityYearRecord:
    record = LiabilityYearRecord(year=year, primary_age=primary_age, spouse_age=spouse_age)
    debts = linked.debt.get(year)
    if debts:
        for name in _DEBT_BUCKETS:
            setattr(record, f"{name}_begin", round_currency(debts[name]["begin_balance"]))
            setattr(record, f"{name}_end", round_currency(debts[name]["end_balance"]))
    return record


def aggregate(extracts: Iterable[CalculatorExtract], household: HouseholdParams) -> MainViewResult:
    """Merge linked calculator extracts into the household's yearly tables."""
    linked = bucket_by_year(extracts)
    result = MainViewResult(linked_data=linked)

    inflation = percent(household.inflation_rate_percent)
    average_tax_rate = percent(household.average_tax_rate_percent)
    final_year_tax_rate = percent(household.final_year_tax_rate_percent)

    for offset in range(household.projection_years):
        year = household.current_year + offset
        primary_age = household.primary_age + offset
        spouse_age = household.spouse_age + offset if household.has_spouse else None

        income = _income_record(year, primary_age, spouse_age, linked)
        income.total_income = (
            income.cpp + income.oas + income.bridge_pension + income.private_pension
            + income.registered_income + income.non_registered_income + income.tfsa_income
            + income.other_income_1 + income.other_income_2
        )
        target = compound(household.target_income, inflation, offset)
        income.target_income = round_currency(target)
        if target > 0:
            income.percent_of_target_achieved = (income.total_income / target * 100).quantize(Decimal("0.01"))
        income.shortfall_surplus = income.total_income - income.target_income
        income.tax_estimate = round_currency(income.total_income * average_tax_rate)
        income.after_tax_income = income.total_income - income.tax_estimate

        assets = _asset_record(year, primary_age, spouse_age, linked)
        liabilities = _liability_record(year, primary_age, spouse_age, linked)
        total_assets = (
            assets.registered_end_balance + assets.non_registered_end_balance + assets.tax_free_end_balance
            + assets.principal_residence_value + assets.investment_real_estate_value
            + assets.other_real_estate_value
        )
        total_liabilities = (
            liabilities.principal_mortgage_end + liabilities.other_mortgage_end
            + liabilities.long_term_debt_end + liabilities.short_term_debt_end
        )
        net_worth = total_assets - total_liabilities
        deflator = compound(ONE, inflation, offset)
        real_net_worth = round_currency(net_worth / deflator) if deflator else ZERO

        probate = ZERO
        if net_worth > PROBATE_EXEMPTION:
            probate = round_currency((net_worth - PROBATE_EXEMPTION) * PROBATE_RATE)
        final_tax = round_currency(assets.registered_end_balance * final_year_tax_rate)

        result.income_table.append(income)
        result.asset_table.append(assets)
        result.liability_table.append(liabilities)
        result.net_worth_table.append(
            NetWorthYearRecord(
                year=year,
                primary_age=primary_age,
                spouse_age=spouse_age,
                total_assets=total_assets,
                total_liabilities=total_liabilities,
                net_worth=net_worth,
                inflation_adjusted_net_worth=real_net_worth,
                actual_net_worth=household.actual_net_worth.get(offset),
            )
        )
        result.estate_table.append(
            EstateYearRecord(
                year=year,
                primary_age=primary_age,
                spouse_age=spouse_age,
                gross_estate_value=net_worth,
                probate_estimate=probate,
                final_tax_on_registered_assets=final_tax,
                final_estate_value=net_worth - probate - final_tax,
            )
        )
    return result


def aggregate_instances(
    instances: Iterable[Mapping[str, Any]],
    household: HouseholdParams,
    clients: Optional[List[Mapping[str, Any]]] = None,
) -> MainViewResult:
    """Extract every linked calculator instance, then aggregate.

    Each instance is a mapping with ``calculator_type`` and ``state_data``.
    Instances that cannot be extracted are logged and left out of the sums.
    """
    extracts: List[CalculatorExtract] = []
    for instance in instances:
        calculator_type = instance.get("calculator_type")
        label = instance.get("name") or instance.get("id") or calculator_type
        try:
            extracted = extract(calculator_type, instance.get("state_data"), clients, household.current_year)
        except (ValueError, ArithmeticError):
            logger.exception("Failed to extract linked calculator %s", label)
            continue
        if extracted is None:
            logger.info("Linked calculator %s has insufficient data; skipped", label)
            continue
        logger.debug("Processing linked calculator %s (%s)", label, calculator_type)
        extracts.append(extracted)
    return aggregate(extracts, household)
