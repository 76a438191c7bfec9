"""Insurance needs analysis.

The capital needed on a death is the present value of the income the
household must replace, plus debts, final expenses and an education fund,
less the assets and life insurance already in place. The present value is
taken at the real (inflation-adjusted) return so that the replaced income
keeps its purchasing power.

The multi-year projection answers a different question: how large the gross
need would be if death occurred in a later year, and how much of it existing
life insurance covers. Liquid and illiquid assets are not deducted there.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from .data_models import InsuranceAssumptions, InsuranceNeedResult, InsuranceProjectionYear
from .utils import ONE, ZERO, compound, percent, round_currency

logger = logging.getLogger(__name__)

PROJECTION_EXTRA_YEARS = 5


def present_value(rate: Decimal, years: Decimal, payment: Decimal) -> Decimal:
    """Present value of ``years`` annual payments of ``payment`` at ``rate``.

    ``pmt * (1 - (1 + rate)^-n) / rate``, or ``pmt * n`` when the rate is zero.
    A rate of -100 % or below has no present value and yields zero.
    """
    if rate == 0:
        return payment * years
    if ONE + rate <= 0:
        return ZERO
    return payment * (ONE - (ONE + rate) ** -years) / rate


def real_return_rate(nominal_percent: Decimal, inflation_percent: Decimal) -> Decimal:
    """Fisher real rate; an inflation rate of -100 % gives zero."""
    deflator = ONE + percent(inflation_percent)
    if deflator == 0:
        return ZERO
    return (ONE + percent(nominal_percent)) / deflator - ONE


def _need(capital_for_income: Decimal, assumptions: InsuranceAssumptions, offsets: Decimal) -> Decimal:
    needs = (
        capital_for_income
        + assumptions.total_debt
        + assumptions.final_expenses
        + assumptions.education_fund
    )
    return max(ZERO, needs - offsets)


def _projection(assumptions: InsuranceAssumptions, real_rate: Decimal) -> List[InsuranceProjectionYear]:
    years_needed = assumptions.years_of_income_needed
    if assumptions.client_age <= 0 or years_needed <= 0:
        return []

    inflation = percent(assumptions.inflation_rate_percent)
    income_to_replace = assumptions.client_income * percent(assumptions.client_income_recovery_percent)
    existing_coverage = assumptions.existing_life_insurance_client
    last_offset = int(years_needed + PROJECTION_EXTRA_YEARS)

    rows: List[InsuranceProjectionYear] = []
    for offset in range(last_offset + 1):
        remaining_years = max(ZERO, years_needed - offset)
        income_replacement = present_value(
            real_rate, remaining_years, compound(income_to_replace, inflation, offset)
        )
        debt_coverage = compound(assumptions.total_debt, inflation, offset)
        final_expenses = compound(assumptions.final_expenses, inflation, offset)
        education_fund = compound(assumptions.education_fund, inflation, offset)
        total_need = income_replacement + debt_coverage + final_expenses + education_fund
        # Gap is against existing life insurance only; assets are not deducted here.
        gap = max(ZERO, total_need - existing_coverage)
        rows.append(
            InsuranceProjectionYear(
                year=assumptions.start_year + offset,
                age=assumptions.client_age + offset,
                income_replacement=round_currency(income_replacement),
                debt_coverage=round_currency(debt_coverage),
                final_expenses=round_currency(final_expenses),
                education_fund=round_currency(education_fund),
                total_need=round_currency(total_need),
                existing_coverage=round_currency(existing_coverage),
                gap=round_currency(gap),
            )
        )
    return rows


def compute_need(assumptions: InsuranceAssumptions) -> InsuranceNeedResult:
    """Compute the insurance need on each spouse and the client's projection."""
    real_rate = real_return_rate(
        assumptions.investment_return_rate_percent, assumptions.inflation_rate_percent
    )
    assets = assumptions.liquid_assets
    if assumptions.include_illiquid_assets:
        assets += assumptions.illiquid_assets

    client_income = assumptions.client_income * percent(assumptions.client_income_recovery_percent)
    capital_for_client = present_value(real_rate, assumptions.years_of_income_needed, client_income)
    need_on_client = _need(
        capital_for_client, assumptions, assets + assumptions.existing_life_insurance_client
    )

    capital_for_spouse = ZERO
    need_on_spouse = ZERO
    if assumptions.has_spouse:
        spouse_income = assumptions.spouse_income * percent(assumptions.spouse_income_recovery_percent)
        capital_for_spouse = present_value(real_rate, assumptions.years_of_income_needed, spouse_income)
        need_on_spouse = _need(
            capital_for_spouse, assumptions, assets + assumptions.existing_life_insurance_spouse
        )

    projection = _projection(assumptions, real_rate)
    logger.debug(
        "Insurance need: client=%s spouse=%s (%s projection rows)",
        need_on_client, need_on_spouse, len(projection),
    )
    return InsuranceNeedResult(
        insurance_need_on_client=round_currency(need_on_client),
        insurance_need_on_spouse=round_currency(need_on_spouse),
        capital_for_client_income=round_currency(capital_for_client),
        capital_for_spouse_income=round_currency(capital_for_spouse),
        assets_considered=round_currency(assets),
        real_return_rate=real_rate,
        yearly_projection=projection,
    )
