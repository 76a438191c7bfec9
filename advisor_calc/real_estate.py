"""Projection engine for the real estate calculator.

A property grows at a fixed rate, earns index-adjusted rent against
index-adjusted expenses, and may be disposed of in any year through a sale
override. A disposition triggers one-time capital gains accounting and zeroes
the property's value, rent and expenses for every following year; rows keep
being emitted through the full horizon.

The purchase basis and the mortgage outstanding are carried forward year to
year: a manual override replaces the value for its own year, and every later
year inherits the last resolved value until another override supersedes it.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from .data_models import PropertyAssumptions, RealEstateYearRecord
from .utils import ONE, ZERO, compound, percent, round_currency

logger = logging.getLogger(__name__)


def _indexed(base: Decimal, index_rate_percent: Decimal, offset: int) -> Decimal:
    return compound(base, percent(index_rate_percent), offset)


def project_property(
    prop: PropertyAssumptions,
    sale_overrides: Optional[Mapping[int, Decimal]] = None,
    purchase_overrides: Optional[Mapping[int, Decimal]] = None,
    mortgage_overrides: Optional[Mapping[int, Decimal]] = None,
) -> Tuple[List[RealEstateYearRecord], Dict[str, object]]:
    """Project a property year by year over ``time_period_years`` (inclusive).

    Returns the schedule and a summary with ``final_value``,
    ``total_appreciation``, ``total_rental_income``, ``total_tax_paid``,
    ``final_equity``, ``annualized_return`` and ``disposition_year``. A
    non-positive time period yields an empty schedule and an empty summary.
    """
    sale_overrides = sale_overrides or {}
    purchase_overrides = purchase_overrides or {}
    mortgage_overrides = mortgage_overrides or {}

    if prop.time_period_years <= 0:
        return [], {}

    growth = percent(prop.annual_growth_rate_percent)
    marginal_rate = percent(prop.marginal_tax_rate_percent)
    inclusion_rate = percent(prop.capital_gains_inclusion_rate_percent)

    schedule: List[RealEstateYearRecord] = []
    running_value = prop.start_value
    purchase_basis = prop.adjusted_cost_base
    mortgage = prop.outstanding_mortgage
    disposed = False
    disposition_offset: Optional[int] = None
    disposition_proceeds = ZERO
    cumulative_rent = ZERO
    cumulative_tax = ZERO

    for offset in range(prop.time_period_years + 1):
        starting_value = running_value
        if offset in purchase_overrides:
            purchase_basis = purchase_overrides[offset]
        if offset in mortgage_overrides:
            mortgage = mortgage_overrides[offset]

        gross_rent = _indexed(prop.gross_annual_rent, prop.rent_index_rate_percent, offset)
        expenses = _indexed(prop.annual_expenses, prop.expense_index_rate_percent, offset)
        net_rent = gross_rent - expenses
        tax_on_rent = net_rent * marginal_rate if net_rent > 0 else ZERO

        sale_proceeds = ZERO
        capital_gain = ZERO
        taxable_gain = ZERO
        tax_on_gain = ZERO
        equity_realized = ZERO

        if disposed:
            end_value = ZERO
            gross_rent = expenses = net_rent = tax_on_rent = ZERO
        else:
            if starting_value > 0 or (offset == 0 and prop.start_value > 0):
                cumulative_rent += net_rent
                cumulative_tax += tax_on_rent
            end_value = starting_value * (ONE + growth)
            proceeds = sale_overrides.get(offset, ZERO)
            if proceeds > 0:
                sale_proceeds = proceeds
                capital_gain = proceeds - purchase_basis
                if not prop.is_principal_residence:
                    taxable_gain = capital_gain * inclusion_rate
                    tax_on_gain = taxable_gain * marginal_rate
                    if tax_on_gain > 0:
                        cumulative_tax += tax_on_gain
                equity_realized = proceeds - mortgage
                end_value = ZERO
                disposed = True
                disposition_offset = offset
                disposition_proceeds = proceeds
                logger.debug(
                    "Disposition of %s in offset %s: proceeds=%s gain=%s",
                    prop.name, offset, proceeds, capital_gain,
                )

        running_value = end_value
        schedule.append(
            RealEstateYearRecord(
                year=prop.start_year + offset,
                age=prop.start_age + offset,
                starting_value=round_currency(starting_value),
                growth_rate=prop.annual_growth_rate_percent,
                gross_rent=round_currency(gross_rent),
                rental_expenses=round_currency(expenses),
                net_rent=round_currency(net_rent),
                sale_proceeds=round_currency(sale_proceeds),
                purchase_basis=round_currency(purchase_basis),
                capital_gain_loss=round_currency(capital_gain),
                taxable_gain=round_currency(taxable_gain),
                marginal_tax_rate=prop.marginal_tax_rate_percent,
                tax_on_rent=round_currency(tax_on_rent),
                tax_on_gain=round_currency(tax_on_gain),
                end_value=round_currency(end_value),
                mortgage_outstanding=round_currency(mortgage),
                equity_realized=round_currency(equity_realized),
            )
        )

    if disposition_offset is not None:
        final_value = ZERO
        final_equity = ZERO
        total_appreciation = disposition_proceeds - prop.start_value
        effective_years = disposition_offset
        value_for_return = disposition_proceeds
    else:
        final_value = running_value
        total_appreciation = running_value - prop.start_value
        final_equity = (running_value - prop.outstanding_mortgage) * percent(prop.ownership_percentage)
        effective_years = prop.time_period_years
        value_for_return = running_value

    annualized_return = ZERO
    if prop.start_value > 0 and effective_years > 0 and value_for_return > 0:
        annualized_return = (value_for_return / prop.start_value) ** (ONE / effective_years) - ONE

    summary: Dict[str, object] = {
        "final_value": round_currency(final_value),
        "total_appreciation": round_currency(total_appreciation),
        "total_rental_income": round_currency(cumulative_rent),
        "total_tax_paid": round_currency(cumulative_tax),
        "final_equity": round_currency(final_equity),
        "annualized_return": annualized_return,
        "disposition_year": (
            prop.start_year + disposition_offset if disposition_offset is not None else None
        ),
    }
    return schedule, summary


def rental_income_stream(prop: PropertyAssumptions) -> Optional[Dict[int, Decimal]]:
    """Return positive net rental income by calendar year for the Main View.

    Covers offsets 1 through ``time_period_years``; years whose indexed net
    rent is not positive are left out. Returns ``None`` when the property
    produces no qualifying year at all.
    """
    if prop.time_period_years <= 0:
        return None
    if prop.gross_annual_rent <= 0 and prop.annual_expenses <= 0:
        return None

    stream: Dict[int, Decimal] = {}
    for offset in range(1, prop.time_period_years + 1):
        gross_rent = _indexed(prop.gross_annual_rent, prop.rent_index_rate_percent, offset)
        expenses = _indexed(prop.annual_expenses, prop.expense_index_rate_percent, offset)
        net_income = gross_rent - expenses
        if net_income > 0:
            stream[prop.start_year + offset] = round_currency(net_income)
    return stream or None
