"""Core calculation engine for the debt repayment calculator.

This module builds year-by-year amortization schedules for a debt. It supports
a planned extra monthly payment, one-off manual payments and refinance events
(a new balance and/or rate applied from a given year, re-amortized over the
remaining term). Results are returned as a list of ``AmortizationYearRecord``
objects along with a summary dictionary.

All arithmetic is done on unrounded ``Decimal`` values; figures are rounded to
whole currency units only when a record is emitted.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from .data_models import AmortizationYearRecord, LoanAssumptions, YearOverride
from .utils import ONE, ZERO, percent, round_currency

logger = logging.getLogger(__name__)

MAX_PROJECTION_YEARS = 50
PAYOFF_EPSILON = Decimal("0.01")
MONTHS_PER_YEAR = 12


def monthly_payment(balance: Decimal, annual_rate_percent: Decimal, months: Decimal) -> Decimal:
    """Return the fixed monthly payment that fully amortizes ``balance``.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the balance, ``i`` the monthly interest rate and ``n`` the
    number of months. When the rate is zero the payment is ``P / n``; when no
    months remain the payment is zero.
    """
    if months <= 0:
        return ZERO
    rate_per_month = percent(annual_rate_percent) / MONTHS_PER_YEAR
    if rate_per_month == 0:
        return balance / months
    if ONE + rate_per_month <= 0:
        return ZERO
    factor = (ONE + rate_per_month) ** months
    return balance * (rate_per_month * factor) / (factor - ONE)


def _empty_record(loan: LoanAssumptions) -> AmortizationYearRecord:
    return AmortizationYearRecord(
        year=loan.start_year,
        age=loan.start_age,
        opening_balance=ZERO,
        interest_rate=ZERO,
        periodic_payment=ZERO,
        total_payment=ZERO,
        manual_payment=ZERO,
        refinance_amount=ZERO,
        interest=ZERO,
        principal=ZERO,
        closing_balance=ZERO,
    )


def amortize(
    loan: LoanAssumptions,
    overrides: Optional[Mapping[int, YearOverride]] = None,
) -> Tuple[List[AmortizationYearRecord], Dict[str, object]]:
    """Compute the yearly amortization schedule and summary for a debt.

    Parameters
    ----------
    loan: LoanAssumptions
        The debt's assumptions. ``start_year`` anchors offset 0.
    overrides: Mapping[int, YearOverride]
        Sparse per-year interventions keyed by zero-based year offset.

    Returns
    -------
    schedule: List[AmortizationYearRecord]
        One record per year, ending with the payoff year or after the
        50-year cap, whichever comes first.
    summary: Dict[str, object]
        Aggregate metrics: payment, total interest, payoff year and so on.
    """
    overrides = overrides or {}
    amortization_years = loan.amortization_years
    rate_percent = loan.annual_interest_rate_percent
    payment = monthly_payment(loan.principal, rate_percent, amortization_years * MONTHS_PER_YEAR)
    extra_annual = loan.extra_monthly_payment * MONTHS_PER_YEAR

    balance = loan.principal
    total_interest = ZERO
    total_paid = ZERO
    schedule: List[AmortizationYearRecord] = []

    for offset in range(MAX_PROJECTION_YEARS + 1):
        if balance <= PAYOFF_EPSILON:
            break
        opening_balance = balance
        override = overrides.get(offset) or YearOverride()
        refinance = override.refinance
        refinance_amount = ZERO

        if refinance is not None:
            if refinance.new_balance is not None:
                balance = refinance.new_balance
                refinance_amount = refinance.new_balance
            if refinance.new_rate_percent is not None:
                rate_percent = refinance.new_rate_percent
            remaining_months = max(ZERO, (amortization_years - offset) * MONTHS_PER_YEAR)
            payment = monthly_payment(balance, rate_percent, remaining_months)
            logger.debug(
                "Refinance at offset %s: balance=%s rate=%s%% payment=%s",
                offset, balance, rate_percent, payment,
            )

        annual_rate = percent(rate_percent)
        interest = balance * annual_rate if balance > 0 else ZERO
        total_payment = payment * MONTHS_PER_YEAR + extra_annual + override.manual_payment

        principal = total_payment - interest
        if principal > balance:
            # Final year: only the outstanding balance is retired.
            principal = balance
            interest = balance * annual_rate
            balance = ZERO
        else:
            balance -= principal

        total_interest += interest
        total_paid += total_payment
        remaining = max(ZERO, amortization_years - offset) if balance > 0 else ZERO

        schedule.append(
            AmortizationYearRecord(
                year=loan.start_year + offset,
                age=loan.start_age + offset,
                opening_balance=round_currency(opening_balance),
                interest_rate=rate_percent,
                periodic_payment=round_currency(payment),
                total_payment=round_currency(total_payment),
                manual_payment=round_currency(override.manual_payment),
                refinance_amount=round_currency(refinance_amount),
                interest=round_currency(interest),
                principal=round_currency(principal),
                closing_balance=round_currency(balance),
                remaining_amortization=remaining,
                cumulative_interest=round_currency(total_interest),
                cumulative_payments=round_currency(total_paid),
            )
        )

    if balance <= PAYOFF_EPSILON and schedule:
        logger.debug("Debt paid off in %s after %s years", schedule[-1].year, len(schedule))

    summary: Dict[str, object] = {
        "regular_payment": round_currency(payment),
        "annual_payment": round_currency(payment * MONTHS_PER_YEAR),
        "total_interest": round_currency(total_interest),
        "total_payments": round_currency(loan.principal + total_interest),
        "total_paid": round_currency(total_paid),
        "ending_balance": round_currency(balance),
        "payoff_year": schedule[-1].year if schedule else loan.start_year,
        "years_to_payoff": len(schedule),
        "remaining_amortization": (
            max(ZERO, amortization_years - len(schedule)) if balance > PAYOFF_EPSILON else ZERO
        ),
    }
    return schedule, summary


def project_debt(
    loan: LoanAssumptions,
    overrides: Optional[Mapping[int, YearOverride]] = None,
) -> Tuple[List[AmortizationYearRecord], Dict[str, object]]:
    """Calculator entry point for the debt repayment schedule.

    A debt without a positive principal or without a borrower age yields a
    single zero-valued record and an empty summary instead of a schedule.
    """
    if loan.principal <= 0 or not loan.start_age:
        logger.debug("Debt inputs incomplete; returning placeholder record")
        return [_empty_record(loan)], {}
    return amortize(loan, overrides)
