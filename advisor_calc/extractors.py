"""Extractors that normalise calculator state for the Main View.

Each extractor takes a calculator instance's persisted state (``formData``
plus the calculator's override maps, using the stored camelCase keys) and a
client roster, and returns a ``CalculatorExtract`` whose ``projection_data``
rows are keyed by calendar year. ``None`` means the state does not hold
enough data to project.

The debt and real estate extractors re-run their engines. The fixed income
and capital assets calculators are projected elsewhere; their extractors
accept the precomputed ``projectionData`` rows stored with the instance and
only normalise the numeric fields.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .data_models import (
    ACCOUNT_TYPES,
    CalculatorExtract,
    LoanAssumptions,
    PropertyAssumptions,
    parse_debt_overrides,
)
from .engine import amortize
from .real_estate import project_property
from .utils import parse_int_or_default, parse_numeric_or_default, parse_offset_map

logger = logging.getLogger(__name__)

FIXED_INCOME_FIELDS = (
    "cpp_income",
    "oas_income",
    "bridge_income",
    "employer_pension_income",
    "other_income_1",
    "other_income_2",
    "total_fixed_income",
)

# Stored rows use the calculators' camelCase names.
_FIXED_INCOME_SOURCE_KEYS = {
    "cpp_income": "cppIncome",
    "oas_income": "oasIncome",
    "bridge_income": "bridgeIncome",
    "employer_pension_income": "employerPensionIncome",
    "other_income_1": "otherIncome1",
    "other_income_2": "otherIncome2",
    "total_fixed_income": "totalFixedIncome",
}

_CAPITAL_ASSETS_SOURCE_KEYS = {
    "periodic_contribution": "periodicContribution",
    "lump_sum_contribution": "lumpSumContribution",
    "periodic_redemption": "periodicRedemption",
    "lump_sum_redemption": "lumpSumRedemption",
    "ending_balance": "endingBalance",
}

Extractor = Callable[[Optional[Mapping[str, Any]], Optional[Iterable[Mapping[str, Any]]], int], Optional[CalculatorExtract]]


def comparison_name(default: str, client_ids: List[str], clients: Optional[Iterable[Mapping[str, Any]]]) -> str:
    """Append the linked clients' names to a calculator's display name."""
    if not client_ids or not clients:
        return default
    roster = {str(c.get("id")): c for c in clients if c}
    names = []
    for client_id in client_ids:
        client = roster.get(str(client_id))
        if client:
            names.append(f"{client.get('first_name', '')} {client.get('last_name', '')}".strip())
    names = [n for n in names if n]
    if not names:
        return default
    return f"{default} ({', '.join(names)})"


def _form(state: Optional[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    if not state or not isinstance(state.get("formData"), Mapping):
        return None
    return state["formData"]


def _row_value(row: Mapping[str, Any], name: str, source_key: str):
    value = row.get(name)
    if value is None:
        value = row.get(source_key)
    return parse_numeric_or_default(value)


def extract_debt_data(state, clients, current_year: int) -> Optional[CalculatorExtract]:
    form = _form(state)
    if form is None:
        return None
    loan = LoanAssumptions.from_form(form, current_year)
    if loan.principal == 0:
        return None
    overrides = parse_debt_overrides(state.get("manualPayments"), state.get("refinanceData"))
    schedule, summary = amortize(loan, overrides)

    rows = [
        {
            "year": r.year,
            "age": r.age,
            "opening_balance": r.opening_balance,
            "interest_rate": r.interest_rate,
            "periodic_payment": r.periodic_payment,
            "payment": r.total_payment,
            "manual_payment": r.manual_payment,
            "refinance_amount": r.refinance_amount,
            "interest": r.interest,
            "principal": r.principal,
            "closing_balance": r.closing_balance,
            "remaining_amortization": r.remaining_amortization,
            "cumulative_total_interest": r.cumulative_interest,
            "cumulative_total_payments": r.cumulative_payments,
            "ending_balance": r.closing_balance,
        }
        for r in schedule
    ]
    name = loan.name
    if loan.scenario_details:
        name = f"{name} - {loan.scenario_details}"
    return CalculatorExtract(
        name=comparison_name(name, loan.client_ids, clients),
        calculator_type="mortgage",
        category=loan.liability_type,
        projection_data=rows,
        final_metrics={
            "total_interest_paid": summary["total_interest"],
            "total_payments_made": summary["total_paid"],
            "ending_loan_balance": summary["ending_balance"],
            "remaining_amortization": summary["remaining_amortization"],
            "years_to_payoff": summary["years_to_payoff"],
            "payoff_year": summary["payoff_year"],
        },
    )


def extract_real_estate_data(state, clients, current_year: int) -> Optional[CalculatorExtract]:
    form = _form(state)
    if form is None:
        return None
    prop = PropertyAssumptions.from_form(form, current_year)
    if prop.time_period_years <= 0:
        return None
    schedule, summary = project_property(
        prop,
        parse_offset_map(state.get("saleProceeds")),
        parse_offset_map(state.get("manualPurchases")),
        parse_offset_map(state.get("manualMortgage")),
    )
    rows = [
        {
            "year": r.year,
            "age": r.age,
            "property_value": r.end_value,
            "rental_income": r.net_rent,
            "purchase": r.purchase_basis,
            "mortgage_outstanding": r.mortgage_outstanding,
        }
        for r in schedule
    ]
    return CalculatorExtract(
        name=comparison_name(prop.name, prop.client_ids, clients),
        calculator_type="real_estate",
        category=prop.real_estate_type,
        projection_data=rows,
        final_metrics=summary,
    )


def _precomputed_rows(state: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    rows = state.get("projectionData") or []
    return [row for row in rows if isinstance(row, Mapping)]


def extract_fixed_income_data(state, clients, current_year: int) -> Optional[CalculatorExtract]:
    form = _form(state)
    if form is None:
        return None
    rows = []
    for row in _precomputed_rows(state):
        normalised: Dict[str, Any] = {"year": parse_int_or_default(row.get("year"))}
        for name in FIXED_INCOME_FIELDS:
            normalised[name] = _row_value(row, name, _FIXED_INCOME_SOURCE_KEYS[name])
        rows.append(normalised)
    if not rows:
        return None
    client_ids = form.get("client_ids") or []
    return CalculatorExtract(
        name=comparison_name(form.get("calculator_name") or "Fixed Income Plan", client_ids, clients),
        calculator_type="fixed_income",
        category=None,
        projection_data=rows,
    )


def extract_capital_assets_data(state, clients, current_year: int) -> Optional[CalculatorExtract]:
    form = _form(state)
    if form is None:
        return None
    account_type = form.get("account_type")
    if account_type not in ACCOUNT_TYPES:
        logger.debug("Capital assets state has unknown account type %r", account_type)
        account_type = None
    rows = []
    for row in _precomputed_rows(state):
        normalised: Dict[str, Any] = {"year": parse_int_or_default(row.get("year"))}
        for name, source_key in _CAPITAL_ASSETS_SOURCE_KEYS.items():
            normalised[name] = _row_value(row, name, source_key)
        rows.append(normalised)
    if not rows:
        return None
    client_ids = form.get("client_ids") or []
    return CalculatorExtract(
        name=comparison_name(form.get("calculator_name") or "Capital Assets", client_ids, clients),
        calculator_type="capital_assets",
        category=account_type,
        projection_data=rows,
    )


EXTRACTORS: Dict[str, Extractor] = {
    "mortgage": extract_debt_data,
    "real_estate": extract_real_estate_data,
    "fixed_income": extract_fixed_income_data,
    "capital_assets": extract_capital_assets_data,
}


def extract(calculator_type: str, state, clients, current_year: int) -> Optional[CalculatorExtract]:
    """Dispatch to the extractor registered for ``calculator_type``."""
    extractor = EXTRACTORS.get(calculator_type)
    if extractor is None:
        logger.debug("No extractor for calculator type %r", calculator_type)
        return None
    return extractor(state, clients, current_year)
