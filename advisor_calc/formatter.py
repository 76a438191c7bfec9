"""Output helpers for the projection calculators.

This module renders schedules, summaries and Main View tables as plain text
tables on standard output. Everything here is presentation only; values are
printed as the engines emitted them.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .data_models import (
    AmortizationYearRecord,
    InsuranceNeedResult,
    MainViewResult,
    RealEstateYearRecord,
)


def _money(value) -> str:
    if value is None:
        return "-"
    return f"{value:.2f}"


def _print_rows(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
    print("\t".join(headers))
    for row in rows:
        print("\t".join(row))


def print_debt_summary(summary: Mapping[str, object]) -> None:
    """Print the debt repayment summary metrics."""
    print("Summary")
    print("-" * 72)
    if not summary:
        print("Not enough information to project this debt.")
        print("-" * 72)
        return
    print(f"Monthly payment    : {_money(summary['regular_payment'])}")
    print(f"Annual payment     : {_money(summary['annual_payment'])}")
    print(f"Total interest     : {_money(summary['total_interest'])}")
    print(f"Total paid         : {_money(summary['total_paid'])}")
    print(f"Ending balance     : {_money(summary['ending_balance'])}")
    print(f"Payoff year        : {summary['payoff_year']}")
    print(f"Years to payoff    : {summary['years_to_payoff']}")
    if summary.get("remaining_amortization"):
        print(f"Remaining term     : {summary['remaining_amortization']} years")
    print("-" * 72)


def print_debt_schedule(schedule: Iterable[AmortizationYearRecord]) -> None:
    """Print the yearly amortization schedule as a simple table."""
    headers = [
        "Year",
        "Age",
        "OpenBal",
        "Rate",
        "Payment",
        "Manual",
        "Refi",
        "Interest",
        "Principal",
        "CloseBal",
    ]
    _print_rows(
        headers,
        (
            [
                str(r.year),
                str(r.age),
                _money(r.opening_balance),
                f"{r.interest_rate}%",
                _money(r.total_payment),
                _money(r.manual_payment),
                _money(r.refinance_amount),
                _money(r.interest),
                _money(r.principal),
                _money(r.closing_balance),
            ]
            for r in schedule
        ),
    )


def print_property_summary(summary: Mapping[str, object]) -> None:
    """Print the real estate projection summary."""
    print("Summary")
    print("-" * 72)
    if not summary:
        print("Not enough information to project this property.")
        print("-" * 72)
        return
    print(f"Final value        : {_money(summary['final_value'])}")
    print(f"Total appreciation : {_money(summary['total_appreciation'])}")
    print(f"Net rental income  : {_money(summary['total_rental_income'])}")
    print(f"Total tax paid     : {_money(summary['total_tax_paid'])}")
    print(f"Final equity       : {_money(summary['final_equity'])}")
    print(f"Annualized return  : {Decimal(summary['annualized_return']) * 100:.2f}%")
    if summary.get("disposition_year") is not None:
        print(f"Disposed in        : {summary['disposition_year']}")
    print("-" * 72)


def print_property_schedule(schedule: Iterable[RealEstateYearRecord]) -> None:
    """Print the property projection as a table.

    Years after a disposition are printed as rows of zeros, the same as the
    engine emits them.
    """
    headers = [
        "Year",
        "Age",
        "StartVal",
        "NetRent",
        "Sale",
        "Gain",
        "TaxRent",
        "TaxGain",
        "EndVal",
        "Mortgage",
    ]
    _print_rows(
        headers,
        (
            [
                str(r.year),
                str(r.age),
                _money(r.starting_value),
                _money(r.net_rent),
                _money(r.sale_proceeds),
                _money(r.capital_gain_loss),
                _money(r.tax_on_rent),
                _money(r.tax_on_gain),
                _money(r.end_value),
                _money(r.mortgage_outstanding),
            ]
            for r in schedule
        ),
    )


def print_income_stream(stream: Optional[Mapping[int, Decimal]]) -> None:
    print("Rental income stream")
    print("-" * 72)
    if not stream:
        print("No positive net rental income.")
    else:
        for year in sorted(stream):
            print(f"{year}\t{_money(stream[year])}")
    print("-" * 72)


def print_insurance(result: InsuranceNeedResult, show_projection: bool = True) -> None:
    """Print the insurance need and, optionally, the declining-need projection."""
    print("Insurance need")
    print("-" * 72)
    print(f"Need on client     : {_money(result.insurance_need_on_client)}")
    print(f"Need on spouse     : {_money(result.insurance_need_on_spouse)}")
    print(f"Capital (client)   : {_money(result.capital_for_client_income)}")
    print(f"Capital (spouse)   : {_money(result.capital_for_spouse_income)}")
    print(f"Assets considered  : {_money(result.assets_considered)}")
    print(f"Real return rate   : {result.real_return_rate * 100:.2f}%")
    print("-" * 72)
    if not show_projection or not result.yearly_projection:
        return
    _print_rows(
        ["Year", "Age", "Income", "Debt", "Final", "Education", "Need", "Coverage", "Gap"],
        (
            [
                str(p.year),
                str(p.age),
                _money(p.income_replacement),
                _money(p.debt_coverage),
                _money(p.final_expenses),
                _money(p.education_fund),
                _money(p.total_need),
                _money(p.existing_coverage),
                _money(p.gap),
            ]
            for p in result.yearly_projection
        ),
    )


# Column title and record attribute for each Main View table.
MAIN_VIEW_COLUMNS: Dict[str, Tuple[str, List[Tuple[str, str]]]] = {
    "income": (
        "income_table",
        [
            ("CPP", "cpp"),
            ("OAS", "oas"),
            ("Bridge", "bridge_pension"),
            ("Pension", "private_pension"),
            ("Reg", "registered_income"),
            ("NonReg", "non_registered_income"),
            ("TFSA", "tfsa_income"),
            ("Other1", "other_income_1"),
            ("Other2", "other_income_2"),
            ("Total", "total_income"),
            ("Target", "target_income"),
            ("%Target", "percent_of_target_achieved"),
            ("Surplus", "shortfall_surplus"),
            ("Tax", "tax_estimate"),
            ("AfterTax", "after_tax_income"),
        ],
    ),
    "assets": (
        "asset_table",
        [
            ("RegIn", "registered_money_in"),
            ("RegOut", "registered_money_out"),
            ("RegEnd", "registered_end_balance"),
            ("NonRegIn", "non_registered_money_in"),
            ("NonRegOut", "non_registered_money_out"),
            ("NonRegEnd", "non_registered_end_balance"),
            ("TFSAIn", "tax_free_money_in"),
            ("TFSAOut", "tax_free_money_out"),
            ("TFSAEnd", "tax_free_end_balance"),
            ("Residence", "principal_residence_value"),
            ("Invest RE", "investment_real_estate_value"),
            ("Other RE", "other_real_estate_value"),
        ],
    ),
    "liabilities": (
        "liability_table",
        [
            ("MortBegin", "principal_mortgage_begin"),
            ("MortEnd", "principal_mortgage_end"),
            ("OtherMortBegin", "other_mortgage_begin"),
            ("OtherMortEnd", "other_mortgage_end"),
            ("LTDBegin", "long_term_debt_begin"),
            ("LTDEnd", "long_term_debt_end"),
            ("STDBegin", "short_term_debt_begin"),
            ("STDEnd", "short_term_debt_end"),
        ],
    ),
    "net-worth": (
        "net_worth_table",
        [
            ("Assets", "total_assets"),
            ("Liabilities", "total_liabilities"),
            ("NetWorth", "net_worth"),
            ("Real", "inflation_adjusted_net_worth"),
            ("Actual", "actual_net_worth"),
        ],
    ),
    "estate": (
        "estate_table",
        [
            ("Gross", "gross_estate_value"),
            ("Probate", "probate_estimate"),
            ("FinalTax", "final_tax_on_registered_assets"),
            ("Estate", "final_estate_value"),
        ],
    ),
}


def print_main_view_table(result: MainViewResult, table: str) -> None:
    """Print one of the Main View tables by name (see ``MAIN_VIEW_COLUMNS``)."""
    attribute, columns = MAIN_VIEW_COLUMNS[table]
    records = getattr(result, attribute)
    headers = ["Year", "Age", "Spouse"] + [title for title, _ in columns]
    _print_rows(
        headers,
        (
            [
                str(r.year),
                str(r.primary_age),
                "-" if r.spouse_age is None else str(r.spouse_age),
            ]
            + [_money(getattr(r, name)) for _, name in columns]
            for r in records
        ),
    )


def print_comparison(s1: Mapping[str, object], s2: Mapping[str, object]) -> None:
    """Print two debt summaries side by side.

    The difference column is scenario2 - scenario1; a negative difference
    means the second scenario is cheaper or shorter.
    """
    print("Comparison")
    print("=" * 72)
    keys = [
        "regular_payment",
        "total_interest",
        "total_paid",
        "years_to_payoff",
    ]
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key in keys:
        v1 = Decimal(s1.get(key) or 0)
        v2 = Decimal(s2.get(key) or 0)
        diff = v2 - v1
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print("=" * 72)
