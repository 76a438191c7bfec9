from decimal import Decimal

from advisor_calc.data_models import LoanAssumptions, RefinanceOverride, YearOverride, parse_debt_overrides
from advisor_calc.engine import MAX_PROJECTION_YEARS, amortize, monthly_payment, project_debt
from tests.helpers import CURRENT_YEAR


def make_loan(**overrides) -> LoanAssumptions:
    values = dict(
        principal=Decimal("300000"),
        annual_interest_rate_percent=Decimal("4"),
        amortization_years=Decimal("25"),
        extra_monthly_payment=Decimal("0"),
        start_age=Decimal("40"),
        start_year=CURRENT_YEAR,
    )
    values.update(overrides)
    return LoanAssumptions(**values)


def test_monthly_payment_matches_annuity_formula():
    payment = monthly_payment(Decimal("300000"), Decimal("4"), Decimal("300"))
    assert abs(payment - Decimal("1583.52")) < Decimal("0.05")


def test_monthly_payment_zero_rate_and_no_months():
    assert monthly_payment(Decimal("120000"), Decimal("0"), Decimal("120")) == Decimal("1000")
    assert monthly_payment(Decimal("120000"), Decimal("5"), Decimal("0")) == Decimal("0")


def test_amortization_pays_off_and_truncates():
    schedule, summary = amortize(make_loan())

    assert 24 <= len(schedule) <= 27
    assert schedule[0].year == CURRENT_YEAR
    assert schedule[0].age == Decimal("40")
    assert schedule[0].opening_balance == Decimal("300000")
    assert schedule[-1].closing_balance <= Decimal("0.01")
    assert summary["ending_balance"] == Decimal("0")
    assert summary["payoff_year"] == schedule[-1].year
    assert summary["years_to_payoff"] == len(schedule)


def test_balances_never_increase_without_refinance():
    schedule, _ = amortize(make_loan())
    for record in schedule:
        assert record.closing_balance <= record.opening_balance
    for earlier, later in zip(schedule, schedule[1:]):
        assert later.opening_balance == earlier.closing_balance


def test_cumulative_interest_matches_summary():
    schedule, summary = amortize(make_loan())
    assert schedule[-1].cumulative_interest == summary["total_interest"]
    assert summary["total_payments"] == Decimal("300000") + summary["total_interest"]


def test_rate_refinance_lowers_interest_and_payment():
    baseline, baseline_summary = amortize(make_loan())
    overrides = {5: YearOverride(refinance=RefinanceOverride(new_rate_percent=Decimal("2")))}
    schedule, summary = amortize(make_loan(), overrides)

    assert summary["total_interest"] < baseline_summary["total_interest"]
    assert schedule[5].interest_rate == Decimal("2")
    assert schedule[5].periodic_payment < schedule[4].periodic_payment
    assert schedule[4] == baseline[4]


def test_balance_refinance_replaces_outstanding_balance():
    overrides = {3: YearOverride(refinance=RefinanceOverride(new_balance=Decimal("100000")))}
    schedule, _ = amortize(make_loan(), overrides)

    assert schedule[3].refinance_amount == Decimal("100000")
    assert schedule[3].closing_balance < Decimal("100000")
    assert schedule[3].interest == Decimal("4000")


def test_manual_payment_and_extra_payment_shorten_payoff():
    _, baseline = amortize(make_loan())
    _, with_manual = amortize(make_loan(), {0: YearOverride(manual_payment=Decimal("50000"))})
    _, with_extra = amortize(make_loan(extra_monthly_payment=Decimal("500")))

    assert with_manual["years_to_payoff"] < baseline["years_to_payoff"]
    assert with_extra["years_to_payoff"] < baseline["years_to_payoff"]
    assert with_extra["total_interest"] < baseline["total_interest"]


def test_zero_rate_loan_is_straight_line():
    loan = make_loan(principal=Decimal("12000"), annual_interest_rate_percent=Decimal("0"), amortization_years=Decimal("1"))
    schedule, summary = amortize(loan)

    assert len(schedule) == 1
    assert schedule[0].interest == Decimal("0")
    assert schedule[0].total_payment == Decimal("12000")
    assert schedule[0].closing_balance == Decimal("0")
    assert summary["total_interest"] == Decimal("0")


def test_schedule_is_capped_when_debt_is_not_retired():
    loan = make_loan(
        principal=Decimal("100000"),
        annual_interest_rate_percent=Decimal("10"),
        amortization_years=Decimal("100"),
    )
    schedule, summary = amortize(loan)

    assert len(schedule) == MAX_PROJECTION_YEARS + 1
    assert summary["ending_balance"] > 0
    assert summary["remaining_amortization"] == Decimal("49")


def test_degenerate_debt_returns_placeholder_record():
    schedule, summary = project_debt(make_loan(principal=Decimal("0")))
    assert len(schedule) == 1
    assert schedule[0].closing_balance == Decimal("0")
    assert summary == {}

    schedule, summary = project_debt(make_loan(start_age=Decimal("0")))
    assert len(schedule) == 1
    assert summary == {}


def test_loan_from_form_applies_defaults(debt_state):
    form = dict(debt_state["formData"], amortization_years="", liability_type="boat")
    loan = LoanAssumptions.from_form(form, CURRENT_YEAR)

    assert loan.principal == Decimal("300000")
    assert loan.amortization_years == Decimal("30")
    assert loan.liability_type == "principal_mortgage"
    assert loan.client_ids == ["c1"]


def test_parse_debt_overrides_merges_both_maps():
    overrides = parse_debt_overrides(
        {"2": "1,000", "bad": 5},
        {"2": {"new_rate": "3.5"}, "4": {"new_balance": 90000}, "6": {"new_rate": ""}},
    )

    assert sorted(overrides) == [2, 4]
    assert overrides[2].manual_payment == Decimal("1000")
    assert overrides[2].refinance.new_rate_percent == Decimal("3.5")
    assert overrides[2].refinance.new_balance is None
    assert overrides[4].refinance.new_balance == Decimal("90000")


def test_rate_refinance_upward_raises_payment():
    baseline, baseline_summary = amortize(make_loan())
    overrides = {5: YearOverride(refinance=RefinanceOverride(new_rate_percent=Decimal("7")))}
    schedule, summary = amortize(make_loan(), overrides)

    assert schedule[5].periodic_payment > schedule[4].periodic_payment
    assert summary["total_interest"] > baseline_summary["total_interest"]


def test_monthly_payment_with_impossible_rate_is_zero():
    assert monthly_payment(Decimal("1000"), Decimal("-1200"), Decimal("300.6")) == Decimal("0")
