import pytest

from tests.helpers import capital_assets_state, fixed_income_state


@pytest.fixture
def clients() -> list:
    return [
        {"id": "c1", "first_name": "Jane", "last_name": "Doe"},
        {"id": "c2", "first_name": "John", "last_name": "Doe"},
    ]


@pytest.fixture
def debt_state() -> dict:
    return {
        "formData": {
            "calculator_name": "Home Mortgage",
            "client_ids": ["c1"],
            "loan_balance": "300,000",
            "interest_rate": "4",
            "amortization_years": "25",
            "planned_extra_payment": "0",
            "current_age": "40",
            "liability_type": "principal_mortgage",
        },
        "manualPayments": {},
        "refinanceData": {},
    }


@pytest.fixture
def property_state() -> dict:
    return {
        "formData": {
            "calculator_name": "Rental Condo",
            "start_value": 500000,
            "acb": 400000,
            "growth_rate": 3,
            "gross_rent": 24000,
            "rent_index_rate": 2,
            "rental_expenses": 6000,
            "expenses_index_rate": 2,
            "marginal_tax_rate": 40,
            "capital_gains_inclusion_rate": 50,
            "mortgage_outstanding": 200000,
            "is_principal_residence": False,
            "time_period": 10,
            "current_age": 50,
        },
        "saleProceeds": {},
        "manualPurchases": {},
        "manualMortgage": {},
    }


@pytest.fixture
def insurance_state() -> dict:
    return {
        "formData": {
            "client_age": 45,
            "client_income": 100000,
            "spouse_age": 43,
            "spouse_income": 60000,
            "has_spouse": True,
            "liquid_assets": 100000,
            "illiquid_assets": 300000,
            "total_debt": 200000,
            "client_income_recovery_perc": 75,
            "spouse_income_recovery_perc": 75,
            "years_of_income_needed": 20,
            "investment_return_rate": 2,
            "inflation_rate": 2,
            "final_expenses": 15000,
            "education_fund": 50000,
            "existing_life_insurance_client": 500000,
            "existing_life_insurance_spouse": 0,
        }
    }


@pytest.fixture
def household_state(debt_state, property_state, clients) -> dict:
    pension_rows = [
        {"year": 2025 + i, "cppIncome": 12000, "oasIncome": 8000, "totalFixedIncome": 20000}
        for i in range(10)
    ]
    rrsp_rows = [
        {"year": 2025 + i, "periodicRedemption": 10000, "endingBalance": 250000 - 10000 * i}
        for i in range(10)
    ]
    return {
        "formData": {
            "client_ids": ["c1"],
            "primary_client_age": 60,
            "projection_years": 10,
            "target_income": 100000,
            "inflation_rate": 2,
            "average_tax_rate": 25,
            "final_year_tax_rate": 50,
        },
        "clients": clients,
        "linkedCalculators": [
            {"calculator_type": "mortgage", "name": "Mortgage", "state_data": debt_state},
            {"calculator_type": "real_estate", "name": "Condo", "state_data": property_state},
            {"calculator_type": "fixed_income", "name": "Pensions", "state_data": fixed_income_state(pension_rows)},
            {
                "calculator_type": "capital_assets",
                "name": "RRSP",
                "state_data": capital_assets_state("registered", rrsp_rows),
            },
        ],
    }
