import csv
import json

from click.testing import CliRunner

from advisor_calc.main import cli
from tests.helpers import CURRENT_YEAR, clone_state, write_state


def run(*args):
    return CliRunner().invoke(cli, ["--current-year", str(CURRENT_YEAR), *args])


def test_debt_prints_summary_and_schedule(tmp_path, debt_state):
    result = run("debt", str(write_state(tmp_path, debt_state)))

    assert result.exit_code == 0, result.output
    assert "Summary" in result.output
    assert "Payoff year" in result.output
    assert f"\n{CURRENT_YEAR}\t40\t300000.00" in result.output


def test_debt_exports_json(tmp_path, debt_state):
    output = tmp_path / "debt.json"
    result = run("debt", str(write_state(tmp_path, debt_state)), "--output", str(output))

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["schedule"][0]["year"] == CURRENT_YEAR
    assert data["schedule"][0]["opening_balance"] == 300000
    assert data["summary"]["ending_balance"] == 0


def test_debt_exports_csv(tmp_path, debt_state):
    output = tmp_path / "debt.csv"
    result = run("debt", str(write_state(tmp_path, debt_state)), "--output", str(output))

    assert result.exit_code == 0, result.output
    with output.open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["year"] == str(CURRENT_YEAR)
    assert rows[-1]["closing_balance"] == "0"


def test_unsupported_output_format(tmp_path, debt_state):
    result = run("debt", str(write_state(tmp_path, debt_state)), "--output", str(tmp_path / "debt.xlsx"))
    assert result.exit_code == 2
    assert "Unsupported output format" in result.output


def test_missing_and_invalid_state_files(tmp_path):
    assert run("debt", str(tmp_path / "nope.json")).exit_code == 2

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert run("debt", str(broken)).exit_code == 2

    assert run("debt", str(write_state(tmp_path, [1, 2]))).exit_code == 2


def test_current_year_from_environment(tmp_path, debt_state):
    output = tmp_path / "debt.json"
    result = CliRunner().invoke(
        cli,
        ["debt", str(write_state(tmp_path, debt_state)), "--output", str(output)],
        env={"ADVISOR_CALC_CURRENT_YEAR": "2031"},
    )

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text(encoding="utf-8"))["schedule"][0]["year"] == 2031


def test_real_estate_and_income_stream(tmp_path, property_state):
    path = str(write_state(tmp_path, property_state))

    result = run("real-estate", path)
    assert result.exit_code == 0, result.output
    assert "Final value" in result.output

    result = run("real-estate", path, "--income-stream")
    assert result.exit_code == 0, result.output
    assert f"{CURRENT_YEAR + 1}\t18360.00" in result.output


def test_insurance_exports_json(tmp_path, insurance_state):
    output = tmp_path / "need.json"
    result = run("insurance", str(write_state(tmp_path, insurance_state)), "--output", str(output))

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["result"]["insurance_need_on_client"] == 865000
    assert len(data["result"]["yearly_projection"]) == 26


def test_main_view_tables(tmp_path, household_state):
    path = str(write_state(tmp_path, household_state))

    result = run("main-view", path, "--table", "income")
    assert result.exit_code == 0, result.output
    assert "CPP" in result.output

    output = tmp_path / "main.json"
    result = run("main-view", path, "--output", str(output))
    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert len(data["net_worth_table"]) == 10
    assert "linked_data" not in data


def test_compare_two_debts(tmp_path, debt_state):
    faster = clone_state(debt_state)
    faster["formData"]["planned_extra_payment"] = "500"
    result = run(
        "compare",
        str(write_state(tmp_path, debt_state, "a.json")),
        str(write_state(tmp_path, faster, "b.json")),
    )

    assert result.exit_code == 0, result.output
    assert "Comparison" in result.output
    assert "years_to_payoff" in result.output


def test_compare_rejects_incomplete_debt(tmp_path, debt_state):
    empty = clone_state(debt_state)
    empty["formData"]["loan_balance"] = 0
    result = run(
        "compare",
        str(write_state(tmp_path, debt_state, "a.json")),
        str(write_state(tmp_path, empty, "b.json")),
    )
    assert result.exit_code == 1


def test_real_estate_without_time_period_projects_nothing(tmp_path, property_state):
    state = clone_state(property_state)
    del state["formData"]["time_period"]
    output = tmp_path / "property.json"
    result = run("real-estate", str(write_state(tmp_path, state)), "--output", str(output))

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text(encoding="utf-8")) == {"summary": {}, "schedule": []}
