"""Command-line interface for the projection calculators.

This module uses the ``click`` library to implement a multi-command interface.
Each command reads a calculator's saved state from a JSON file (the same shape
the web application stores: ``formData`` plus the override maps), runs the
matching engine and prints the result or exports it to JSON/CSV files.

The ``run_*`` helpers turn a state dict into engine output and are shared with
the Flask application.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import click

from .data_models import (
    AmortizationYearRecord,
    HouseholdParams,
    InsuranceAssumptions,
    InsuranceNeedResult,
    LoanAssumptions,
    MainViewResult,
    PropertyAssumptions,
    RealEstateYearRecord,
    parse_debt_overrides,
)
from .engine import project_debt
from .formatter import (
    MAIN_VIEW_COLUMNS,
    print_comparison,
    print_debt_schedule,
    print_debt_summary,
    print_income_stream,
    print_insurance,
    print_main_view_table,
    print_property_schedule,
    print_property_summary,
)
from .insurance import compute_need
from .main_view import aggregate_instances
from .real_estate import project_property, rental_income_stream
from .utils import jsonable, parse_offset_map

logger = logging.getLogger(__name__)


def form_data(state: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the ``formData`` block of a saved state, or an empty form."""
    form = state.get("formData")
    return form if isinstance(form, Mapping) else {}


def run_debt(state: Mapping[str, Any], current_year: int) -> Tuple[List[AmortizationYearRecord], Dict[str, object]]:
    loan = LoanAssumptions.from_form(form_data(state), current_year)
    overrides = parse_debt_overrides(state.get("manualPayments"), state.get("refinanceData"))
    return project_debt(loan, overrides)


def run_real_estate(state: Mapping[str, Any], current_year: int) -> Tuple[List[RealEstateYearRecord], Dict[str, object]]:
    prop = PropertyAssumptions.from_form(form_data(state), current_year, default_time_period=0)
    return project_property(
        prop,
        parse_offset_map(state.get("saleProceeds")),
        parse_offset_map(state.get("manualPurchases")),
        parse_offset_map(state.get("manualMortgage")),
    )


def run_income_stream(state: Mapping[str, Any], current_year: int):
    return rental_income_stream(PropertyAssumptions.from_form(form_data(state), current_year))


def run_insurance(state: Mapping[str, Any], current_year: int) -> InsuranceNeedResult:
    include_illiquid = state.get("includeIlliquidAssets")
    assumptions = InsuranceAssumptions.from_form(
        form_data(state),
        current_year,
        include_illiquid_assets=None if include_illiquid is None else bool(include_illiquid),
    )
    return compute_need(assumptions)


def run_main_view(household: Mapping[str, Any], current_year: int) -> MainViewResult:
    params = HouseholdParams.from_form(
        form_data(household), current_year, actual_net_worth=household.get("actualNetWorth")
    )
    instances = [i for i in household.get("linkedCalculators") or [] if isinstance(i, Mapping)]
    return aggregate_instances(instances, params, household.get("clients"))


def load_state(path: str) -> Dict[str, Any]:
    """Read a saved calculator state from a JSON file."""
    try:
        with Path(path).open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise click.BadParameter(f"Cannot read {path}: {exc.strerror}")
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"{path} is not valid JSON: {exc}")
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a JSON object")
    return data


def export_to_json(path: Path, payload: Dict[str, Any]) -> None:
    """Export engine output to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(jsonable(payload), f, indent=2)


def export_to_csv(path: Path, records: List[Any]) -> None:
    """Export a list of year records to a CSV file, one column per field."""
    rows = [jsonable(r) for r in records]
    with path.open("w", newline="", encoding="utf-8") as f:
        if not rows:
            return
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)


def _export(output: str, payload: Dict[str, Any], records: Optional[List[Any]] = None) -> None:
    path = Path(output)
    suffix = path.suffix.lower()
    if suffix == ".json":
        export_to_json(path, payload)
    elif suffix == ".csv" and records is not None:
        export_to_csv(path, records)
    elif records is None:
        raise click.BadParameter("Unsupported output format; use .json")
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv")
    click.echo(f"Results exported to {path}")


@click.group()
@click.option(
    "--current-year",
    "current_year",
    type=int,
    envvar="ADVISOR_CALC_CURRENT_YEAR",
    help="Calendar year of the first projected year (defaults to this year)",
)
@click.option(
    "--log-level",
    "log_level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    envvar="ADVISOR_CALC_LOG_LEVEL",
    default="WARNING",
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, current_year: Optional[int], log_level: str) -> None:
    """Financial projection calculators for advisors."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"current_year": current_year or date.today().year}


@cli.command()
@click.argument("state_file")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_obj
def debt(obj: Dict[str, Any], state_file: str, output: Optional[str]) -> None:
    """Compute and print a debt repayment schedule."""
    schedule, summary = run_debt(load_state(state_file), obj["current_year"])
    if output:
        _export(output, {"summary": summary, "schedule": schedule}, schedule)
        return
    print_debt_summary(summary)
    if summary:
        print_debt_schedule(schedule)


@cli.command("real-estate")
@click.argument("state_file")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--income-stream", "income_stream", is_flag=True, help="Only print the rental income stream")
@click.pass_obj
def real_estate(obj: Dict[str, Any], state_file: str, output: Optional[str], income_stream: bool) -> None:
    """Project a property's value, rent and disposition."""
    state = load_state(state_file)
    if income_stream:
        stream = run_income_stream(state, obj["current_year"])
        if output:
            _export(output, {"income_stream": stream or {}})
        else:
            print_income_stream(stream)
        return
    schedule, summary = run_real_estate(state, obj["current_year"])
    if output:
        _export(output, {"summary": summary, "schedule": schedule}, schedule)
        return
    print_property_summary(summary)
    print_property_schedule(schedule)


@cli.command()
@click.argument("state_file")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@click.option("--no-projection", "no_projection", is_flag=True, help="Hide the year-by-year projection")
@click.pass_obj
def insurance(obj: Dict[str, Any], state_file: str, output: Optional[str], no_projection: bool) -> None:
    """Compute the life insurance need for a household."""
    result = run_insurance(load_state(state_file), obj["current_year"])
    if output:
        _export(output, {"result": result})
        return
    print_insurance(result, show_projection=not no_projection)


@cli.command("main-view")
@click.argument("household_file")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@click.option(
    "--table",
    "table",
    type=click.Choice(sorted(MAIN_VIEW_COLUMNS)),
    default="net-worth",
    show_default=True,
    help="Which table to print",
)
@click.pass_obj
def main_view(obj: Dict[str, Any], household_file: str, output: Optional[str], table: str) -> None:
    """Aggregate linked calculators into the household's Main View tables."""
    result = run_main_view(load_state(household_file), obj["current_year"])
    if output:
        payload = jsonable(result)
        payload.pop("linked_data", None)
        _export(output, payload)
        return
    print_main_view_table(result, table)


@cli.command()
@click.argument("state_file_1")
@click.argument("state_file_2")
@click.pass_obj
def compare(obj: Dict[str, Any], state_file_1: str, state_file_2: str) -> None:
    """Compare the repayment summaries of two debt scenarios."""
    _, summary1 = run_debt(load_state(state_file_1), obj["current_year"])
    _, summary2 = run_debt(load_state(state_file_2), obj["current_year"])
    if not summary1 or not summary2:
        raise click.ClickException("Both scenarios need a positive balance and a current age")
    print_comparison(summary1, summary2)


if __name__ == "__main__":
    cli()
