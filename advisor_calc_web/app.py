import os
from datetime import date

from flask import Flask, jsonify, request

from advisor_calc.main import (
    run_debt,
    run_income_stream,
    run_insurance,
    run_main_view,
    run_real_estate,
)
from advisor_calc.utils import jsonable, parse_int_or_default

app = Flask(__name__)
app.json.sort_keys = False


def _current_year(body: dict) -> int:
    """Resolve the projection's first year: body, then environment, then today."""
    year = parse_int_or_default(body.get("current_year"))
    if not year:
        year = parse_int_or_default(os.environ.get("ADVISOR_CALC_CURRENT_YEAR"))
    return year or date.today().year


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return None
    return body


def _bad_request():
    return jsonify({"error": "Request body must be a JSON object"}), 400


@app.get("/health")
def health():
    return jsonify({"status": "ok"})


@app.post("/api/debt")
def debt():
    body = _json_body()
    if body is None:
        return _bad_request()
    schedule, summary = run_debt(body, _current_year(body))
    return jsonify(jsonable({"summary": summary, "schedule": schedule}))


@app.post("/api/real-estate")
def real_estate():
    body = _json_body()
    if body is None:
        return _bad_request()
    schedule, summary = run_real_estate(body, _current_year(body))
    return jsonify(jsonable({"summary": summary, "schedule": schedule}))


@app.post("/api/real-estate/income-stream")
def real_estate_income_stream():
    body = _json_body()
    if body is None:
        return _bad_request()
    stream = run_income_stream(body, _current_year(body))
    return jsonify(jsonable({"income_stream": stream or {}}))


@app.post("/api/insurance")
def insurance():
    body = _json_body()
    if body is None:
        return _bad_request()
    result = run_insurance(body, _current_year(body))
    return jsonify(jsonable(result))


@app.post("/api/main-view")
def main_view():
    body = _json_body()
    if body is None:
        return _bad_request()
    current_year = _current_year(body)
    result = run_main_view(body, current_year)
    app.logger.info(
        "Main View for %s: %d linked calculators, %d years",
        current_year, len(body.get("linkedCalculators") or []), len(result.net_worth_table),
    )
    payload = jsonable(result)
    payload.pop("linked_data", None)
    return jsonify(payload)


if __name__ == "__main__":
    print("Starting advisor calculator API...")
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "8710")), debug=True)
