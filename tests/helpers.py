import copy
import json
from pathlib import Path

CURRENT_YEAR = 2025


def write_state(tmp_path: Path, data: dict, filename: str = "state.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_state(data: dict) -> dict:
    return copy.deepcopy(data)


def fixed_income_state(rows: list, name: str = "Pensions") -> dict:
    return {"formData": {"calculator_name": name}, "projectionData": rows}


def capital_assets_state(account_type: str, rows: list, name: str = "Savings") -> dict:
    return {
        "formData": {"calculator_name": name, "account_type": account_type},
        "projectionData": rows,
    }
