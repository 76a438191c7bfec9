import pytest

from advisor_calc_web.app import app
from tests.helpers import CURRENT_YEAR


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_debt_endpoint(client, debt_state):
    response = client.post("/api/debt", json=dict(debt_state, current_year=CURRENT_YEAR))

    assert response.status_code == 200
    data = response.get_json()
    assert data["schedule"][0]["year"] == CURRENT_YEAR
    assert data["summary"]["ending_balance"] == 0


def test_current_year_from_environment(client, debt_state, monkeypatch):
    monkeypatch.setenv("ADVISOR_CALC_CURRENT_YEAR", "2030")
    data = client.post("/api/debt", json=debt_state).get_json()
    assert data["schedule"][0]["year"] == 2030


@pytest.mark.parametrize("path", ["/api/debt", "/api/real-estate", "/api/insurance", "/api/main-view"])
def test_rejects_non_object_body(client, path):
    response = client.post(path, json=[1, 2, 3])
    assert response.status_code == 400
    assert "error" in response.get_json()

    response = client.post(path, data="not json", content_type="text/plain")
    assert response.status_code == 400


def test_real_estate_endpoints(client, property_state):
    body = dict(property_state, current_year=CURRENT_YEAR, saleProceeds={"3": 600000})
    data = client.post("/api/real-estate", json=body).get_json()
    assert data["summary"]["disposition_year"] == CURRENT_YEAR + 3

    stream = client.post("/api/real-estate/income-stream", json=body).get_json()["income_stream"]
    assert stream[str(CURRENT_YEAR + 1)] == 18360


def test_insurance_endpoint(client, insurance_state):
    data = client.post("/api/insurance", json=dict(insurance_state, current_year=CURRENT_YEAR)).get_json()
    assert data["insurance_need_on_client"] == 865000
    assert data["insurance_need_on_spouse"] == 765000


def test_main_view_endpoint(client, household_state):
    data = client.post("/api/main-view", json=dict(household_state, current_year=CURRENT_YEAR)).get_json()

    assert len(data["income_table"]) == 10
    assert data["income_table"][0]["total_income"] == 48000
    for row in data["net_worth_table"]:
        assert row["net_worth"] == row["total_assets"] - row["total_liabilities"]
