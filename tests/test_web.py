import httpx
import pytest

import mortgage_calc_web.app as web
from mortgage_calc.lookups import RateQuoteClient, TaxRateClient

LOAN = {"home_price": 500000, "down_payment": 100000, "rate": 6.5, "term": 30, "start_date": "2025-01-15"}


@pytest.fixture
def client():
    web.app.config["TESTING"] = True
    with web.app.test_client() as test_client:
        yield test_client


def _http(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def lookup_clients(monkeypatch):
    def handler(request):
        if request.url.path == "/rates":
            return httpx.Response(200, json={"rate30Year": 6.85, "rate15Year": 6.1})
        if request.url.params["zip"] == "99999":
            return httpx.Response(429)
        return httpx.Response(200, json={"city": "Austin", "state": "TX", "taxRate": 0.0181})

    monkeypatch.setattr(web, "tax_client", TaxRateClient("https://lookup.test", http_client=_http(handler)))
    monkeypatch.setattr(web, "rate_client", RateQuoteClient("https://lookup.test", http_client=_http(handler)))


class TestScheduleEndpoint:
    def test_schedule(self, client):
        resp = client.post("/api/schedule", json=LOAN)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["summary"]["principal_and_interest"] == 2528.27
        assert len(data["schedule"]) == 360
        assert data["schedule"][0]["date"] == "2025-02-15"
        assert "message" not in data

    def test_empty_result(self, client):
        resp = client.post("/api/schedule", json={"rate": 6.5})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data == {"summary": None, "schedule": [], "message": "Enter valid loan details."}

    @pytest.mark.parametrize(
        "override",
        [
            {"rate": "abc"},
            {"start_date": "2025-13-01"},
            {"term": "thirty"},
            {"term": 30.9},
            {"term": "30.9"},
            {"term": [30]},
            {"frequency": "weekly"},
            {"fees": [7]},
        ],
    )
    def test_invalid_input(self, client, override):
        resp = client.post("/api/schedule", json={**LOAN, **override})
        assert resp.status_code == 400
        assert resp.get_json()["error"]

    def test_not_an_object(self, client):
        resp = client.post("/api/schedule", data="nope", content_type="application/json")
        assert resp.status_code == 400

    def test_whole_float_term(self, client):
        resp = client.post("/api/schedule", json={**LOAN, "term": 15.0})
        assert resp.status_code == 200
        assert len(resp.get_json()["schedule"]) == 180

    def test_fee_objects(self, client):
        fees = [{"name": "Points", "value": 1, "type": "percentage"}, {"name": "Appraisal", "value": 650}]
        resp = client.post("/api/schedule", json={**LOAN, "fees": fees})
        summary = resp.get_json()["summary"]
        assert summary["origination_fees"] == [
            {"name": "Points", "amount": 4000.0},
            {"name": "Appraisal", "amount": 650.0},
        ]
        assert summary["total_origination_fees"] == 4650.0

    def test_fha_loan(self, client):
        resp = client.post("/api/schedule", json={**LOAN, "home_price": 400000, "down_payment": 4000, "loan_type": "fha"})
        summary = resp.get_json()["summary"]
        assert summary["total_principal"] == 386000.0
        assert summary["origination_fees"] == [{"name": "FHA Upfront MIP", "amount": 6755.0}]

    def test_csv(self, client):
        resp = client.post("/api/schedule.csv", json=LOAN)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert "amortization_schedule.csv" in resp.headers["Content-Disposition"]
        lines = resp.get_data(as_text=True).splitlines()
        assert lines[0].startswith("Period,Date,Principal")
        assert len(lines) == 361


class TestCompareEndpoints:
    def test_compare(self, client):
        resp = client.post("/api/compare", json={"scenario_a": LOAN, "scenario_b": {**LOAN, "frequency": "bi-weekly"}})
        data = resp.get_json()
        assert resp.status_code == 200
        assert data["comparison"]["cheaper"] == "B"
        assert data["scenario_b"]["summary"]["payoff_date"] < data["scenario_a"]["summary"]["payoff_date"]

    @pytest.mark.parametrize("path", ["/api/compare", "/api/compare-terms"])
    def test_list_body(self, client, path):
        resp = client.post(path, json=[LOAN, LOAN])
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Expected a JSON object"

    def test_compare_with_empty_scenario(self, client):
        resp = client.post("/api/compare", json={"scenario_a": LOAN, "scenario_b": {"rate": 6.5}})
        data = resp.get_json()
        assert data["comparison"] is None
        assert data["scenario_b"]["message"] == "Enter valid loan details."

    def test_compare_terms_with_rates(self, client):
        resp = client.post("/api/compare-terms", json={**LOAN, "rate_30": 6.5, "rate_15": 5.75})
        data = resp.get_json()
        assert resp.status_code == 200
        assert data["rates"] == {"rate_30_year": 6.5, "rate_15_year": 5.75}
        assert len(data["term_15"]["schedule"]) == 180
        assert data["comparison"]["cheaper"] == "B"

    def test_compare_terms_unconfigured(self, client, monkeypatch):
        monkeypatch.setattr(web, "rate_client", None)
        resp = client.post("/api/compare-terms", json=LOAN)
        assert resp.status_code == 503

    def test_compare_terms_fetches_rates(self, client, lookup_clients):
        resp = client.post("/api/compare-terms", json=LOAN)
        assert resp.status_code == 200
        assert resp.get_json()["rates"] == {"rate_30_year": 6.85, "rate_15_year": 6.1}


class TestLocationEndpoint:
    def test_location(self, client, lookup_clients):
        resp = client.get("/api/location/78701?home_price=500000")
        assert resp.status_code == 200
        assert resp.get_json() == {
            "city": "Austin",
            "state": "TX",
            "tax_rate": 0.0181,
            "annual_property_tax": 9050.0,
        }

    def test_invalid_zip(self, client, lookup_clients):
        assert client.get("/api/location/787").status_code == 400

    def test_rate_limited(self, client, lookup_clients):
        resp = client.get("/api/location/99999")
        assert resp.status_code == 429
        assert resp.get_json()["error"].startswith("Rate limit reached")

    def test_unconfigured(self, client, monkeypatch):
        monkeypatch.setattr(web, "tax_client", None)
        assert client.get("/api/location/78701").status_code == 503
