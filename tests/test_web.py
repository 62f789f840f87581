"""Tests for the mortgage calculator JSON API."""

from decimal import Decimal

import pytest

import mortgage_calc_web.app as web
from mortgage_calc.rates import MortgageRates, RateCache


@pytest.fixture
def client():
    web.app.config["TESTING"] = True
    with web.app.test_client() as client:
        yield client


class TestListCalculators:
    def test_registry(self, client):
        response = client.get("/api/calculators")
        assert response.status_code == 200
        ids = [c["id"] for c in response.get_json()]
        assert ids == ["affordability", "purchase", "refinance", "rent-vs-buy", "va-purchase", "va-refinance", "dscr", "fix-flip"]

    def test_defaults_are_listed(self, client):
        purchase = next(c for c in client.get("/api/calculators").get_json() if c["id"] == "purchase")
        assert purchase["fields"]["home_value"] == 200000
        assert purchase["fields"]["property_tax"] == {"value": 0.6, "is_percent": True}
        assert purchase["fields"]["term"] == {"value": 30, "unit": "years"}


class TestRunCalculator:
    def test_json_defaults(self, client):
        response = client.post("/api/purchase", json={})
        assert response.status_code == 200
        body = response.get_json()
        assert body["calculator"] == "purchase"
        assert body["result"]["total_monthly"] == pytest.approx(1273.64, abs=0.01)
        assert body["result"]["breakdown"][0] == {"name": "Principal & Interest", "value": pytest.approx(1073.64, abs=0.01)}

    def test_form_post_blank_fields(self, client):
        response = client.post("/api/purchase", data={"home_value": "", "insurance": ""})
        assert response.status_code == 200
        result = response.get_json()["result"]
        assert result["loan_amount"] == 0
        assert result["total_monthly"] == 0

    def test_round_trip_of_listed_defaults(self, client):
        listing = client.get("/api/calculators").get_json()
        for calc in listing:
            response = client.post(f"/api/{calc['id']}", json=calc["fields"])
            assert response.status_code == 200, (calc["id"], response.get_json())

    def test_refinance_as_of(self, client):
        response = client.post("/api/refinance?as_of=2024-03-01", json={"costs_handling": "cash"})
        result = response.get_json()["result"]
        assert result["months_paid"] == 24
        assert result["recoup_months"] == pytest.approx(3.73, abs=0.01)

    def test_affordability_dti(self, client):
        response = client.post("/api/affordability", json={"program": "usda", "gross_monthly_income": 8000})
        result = response.get_json()["result"]
        assert result["dti_limit"] == {"front_end": 29.0, "back_end": 41.0}
        assert result["program"] == "usda"

    def test_zero_ratios_are_null(self, client):
        response = client.post("/api/fix-flip", json={"after_repair_value": 0})
        assert response.get_json()["result"]["ltv_on_arv"] is None

    def test_unknown_calculator(self, client):
        response = client.post("/api/heloc", json={})
        assert response.status_code == 404
        assert "Unknown calculator" in response.get_json()["error"]

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"home_value": -5}, "must not be negative"),
            ({"colour": "blue"}, "Unknown field"),
            ({"extra_frequency": "daily"}, "daily"),
            ({"term": "400y"}, "must not exceed"),
        ],
    )
    def test_invalid_input(self, client, payload, message):
        response = client.post("/api/purchase", json=payload)
        assert response.status_code == 400
        assert message in response.get_json()["error"]

    def test_json_must_be_object(self, client):
        response = client.post("/api/purchase", json=[1, 2])
        assert response.status_code == 400


class TestPayoff:
    def test_savings(self, client):
        response = client.post(
            "/api/payoff",
            json={
                "principal": 300000,
                "annual_rate": 5,
                "term": {"value": 360, "unit": "months"},
                "extra_monthly": 200,
                "first_payment_date": "2025-01-01",
            },
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["payoff"]["months_saved"] > 0
        assert body["payoff"]["accelerated"]["amortizes"] is True
        assert body["payoff_date"] < "2054-12-01"

    def test_bad_term(self, client):
        response = client.post("/api/payoff", json={"term": 0})
        assert response.status_code == 400

    @pytest.mark.parametrize("term", ["100000000y", {"value": 3601, "unit": "months"}])
    def test_term_beyond_simulation_cap(self, client, term):
        response = client.post("/api/payoff", json={"principal": 100000, "annual_rate": 5, "term": term})
        assert response.status_code == 400
        assert "must not exceed" in response.get_json()["error"]


class TestRates:
    def test_served_from_cache(self, client, monkeypatch):
        rates = MortgageRates(Decimal("6.5"), Decimal("5.75"), "2025-06-12")
        monkeypatch.setattr(web, "rate_cache", RateCache(lambda: rates))
        body = client.get("/api/rates").get_json()
        assert body == {
            "thirty_year": 6.5,
            "fifteen_year": 5.75,
            "last_updated": "2025-06-12",
            "error": None,
        }

    def test_refresh(self, client, monkeypatch):
        calls = []

        def fetch():
            calls.append(1)
            return MortgageRates(Decimal("7"), Decimal("6"), "")

        monkeypatch.setattr(web, "rate_cache", RateCache(fetch))
        client.get("/api/rates")
        client.get("/api/rates?refresh=1")
        assert len(calls) == 2
