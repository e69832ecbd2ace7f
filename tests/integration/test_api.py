"""Integration tests for API endpoints"""

import pytest
from datetime import date, timedelta
from unittest.mock import patch
from fastapi.testclient import TestClient
from finhealth_gateway.api.main import create_app
from finhealth_gateway.domain.currency import RateTable
from finhealth_gateway.domain.exceptions import RateProviderError, StorageError
from finhealth_gateway.domain.models import ExchangeRate
from finhealth_gateway.infrastructure.database.models import (
    ConnectedAccountRow,
    ExpenseRow,
    IncomeRow,
    InvestmentRow,
    LoanRow,
    WealthFundRow,
)

METRIC_ROUTES = [
    ("/v1/fin_health/expenses/delta", "delta"),
    ("/v1/fin_health/expenses/propensity", "expense_propensity"),
    ("/v1/fin_health/savings/ratio/liquid", "ratio"),
    ("/v1/fin_health/savings/ratio/illiquid", "ratio"),
    ("/v1/fin_health/savings/ratio/savings_to_income", "ratio"),
    ("/v1/fin_health/savings/delta", "delta"),
    ("/v1/fin_health/investments/ratio/investments_to_savings", "ratio"),
    ("/v1/fin_health/investments/ratio/investments_to_fund", "ratio"),
    ("/v1/fin_health/loans/ratio/loans_to_assets", "ratio"),
    ("/v1/fin_health/loans/propensity", "expense_propensity"),
]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "finhealth_metric_computations" in response.text


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.parametrize("route, field", METRIC_ROUTES)
def test_metric_requires_identity(client: TestClient, route: str, field: str):
    response = client.get(route)

    assert response.status_code == 401
    assert response.json() == {"detail": "Not authenticated"}


@pytest.mark.parametrize("route, field", METRIC_ROUTES)
def test_metric_without_records_is_zero(client: TestClient, auth_headers: dict, route: str, field: str):
    """Every indicator completes with 0 when there is nothing to divide by"""
    response = client.get(route, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data[field] == 0.0
    assert data["status_code"] == 200
    assert "successfully" in data["message"]


def test_expenditure_delta(client: TestClient, auth_headers: dict, add_row):
    add_row(ExpenseRow, amount=500, planned=True)
    add_row(ExpenseRow, amount=400)
    add_row(ExpenseRow, amount=20)
    add_row(ExpenseRow, amount=999, days_ago=45)  # outside default window

    response = client.get("/v1/fin_health/expenses/delta", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "message": "Expenditure delta calculated successfully",
        "delta": 80.0,
        "status_code": 200,
    }


def test_expense_propensity_normalizes_currencies(client: TestClient, auth_headers: dict, add_row):
    add_row(IncomeRow, amount=100, currency="USD")  # 9000 RUB
    add_row(ExpenseRow, amount=4500, currency="RUB")

    response = client.get("/v1/fin_health/expenses/propensity", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["expense_propensity"] == pytest.approx(0.5)


def test_metric_in_requested_currency(client: TestClient, auth_headers: dict, add_row):
    add_row(ExpenseRow, amount=9000, currency="RUB", planned=True)  # 100 USD
    add_row(ExpenseRow, amount=40, currency="USD")

    response = client.get("/v1/fin_health/expenses/delta?currency=usd", headers=auth_headers)

    assert response.json()["delta"] == pytest.approx(60.0)


def test_fund_ratios(client: TestClient, auth_headers: dict, add_row):
    add_row(WealthFundRow, amount=300, days_ago=90, is_liquid=True)
    add_row(WealthFundRow, amount=700, days_ago=10, is_liquid=False)

    liquid = client.get("/v1/fin_health/savings/ratio/liquid", headers=auth_headers).json()
    illiquid = client.get("/v1/fin_health/savings/ratio/illiquid", headers=auth_headers).json()

    assert liquid["ratio"] == pytest.approx(0.3)
    assert illiquid["ratio"] == pytest.approx(0.7)


def test_savings_endpoints(client: TestClient, auth_headers: dict, add_row):
    add_row(IncomeRow, amount=2000)
    add_row(WealthFundRow, amount=500, planned=True)
    add_row(WealthFundRow, amount=300)

    ratio = client.get("/v1/fin_health/savings/ratio/savings_to_income", headers=auth_headers).json()
    delta = client.get("/v1/fin_health/savings/delta", headers=auth_headers).json()

    assert ratio["ratio"] == pytest.approx(0.15)
    assert delta["delta"] == pytest.approx(200.0)


def test_investment_ratios(client: TestClient, auth_headers: dict, add_row):
    add_row(WealthFundRow, amount=400, days_ago=5)
    add_row(WealthFundRow, amount=600, days_ago=100)
    add_row(InvestmentRow, amount=100, asset="ETF")

    to_savings = client.get("/v1/fin_health/investments/ratio/investments_to_savings", headers=auth_headers).json()
    to_fund = client.get("/v1/fin_health/investments/ratio/investments_to_fund", headers=auth_headers).json()

    assert to_savings["ratio"] == pytest.approx(0.25)
    assert to_fund["ratio"] == pytest.approx(0.1)


def test_loan_endpoints(client: TestClient, auth_headers: dict, add_row):
    add_row(IncomeRow, amount=1000)
    add_row(WealthFundRow, amount=2000, days_ago=60)
    add_row(LoanRow, amount=150, lender="Bank", remaining=500)

    assets = client.get("/v1/fin_health/loans/ratio/loans_to_assets", headers=auth_headers).json()
    propensity = client.get("/v1/fin_health/loans/propensity", headers=auth_headers).json()

    assert assets["ratio"] == pytest.approx(0.25)
    assert propensity["expense_propensity"] == pytest.approx(0.15)
    assert propensity["message"] == "Loans propensity calculated successfully"


def test_metric_explicit_window(client: TestClient, auth_headers: dict, add_row):
    add_row(ExpenseRow, amount=100, planned=True, days_ago=60)
    add_row(ExpenseRow, amount=100, planned=True, days_ago=1)
    start = (date.today() - timedelta(days=90)).isoformat()
    end = (date.today() - timedelta(days=30)).isoformat()

    response = client.get(f"/v1/fin_health/expenses/delta?start_date={start}&end_date={end}", headers=auth_headers)

    assert response.json()["delta"] == pytest.approx(100.0)


def test_metric_inverted_window_rejected(client: TestClient, auth_headers: dict):
    response = client.get(
        "/v1/fin_health/expenses/delta?start_date=2026-02-01&end_date=2026-01-01",
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_metric_storage_failure(client: TestClient, auth_headers: dict):
    with patch(
        "finhealth_gateway.services.aggregation.RecordAggregator.snapshot",
        side_effect=StorageError("error getting expense: connection refused"),
    ):
        response = client.get("/v1/fin_health/expenses/delta", headers=auth_headers)

    assert response.status_code == 500
    # Cause is logged, not returned
    assert response.json() == {"detail": "Internal server error"}


def test_analytics_endpoint(client: TestClient, auth_headers: dict, add_row):
    add_row(IncomeRow, amount=100, currency="USD", sender="Employer")
    add_row(ExpenseRow, amount=10, currency="EUR", sent_to="Shop")
    add_row(WealthFundRow, amount=50, currency="RUB", is_liquid=False)
    add_row(IncomeRow, amount=1, days_ago=40)

    response = client.get("/v1/analytics?currency=RUB", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data["income"]) == 1
    assert data["income"][0]["amount"] == 9000.0
    assert data["income"][0]["currency"] == "RUB"
    assert data["income"][0]["sender"] == "Employer"
    assert data["expense"][0]["amount"] == 990.0
    assert data["wealth_fund"][0]["liquid"] is False


def test_analytics_without_currency_keeps_stored_amounts(client: TestClient, auth_headers: dict, add_row):
    add_row(IncomeRow, amount=100, currency="USD")

    data = client.get("/v1/analytics", headers=auth_headers).json()

    assert data["income"][0]["amount"] == 100.0
    assert data["income"][0]["currency"] == "USD"


def test_analytics_pagination(client: TestClient, auth_headers: dict, add_row):
    for days_ago in range(4):
        add_row(IncomeRow, amount=days_ago, days_ago=days_ago)

    data = client.get("/v1/analytics?limit=2&offset=2", headers=auth_headers).json()

    assert [i["amount"] for i in data["income"]] == [2.0, 3.0]


def test_analytics_rejects_invalid_limit(client: TestClient, auth_headers: dict):
    response = client.get("/v1/analytics?limit=0", headers=auth_headers)
    assert response.status_code == 422


def test_analytics_requires_identity(client: TestClient):
    assert client.get("/v1/analytics").status_code == 401


def test_more_endpoint_defaults(client: TestClient, auth_headers: dict):
    response = client.get("/v1/more", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["settings"]["subscription"]["is_active"] is False
    assert data["app"]["connected_accounts"] == {}


def test_more_endpoint_groups_accounts(client: TestClient, auth_headers: dict, db):
    db.add(
        ConnectedAccountRow(
            user_id="user_1", bank_id="sber", account_number="40817", account_type="card",
            name="Main", currency="RUB", state="active",
        )
    )
    db.commit()

    data = client.get("/v1/more", headers=auth_headers).json()

    assert data["app"]["connected_accounts"]["sber"][0]["account_number"] == "40817"


def test_rates_endpoint(client: TestClient):
    data = client.get("/v1/rates").json()

    assert data["base_currency"] == "RUB"
    assert [r["currency"] for r in data["rates"]] == ["EUR", "JPY", "USD"]


def test_rates_refresh():
    table = RateTable(loader=lambda: [ExchangeRate("USD", 95.0), ExchangeRate("CNY", 12.5)])
    client = TestClient(create_app(rate_table=table))

    response = client.post("/v1/rates/refresh")

    assert response.status_code == 200
    assert response.json()["currencies"] == 2
    assert table.get("USD").value == 95.0


def test_rates_refresh_provider_down():
    def loader():
        raise RateProviderError("Rate provider unavailable: connection refused")

    client = TestClient(create_app(rate_table=RateTable(loader=loader)))

    response = client.post("/v1/rates/refresh")

    assert response.status_code == 503
    assert response.json()["detail"] == "Rate provider unavailable"


def test_withdrawn_fund_and_net_zero_income_are_guarded(client: TestClient, auth_headers: dict, add_row):
    for amount in (100.1, 200.2, -300.3):
        add_row(WealthFundRow, amount=amount, is_liquid=True)
    for amount in (0.1, 0.2, -0.3):
        add_row(IncomeRow, amount=amount)
    add_row(ExpenseRow, amount=50)
    add_row(LoanRow, amount=10, lender="Bank", remaining=500)

    liquid = client.get("/v1/fin_health/savings/ratio/liquid", headers=auth_headers).json()
    assets = client.get("/v1/fin_health/loans/ratio/loans_to_assets", headers=auth_headers).json()
    propensity = client.get("/v1/fin_health/expenses/propensity", headers=auth_headers).json()

    assert liquid["ratio"] == 0.0
    assert assets["ratio"] == 0.0
    assert propensity["expense_propensity"] == 0.0
