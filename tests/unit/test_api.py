"""Tests for the payout HTTP API."""

from __future__ import annotations

import asyncio
import time
from datetime import date
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient

from caseledger.api.app import create_app
from caseledger.core.config import AppSettings
from caseledger.models.activity import Client, DayActivity, LocationCases
from caseledger.persistence import Persistence
from tests.fakes import MemoryActivitySource, MemoryFileStore, MemoryPayoutStore, MemoryRateTable

PERIOD = {"month": 3, "year": 2024}
RESOURCES = [
    {"resource_id": "r-asha", "name": "Asha Rao", "email": "asha@example.com"},
    {"resource_id": "r-ben", "name": "Ben Ortiz"},
]


@pytest.fixture
def persistence():
    activity = MemoryActivitySource()
    activity.add(
        "r-asha",
        DayActivity(day=date(2024, 3, 1), hours_worked=Decimal("8"), verisma_logging_cases=37),
    )
    activity.add(
        "r-ben",
        DayActivity(
            day=date(2024, 3, 4), hours_worked=Decimal("8"), mro_logging_cases=144,
            complete_logging_cases=5,
            processing=[LocationCases(client=Client.MRO, location_id="mro-nyu", cases=4)],
        ),
    )
    rates = MemoryRateTable({(Client.MRO, "mro-nyu"): Decimal("1.25")})
    return Persistence(activity, rates, MemoryPayoutStore(), MemoryFileStore())


@pytest.fixture
def client(persistence):
    with TestClient(create_app(AppSettings(), persistence)) as c:
        yield c


@pytest.fixture
def calculated(client):
    resp = client.post("/payouts/calculate", json={**PERIOD, "resources": RESOURCES})
    assert resp.status_code == 200
    return resp.json()


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_ready(self, client):
        body = client.get("/ready").json()
        assert body["status"] == "ready"
        assert body["storage"] == "memory"


class TestCalculate:
    def test_calculates_all_resources(self, calculated):
        assert [p["resource_id"] for p in calculated["payouts"]] == ["r-asha", "r-ben"]
        assert calculated["failures"] == []

    def test_reports_failures(self, client):
        resp = client.post("/payouts/calculate", json={**PERIOD, "resources": [{"resource_id": "r-none"}]})
        assert resp.status_code == 200
        assert resp.json()["skipped"] == ["r-none"]

    def test_rejects_bad_month(self, client):
        resp = client.post("/payouts/calculate", json={"month": 13, "year": 2024, "resources": []})
        assert resp.status_code == 422


class TestRead:
    def test_list_with_summary(self, client, calculated):
        body = client.get("/payouts", params=PERIOD).json()
        assert body["total"] == 2
        assert body["payouts"][0]["resource_id"] == "r-ben"
        assert Decimal(body["summary"]["grand_total"]) == Decimal("110.15")

    def test_get_one(self, client, calculated):
        body = client.get("/payouts/r-asha", params=PERIOD).json()
        assert Decimal(body["grand_total_payout"]) == Decimal("18.50")
        assert len(body["daily_breakdown"]) == 31

    def test_get_missing_is_404(self, client):
        resp = client.get("/payouts/nobody", params=PERIOD)
        assert resp.status_code == 404
        assert resp.json()["error"] == "PayoutNotFoundError"

    def test_slabs(self, client):
        body = client.get("/payouts/slabs").json()
        assert len(body["slabs"]) == 4
        assert body["slabs"][-1]["upper"] is None
        assert Decimal(body["complete_logging_rate"]) == Decimal("0.65")


class TestWorkflow:
    def test_approve_then_pay(self, client, calculated):
        resp = client.patch("/payouts/r-asha/approve", json={**PERIOD, "approved_by": "finance"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"

        resp = client.patch("/payouts/r-asha/paid", json={**PERIOD, "payment_reference": "TXN-1"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "paid"

    def test_pay_before_approve_is_409(self, client, calculated):
        resp = client.patch("/payouts/r-asha/paid", json=PERIOD)
        assert resp.status_code == 409
        assert resp.json()["error"] == "InvalidStatusTransitionError"

    def test_locked_recalculation_is_reported(self, client, calculated):
        client.patch("/payouts/r-asha/approve", json={**PERIOD, "approved_by": "finance"})
        body = client.post("/payouts/calculate", json={**PERIOD, "resources": RESOURCES[:1]}).json()
        assert body["failures"][0]["error"] == "PayoutLockedError"


class TestExport:
    def test_download_and_store(self, client, persistence, calculated):
        resp = client.get("/payouts/export", params=PERIOD)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert "resource_payouts_2024_03.xlsx" in resp.headers["content-disposition"]
        assert resp.content[:2] == b"PK"
        assert persistence.file_store.list_files("exports/") == ["exports/resource_payouts_2024_03.xlsx"]


class TestProcessingPayroll:
    def test_location_grid_for_client(self, client, calculated):
        resp = client.get("/payouts/processing/mro", params=PERIOD)
        assert resp.status_code == 200
        body = resp.json()
        assert body["client"] == "mro"
        assert [r["resource_id"] for r in body["resources"]] == ["r-ben"]
        [location] = body["locations"]
        assert location["location_id"] == "mro-nyu"
        assert location["resource_cases"] == {"r-ben": 4}
        assert Decimal(location["cost_per_case"]) == Decimal("1.25")
        assert body["total_processing"] == 4
        assert Decimal(body["total_payout"]) == Decimal("5.00")

    def test_client_without_processing_is_empty(self, client, calculated):
        body = client.get("/payouts/processing/verisma", params=PERIOD).json()
        assert body["locations"] == []
        assert body["total_processing"] == 0

    def test_unknown_client_is_422(self, client):
        assert client.get("/payouts/processing/acme", params=PERIOD).status_code == 422


class SlowRateTable(MemoryRateTable):
    def get_processing_rates(self):
        time.sleep(0.5)
        return super().get_processing_rates()


class TestConcurrency:
    def test_health_answers_while_calculation_runs(self, persistence):
        backends = persistence._replace(rate_table=SlowRateTable())
        app = create_app(AppSettings(), backends)

        async def run():
            async with app.router.lifespan_context(app):
                transport = httpx.ASGITransport(app=app)
                async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
                    start = time.perf_counter()

                    async def timed_health():
                        resp = await ac.get("/health")
                        return resp, time.perf_counter() - start

                    calc, (health, latency) = await asyncio.gather(
                        ac.post("/payouts/calculate", json={**PERIOD, "resources": RESOURCES[:1]}),
                        timed_health(),
                    )
            return calc, health, latency

        calc, health, latency = asyncio.run(run())
        assert calc.status_code == 200
        assert health.status_code == 200
        assert latency < 0.3
