import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_metrics_before_first_reconciliation(client: AsyncClient):
    response = await client.get("/api/metrics")

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "mock"
    assert data["reconciling"] is False
    assert data["lastError"] is None
    assert data["refreshIntervalMs"] == 60000
    assert data["kpis"]["slaCompliance"] == "--"
    assert "first reconciliation" in data["note"]


@pytest.mark.asyncio
async def test_metrics_after_refresh_without_credentials(client: AsyncClient, runtime):
    await runtime.coordinator.refresh("manual")

    data = (await client.get("/api/metrics")).json()

    assert data["source"] == "mock"
    assert data["reconcileReason"] == "manual"
    assert data["kpis"]["ticketsReceivedToday"] == "42"
    assert data["sampleInfo"]["consideredTickets"] == 5
    assert "credentials" in data["note"]


@pytest.mark.asyncio
async def test_api_health_reports_coordinator_status(client: AsyncClient, runtime):
    await runtime.coordinator.refresh("manual")

    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["credentialsConfigured"] is False
    assert data["subscribers"] == 0
    assert data["pendingRefreshes"] == 0
    assert data["webhookPending"] is False
    assert data["reconciling"] is False
    assert data["lastSnapshotAt"] is not None
    assert data["lastError"] is None


@pytest.mark.asyncio
async def test_liveness_and_request_id(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "abc123"
