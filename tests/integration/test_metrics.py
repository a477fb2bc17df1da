"""Integration tests for the Prometheus metrics endpoint and request middleware."""

import pytest
from httpx import AsyncClient

from auditdesk.models.organization import Organization
from auditdesk.models.principal import Principal
from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_metrics_endpoint_returns_prometheus_metrics(client: AsyncClient):
    # Touch at least one endpoint so counters/histograms have samples.
    health = await client.get("/api/health")
    assert health.status_code == 200

    response = await client.get("/api/metrics")
    assert response.status_code == 200
    body = response.text

    assert "auditdesk_http_requests_total" in body
    assert "auditdesk_http_request_duration_seconds" in body


@pytest.mark.asyncio
async def test_authorization_decisions_are_counted(
    client: AsyncClient, test_org: Organization, outsider: Principal
):
    denied = await client.get(f"/api/organizations/{test_org.id}", headers=auth_headers(outsider))
    assert denied.status_code == 403

    body = (await client.get("/api/metrics")).text

    assert 'auditdesk_authz_decisions_total{action="read_org_resource",outcome="deny"}' in body


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient):
    response = await client.get("/api/health", headers={"X-Request-ID": "req-12345"})

    assert response.headers["x-request-id"] == "req-12345"
    assert response.headers["x-content-type-options"] == "nosniff"
