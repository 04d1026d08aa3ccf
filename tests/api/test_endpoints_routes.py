"""
Tests for the /endpoints and /tenants routes.

Routes run against the in-memory database; refreshes use a stub probe
injected through the endpoint service dependency.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from healthwatch.api.dependencies.owner import get_endpoint_service
from healthwatch.main import app
from healthwatch.models.endpoint import EndpointStatus
from healthwatch.repositories.endpoint_repository import EndpointRepository
from healthwatch.services.endpoint_probe import ProbeResult
from healthwatch.services.endpoint_service import EndpointService
from healthwatch.services.refresh_service import EndpointRefreshService

OWNER = {"X-Owner-ID": "owner-1"}

NEW_ENDPOINT = {
    "tenant_id": "tenant-a",
    "category": "payments",
    "name": "Checkout",
    "url": "https://api.example.com/health",
}


def _create(client, headers=OWNER, **overrides):
    body = dict(NEW_ENDPOINT, **overrides)
    response = client.post("/endpoints", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestOwnerHeader:

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/endpoints"),
            ("post", "/endpoints"),
            ("patch", "/endpoints/e-1"),
            ("delete", "/endpoints/e-1"),
            ("delete", "/tenants/tenant-a"),
        ],
    )
    def test_missing_owner_is_unauthorized(self, client, method, path):
        kwargs = {"json": NEW_ENDPOINT} if method in ("post", "patch") else {}

        response = getattr(client, method)(path, **kwargs)

        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized"

    def test_blank_owner_is_unauthorized(self, client):
        response = client.get("/endpoints", headers={"X-Owner-ID": "  "})

        assert response.status_code == 401


class TestCreateRoute:

    def test_create(self, client):
        data = _create(client, timeout_ms=2000)

        assert data["owner_id"] == "owner-1"
        assert data["endpoint_id"]
        assert data["status"] == "unknown"
        assert data["timeout_ms"] == 2000
        assert data["status_code"] is None
        assert data["status_since"] is not None

    def test_create_default_timeout(self, client):
        assert _create(client)["timeout_ms"] == 5000

    def test_create_blank_name(self, client):
        response = client.post("/endpoints", json=dict(NEW_ENDPOINT, name="  "), headers=OWNER)

        assert response.status_code == 400
        assert "name" in response.json()["detail"]

    def test_create_missing_field(self, client):
        body = {k: v for k, v in NEW_ENDPOINT.items() if k != "url"}

        response = client.post("/endpoints", json=body, headers=OWNER)

        assert response.status_code == 400

    def test_create_timeout_beyond_column_range(self, client):
        response = client.post(
            "/endpoints", json=dict(NEW_ENDPOINT, timeout_ms=1e30), headers=OWNER
        )

        assert response.status_code == 400

    def test_create_negative_timeout(self, client):
        response = client.post(
            "/endpoints", json=dict(NEW_ENDPOINT, timeout_ms=-1), headers=OWNER
        )

        assert response.status_code == 400


class TestListRoute:

    def test_list_only_own_endpoints(self, client):
        mine = _create(client)
        _create(client, headers={"X-Owner-ID": "owner-2"})

        response = client.get("/endpoints", headers=OWNER)

        assert response.status_code == 200
        assert [e["endpoint_id"] for e in response.json()] == [mine["endpoint_id"]]

    def test_list_empty(self, client):
        response = client.get("/endpoints", headers=OWNER)

        assert response.status_code == 200
        assert response.json() == []

    def test_list_with_refresh(self, client, db, notifier):
        probe = AsyncMock(
            return_value=ProbeResult(
                status=EndpointStatus.UNHEALTHY,
                status_code=503,
                response_time_ms=90,
                error_message="Non-2xx status code: 503",
            )
        )

        def override_service():
            repository = EndpointRepository(db)
            return EndpointService(
                repository, EndpointRefreshService(repository, notifier, probe=probe)
            )

        created = _create(client)
        app.dependency_overrides[get_endpoint_service] = override_service

        response = client.get("/endpoints", params={"refresh": "true"}, headers=OWNER)

        assert response.status_code == 200
        [data] = response.json()
        assert data["endpoint_id"] == created["endpoint_id"]
        assert data["status"] == "unhealthy"
        assert data["status_code"] == 503
        assert data["error_message"] == "Non-2xx status code: 503"
        assert data["last_checked_at"] is not None
        probe.assert_awaited_once_with("https://api.example.com/health", 5000)
        notifier.notify_unhealthy.assert_awaited_once()

    def test_list_without_refresh_does_not_probe(self, client, db, notifier):
        probe = AsyncMock()

        def override_service():
            repository = EndpointRepository(db)
            return EndpointService(
                repository, EndpointRefreshService(repository, notifier, probe=probe)
            )

        _create(client)
        app.dependency_overrides[get_endpoint_service] = override_service

        response = client.get("/endpoints", headers=OWNER)

        assert response.json()[0]["status"] == "unknown"
        probe.assert_not_awaited()


class TestUpdateRoute:

    def test_update(self, client):
        created = _create(client)

        response = client.patch(
            f"/endpoints/{created['endpoint_id']}",
            json={"name": "Renamed", "timeout_ms": 750},
            headers=OWNER,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Renamed"
        assert data["timeout_ms"] == 750
        assert data["url"] == NEW_ENDPOINT["url"]

    def test_update_empty_body(self, client):
        created = _create(client)

        response = client.patch(f"/endpoints/{created['endpoint_id']}", json={}, headers=OWNER)

        assert response.status_code == 400

    def test_update_negative_timeout(self, client):
        created = _create(client)

        response = client.patch(
            f"/endpoints/{created['endpoint_id']}", json={"timeout_ms": -5}, headers=OWNER
        )

        assert response.status_code == 400

    def test_update_timeout_beyond_column_range(self, client):
        created = _create(client)

        response = client.patch(
            f"/endpoints/{created['endpoint_id']}", json={"timeout_ms": 1e30}, headers=OWNER
        )

        assert response.status_code == 400
        assert "timeout_ms" in response.json()["detail"]

    def test_update_not_found(self, client):
        response = client.patch("/endpoints/missing", json={"name": "x"}, headers=OWNER)

        assert response.status_code == 404
        assert response.json()["detail"] == "Endpoint missing not found"

    def test_update_other_owner(self, client):
        created = _create(client)

        response = client.patch(
            f"/endpoints/{created['endpoint_id']}",
            json={"name": "x"},
            headers={"X-Owner-ID": "owner-2"},
        )

        assert response.status_code == 404


class TestDeleteRoute:

    def test_delete(self, client):
        created = _create(client)

        response = client.delete(f"/endpoints/{created['endpoint_id']}", headers=OWNER)

        assert response.status_code == 204
        assert client.get("/endpoints", headers=OWNER).json() == []

    def test_delete_not_found(self, client):
        response = client.delete("/endpoints/missing", headers=OWNER)

        assert response.status_code == 404


class TestDeleteTenantRoute:

    def test_delete_tenant(self, client):
        _create(client, tenant_id="tenant-a")
        _create(client, tenant_id="tenant-a")
        keep = _create(client, tenant_id="tenant-b")

        response = client.delete("/tenants/tenant-a", headers=OWNER)

        assert response.status_code == 200
        assert response.json() == {"tenant_id": "tenant-a", "deleted_count": 2}
        remaining = client.get("/endpoints", headers=OWNER).json()
        assert [e["endpoint_id"] for e in remaining] == [keep["endpoint_id"]]

    def test_delete_tenant_echoes_trimmed_id(self, client):
        _create(client, tenant_id="tenant-a")

        response = client.delete("/tenants/%20tenant-a%20", headers=OWNER)

        assert response.status_code == 200
        assert response.json() == {"tenant_id": "tenant-a", "deleted_count": 1}

    def test_delete_unknown_tenant(self, client):
        response = client.delete("/tenants/nobody", headers=OWNER)

        assert response.status_code == 200
        assert response.json()["deleted_count"] == 0


def test_unexpected_error_is_500(client):
    service = MagicMock()
    service.list_endpoints = AsyncMock(side_effect=RuntimeError("database is gone"))
    app.dependency_overrides[get_endpoint_service] = lambda: service

    with TestClient(app, raise_server_exceptions=False) as failing_client:
        response = failing_client.get("/endpoints", headers=OWNER)

    assert response.status_code == 500
    assert response.json() == {"detail": "Unexpected error"}
