"""
Tests for the /health-qa probe target and the liveness route.
"""
import pytest
from unittest.mock import patch

from fastapi.testclient import TestClient

from healthwatch.api.routes import health_qa
from healthwatch.api.routes.health_qa import SCENARIOS, Scenario
from healthwatch.main import app


def _scenario(name):
    return next(s for s in SCENARIOS if s.name == name)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_metrics_exposed(client):
    client.get("/health")

    response = client.get("/metrics")

    assert response.status_code == 200


def test_scenario_table_covers_every_outcome():
    codes = {s.status_code for s in SCENARIOS if s.kind == "response"}
    kinds = {s.kind for s in SCENARIOS}

    assert {200, 201, 204, 302, 400, 404, 418, 429, 500, 503, 504} <= codes
    assert kinds == {"response", "raise", "hang"}


@pytest.mark.parametrize("name, status_code", [
    ("fast-success", 200),
    ("created-success", 201),
    ("not-found", 404),
    ("teapot", 418),
    ("service-unavailable", 503),
])
def test_response_scenarios(client, name, status_code):
    with patch("random.choice", return_value=_scenario(name)):
        response = client.get("/health-qa")

    assert response.status_code == status_code
    body = response.json()
    assert body["outcome"] == name
    assert body["status_code"] == status_code


def test_no_content_scenario(client):
    with patch("random.choice", return_value=_scenario("no-content")):
        response = client.get("/health-qa")

    assert response.status_code == 204
    assert response.content == b""


def test_redirect_scenario(client):
    with patch("random.choice", return_value=_scenario("redirect")):
        response = client.get("/health-qa", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/maintenance"


def test_slow_scenario_waits(client):
    slow = Scenario("slow", "response", "slow", 200, delay_seconds=0.01)

    with patch("random.choice", return_value=slow):
        response = client.get("/health-qa")

    assert response.status_code == 200
    assert response.json()["outcome"] == "slow"


def test_hang_scenario(client):
    with patch("random.choice", return_value=_scenario("timeout")), \
         patch.object(health_qa, "HANG_SECONDS", 0):
        response = client.get("/health-qa")

    assert response.status_code == 504


def test_raise_scenario_is_500(client):
    with patch("random.choice", return_value=_scenario("unhandled-exception")):
        with TestClient(app, raise_server_exceptions=False) as failing_client:
            response = failing_client.get("/health-qa")

    assert response.status_code == 500
    assert response.json() == {"detail": "Unexpected error"}
