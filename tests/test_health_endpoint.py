from fastapi.testclient import TestClient

from taurus_ai.server import app


def test_health_endpoint():
    client = TestClient(app)
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data.get("status") == "ok"
    assert isinstance(data["timestamp"], int)
    assert resp.headers.get("X-Request-ID")


def test_request_ids_are_unique():
    client = TestClient(app)
    first = client.get("/health").headers["X-Request-ID"]
    second = client.get("/health").headers["X-Request-ID"]
    assert first != second


def test_metrics_endpoint_counts_requests():
    client = TestClient(app)
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    data = resp.json()
    # Two requests so far: /health and /metrics
    assert data.get("requests", 0) >= 2
    assert "prompts" in data
    assert "active_subscribers" in data


def test_status_reports_hedera_network():
    client = TestClient(app)
    resp = client.get("/status")
    assert resp.status_code == 200
    hedera = resp.json()["hedera"]
    assert hedera["network"]
    assert hedera["mirrorNodeUrl"].startswith("http")
