from fastapi.testclient import TestClient

from salesbot.main import app


client = TestClient(app)


def test_health_ok():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_reports_components():
    response = client.get("/ready")

    assert response.status_code == 200
    payload = response.json()
    assert payload["components"]["catalog_db"]["ok"] is True
    assert payload["components"]["cache"] == {"backend": "InMemoryTTLStore", "ok": True}
    assert payload["components"]["llm"]["ok"] is False
    assert payload["status"] == "degraded"


def test_request_id_is_echoed():
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_generated_when_missing():
    response = client.get("/health")

    assert response.headers["X-Request-ID"]
