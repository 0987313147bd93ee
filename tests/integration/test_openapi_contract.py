from fastapi.testclient import TestClient

from salesbot.main import app


client = TestClient(app)


def test_openapi_contains_expected_paths():
    response = client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    paths = schema.get("paths", {})

    expected = [
        "/chat",
        "/health",
        "/ready",
        "/metrics",
        "/catalog/search",
        "/catalog/{site_id}/products/{product_id}",
        "/catalog/{site_id}/top-rated",
        "/catalog/{site_id}/on-sale",
        "/catalog/{site_id}/count",
    ]

    for path in expected:
        assert path in paths, f"Missing {path} from OpenAPI paths"

    assert "post" in paths["/chat"]
    assert "get" in paths["/catalog/search"]
