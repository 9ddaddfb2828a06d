from datetime import datetime

from fastapi.testclient import TestClient
from app.main import app


def test_health_check():
    with TestClient(app) as client:
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        # Must parse as ISO-8601
        assert datetime.fromisoformat(body["timestamp"]).tzinfo is not None


def test_health_check_does_not_require_api_key():
    with TestClient(app) as client:
        response = client.get("/health", headers={"x-api-key": "wrong"})
        assert response.status_code == 200


def test_unknown_route_uses_error_shape():
    with TestClient(app) as client:
        response = client.get("/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found", "status": "error"}
