from fastapi.testclient import TestClient

from app.core.context import get_request_id


def _get_client() -> TestClient:
    from app.main import app

    return TestClient(app)


def test_health_endpoint_returns_ok() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_generated_when_missing() -> None:
    client = _get_client()
    first = client.get("/health").headers.get("X-Request-Id")
    second = client.get("/health").headers.get("X-Request-Id")

    assert first and second
    assert first != second


def test_request_id_echoed_and_not_leaked_between_requests() -> None:
    client = _get_client()
    req_id = "schedule-request-42"
    response = client.get("/health", headers={"X-Request-Id": req_id})

    assert response.headers.get("X-Request-Id") == req_id
    assert get_request_id() is None


def test_completed_requests_are_logged(caplog) -> None:
    client = _get_client()
    with caplog.at_level("INFO", logger="app.core.middleware"):
        client.get("/health", headers={"X-Request-Id": "logged-request"})

    assert "GET /health -> 200" in caplog.text
