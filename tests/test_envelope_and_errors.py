from fastapi.testclient import TestClient

from api.app.domain import ConflictError, TransientError
from api.app.main import app
from api.app.utils.responses import error_response


def test_health_ok():
    client = TestClient(app)
    resp = client.get("/health", headers={"X-Request-ID": "abc"})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "data": {"status": "ok"}}
    assert resp.headers["X-Request-ID"] == "abc"


def test_not_found_returns_err():
    client = TestClient(app)
    resp = client.get("/missing")
    assert resp.status_code == 404
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == 404
    assert body["request_id"]


def test_domain_error_envelope():
    resp = error_response(ConflictError("Tables already exist: A1", {"conflicts": ["A1"]}))
    assert resp.status_code == 409
    assert b'"code":"CONFLICT"' in resp.body
    assert b'"conflicts":["A1"]' in resp.body


def test_transient_error_has_retry_after():
    resp = error_response(TransientError("Storage did not respond in time"))
    assert resp.status_code == 503
    assert resp.headers["Retry-After"] == "1"
