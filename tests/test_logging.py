import json
import logging
import random

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.responses import JSONResponse

from api.app.middlewares.logging import LoggingMiddleware
from api.app.middlewares.request_id import RequestIdMiddleware
from api.app.obs.logging import JsonFormatter


def _make_app():
    test_app = FastAPI()
    test_app.add_middleware(RequestIdMiddleware)
    test_app.add_middleware(LoggingMiddleware)

    @test_app.get("/health")
    async def health():
        return {"ok": True}

    @test_app.post("/echo")
    async def echo(data: dict):
        return data

    @test_app.post("/fail")
    async def fail():
        return JSONResponse({}, status_code=409)

    return test_app


def test_request_id_propagation(monkeypatch, caplog):
    monkeypatch.setattr("api.app.middlewares.logging.LOG_SAMPLE_2XX", 1)
    client = TestClient(_make_app())
    with caplog.at_level(logging.INFO, logger="api"):
        resp = client.get("/health", headers={"X-Request-ID": "abc"})
    assert resp.headers["X-Request-ID"] == "abc"
    data = json.loads(caplog.messages[1])
    assert data["req_id"] == "abc"
    assert data["status"] == 200


def test_request_id_generation(monkeypatch, caplog):
    monkeypatch.setattr("api.app.middlewares.logging.LOG_SAMPLE_2XX", 1)
    client = TestClient(_make_app())
    with caplog.at_level(logging.INFO, logger="api"):
        resp = client.get("/health")
    rid = resp.headers["X-Request-ID"]
    assert rid
    data = json.loads(caplog.messages[1])
    assert data["req_id"] == rid


def test_invalid_request_id_replaced():
    client = TestClient(_make_app())
    resp = client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
    assert resp.headers["X-Request-ID"] != "bad id with spaces"


def test_body_redaction(monkeypatch, caplog):
    monkeypatch.setattr("api.app.middlewares.logging.LOG_SAMPLE_2XX", 1)
    client = TestClient(_make_app())
    payload = {
        "tenantCode": "1234",
        "customerNote": "call me on 555",
        "staff_token": "abcdef",
        "nested": {"token": "t"},
    }
    params = {"token": "q", "status": "NEW"}
    with caplog.at_level(logging.INFO, logger="api"):
        client.post("/echo", json=payload, params=params)
    inbound = json.loads(caplog.messages[0])
    body = inbound["body"]
    query = inbound["query"]
    assert body["tenantCode"] == "1234"
    for k in ["customerNote", "staff_token"]:
        assert body[k] == "***"
    assert body["nested"]["token"] == "***"
    assert query["token"] == "***"
    assert query["status"] == "NEW"


def test_errors_always_logged(monkeypatch, caplog):
    monkeypatch.setattr("api.app.middlewares.logging.LOG_SAMPLE_2XX", 0)
    client = TestClient(_make_app())
    with caplog.at_level(logging.INFO, logger="api"):
        for _ in range(5):
            client.post("/fail")
    assert len(caplog.messages) == 10


def test_2xx_sampling(monkeypatch, caplog):
    monkeypatch.setattr("api.app.middlewares.logging.LOG_SAMPLE_2XX", 0.1)
    random.seed(1)
    client = TestClient(_make_app())
    with caplog.at_level(logging.INFO, logger="api"):
        for _ in range(100):
            client.get("/health")
    logged = len(caplog.messages) // 2
    assert 5 <= logged <= 15


def test_json_logger_redaction():
    formatter = JsonFormatter()
    record = logging.LogRecord(
        "api",
        logging.INFO,
        __file__,
        0,
        "retrying with Bearer eyJhbGciOi.abc.def and /stream?token=abc123",
        (),
        None,
    )
    data = json.loads(formatter.format(record))
    msg = data["msg"]
    assert "eyJhbGciOi" not in msg
    assert "abc123" not in msg
    assert msg.count("***") == 2


def test_json_logger_includes_extras():
    logger = logging.getLogger("api.orders")
    record = logger.makeRecord(
        "api.orders",
        logging.INFO,
        __file__,
        0,
        "order.created",
        (),
        None,
        extra={"tenant": "t1", "order_id": "o1", "display_code": "1234-A1-0001"},
    )
    data = json.loads(JsonFormatter().format(record))
    assert data["tenant"] == "t1"
    assert data["order_id"] == "o1"
    assert data["display_code"] == "1234-A1-0001"
    assert "pathname" not in data
