# tests/test_health.py
from typing import Any

from fastapi import FastAPI
from fastapi.testclient import TestClient

from parley.api.v1.errors import register_error_handlers


def test_health_check(client: Any) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_root_describes_api(client: Any) -> None:
    r = client.get("/")
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Parley API"
    assert body["docs"] == "/docs"


def test_unhandled_errors_become_internal_500() -> None:
    """Unexpected exceptions are reported without leaking details."""
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("secret internals")

    with TestClient(app, raise_server_exceptions=False) as test_client:
        r = test_client.get("/boom")

    assert r.status_code == 500
    assert r.json() == {"kind": "internal", "detail": "Internal server error"}
