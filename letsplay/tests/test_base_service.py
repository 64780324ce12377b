import pytest

from letsplay.main import base_service


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["data"]["services"]["products"] == "online"


@pytest.mark.asyncio
async def test_root(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Let's Play API"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/api/nothing-here")
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] == 404
    assert body["error"] == "Not Found"
    assert body["path"] == "/api/nothing-here"


@pytest.mark.asyncio
async def test_wrong_method_uses_error_envelope(client):
    resp = await client.patch("/api/users")
    assert resp.status_code == 405
    assert resp.json()["error"] == "Method Not Allowed"


@pytest.mark.asyncio
async def test_cors_preflight(client):
    resp = await client.options(
        "/api/products",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_api_response():
    assert base_service.api_response({"a": 1}, message="done") == {
        "status": "ok",
        "message": "done",
        "data": {"a": 1},
    }


def test_log_event_and_error(caplog):
    with caplog.at_level("INFO"):
        base_service.log_event("pytest_log_event", {"foo": "bar"})
        assert any("pytest_log_event" in m for m in caplog.text.splitlines())
    with caplog.at_level("ERROR"):
        try:
            raise ValueError("test error")
        except Exception as e:
            base_service.log_error(e, context="pytest")
        assert any("test error" in m for m in caplog.text.splitlines())
