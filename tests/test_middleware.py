"""Tests for middleware components."""
import pytest
from httpx import AsyncClient, ASGITransport
from fastapi.testclient import TestClient


@pytest.mark.asyncio
async def test_correlation_id_injection(app):
    """Test that correlation ID is auto-generated if not provided."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/events",
            json={"id": "e1", "type": "test.event", "source": "test", "payload": {"foo": "bar"}},
        )
        assert response.status_code == 202
        assert response.headers["X-Correlation-ID"]


@pytest.mark.asyncio
async def test_correlation_id_preserved(app):
    """Test that provided correlation ID is preserved."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        correlation_id = "test-correlation-123"
        response = await client.get("/health", headers={"X-Correlation-ID": correlation_id})
        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"] == correlation_id


@pytest.mark.asyncio
async def test_error_responses_carry_correlation_id(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/events",
            json={"type": "test.event", "source": "test"},
            headers={"X-Correlation-ID": "abc"},
        )
        assert response.status_code == 400
        assert response.headers["X-Correlation-ID"] == "abc"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/nope")
    assert response.status_code == 404
    data = response.json()
    assert set(data) == {"error", "details"}


def test_wrong_method_uses_error_envelope(client):
    response = client.get("/events")
    assert response.status_code == 405
    assert set(response.json()) == {"error", "details"}


def test_unexpected_exception_returns_500_envelope(app):
    """Exceptions escaping a route never leak a traceback to the client."""

    async def boom():
        raise RuntimeError("kaboom")

    app.add_api_route("/boom", boom, methods=["GET"])
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/boom")
    assert response.status_code == 500
    assert response.json() == {"error": "internal server error", "details": "kaboom"}
