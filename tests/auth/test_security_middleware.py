"""Tests for ApiKeyMiddleware - operator route protection."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from auth.api_key import ApiKeyGuard
from auth.security_middleware import ApiKeyMiddleware


@pytest.fixture
def app_with_middleware():
    """FastAPI app with API key middleware."""
    app = FastAPI()
    app.add_middleware(ApiKeyMiddleware, guard=ApiKeyGuard("operator-key"))

    @app.post("/api/orders/{order_id}/process")
    async def process(order_id: int, request: Request):
        return {"order_id": order_id, "operator": request.state.operator}

    @app.get("/events")
    async def events():
        return {"public": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


@pytest.fixture
def client(app_with_middleware):
    return TestClient(app_with_middleware)


class TestProtectedRoutes:

    def test_without_key(self, client):
        response = client.post("/api/orders/1/process")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_AUTHENTICATED"

    def test_wrong_key(self, client):
        response = client.post("/api/orders/1/process", headers={"X-API-KEY": "nope"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Authentication required"

    def test_correct_key(self, client):
        response = client.post("/api/orders/1/process", headers={"X-API-KEY": "operator-key"})

        assert response.status_code == 200
        assert response.json() == {"order_id": 1, "operator": True}


class TestPublicRoutes:

    @pytest.mark.parametrize("path", ["/events", "/health"])
    def test_no_key_needed(self, client, path):
        assert client.get(path).status_code == 200
