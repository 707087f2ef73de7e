"""
Tests for app/main.py - FastAPI application, error handlers and health checks.
"""
import pytest
from unittest.mock import AsyncMock, patch
from fastapi import status
from fastapi.responses import JSONResponse


class TestHealthEndpoint:
    """Test application health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check_healthy(self):
        from app.main import health_check

        with patch("app.main.check_db_connection", new_callable=AsyncMock) as mock_db:
            mock_db.return_value = True

            response = await health_check()

        assert response.status == "healthy"
        assert response.checks["database"] is True
        assert response.privacy == "Web3 Privacy-First"

    @pytest.mark.asyncio
    async def test_health_check_unhealthy_when_db_down(self):
        from app.main import health_check

        with patch("app.main.check_db_connection", new_callable=AsyncMock) as mock_db:
            mock_db.return_value = False

            response = await health_check()

        assert isinstance(response, JSONResponse)
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_health_route(self, client):
        with patch("app.main.check_db_connection", new_callable=AsyncMock, return_value=True):
            response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["service"] == "web3-payroll-backend"
        assert {"status", "version", "environment", "timestamp", "checks"} <= body.keys()


class TestErrorHandlers:

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}

    @pytest.mark.asyncio
    async def test_http_exception_detail_wrapped(self, client):
        response = await client.get("/api/employees/999")

        assert response.status_code == 404
        assert response.json() == {"error": "Employee not found"}

    @pytest.mark.asyncio
    async def test_validation_error_shape(self, client):
        response = await client.post("/api/bonuses/", json={"employee_id": 1})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert any(d["field"] == "amount" for d in body["details"])

    @pytest.mark.asyncio
    async def test_ledger_error_is_bad_request(self, client):
        response = await client.post("/api/ledger/unpause")

        assert response.status_code == 400
        assert response.json() == {"error": "Pausable: not paused"}

    @pytest.mark.asyncio
    async def test_global_handler_in_development(self, mock_request):
        from app.main import global_exception_handler

        response = await global_exception_handler(mock_request, ValueError("boom"))

        assert response.status_code == 500
        content = response.body.decode()
        assert "ValueError" in content
        assert "boom" in content

    @pytest.mark.asyncio
    async def test_global_handler_hides_details_in_production(self, mock_request):
        from app.main import global_exception_handler

        with patch("app.main.settings") as mock_settings:
            mock_settings.IS_PRODUCTION = True
            response = await global_exception_handler(mock_request, ValueError("secret detail"))

        content = response.body.decode()
        assert "secret detail" not in content
        assert "Reference ID" in content


class TestMiddleware:

    @pytest.mark.asyncio
    async def test_security_headers(self, client):
        response = await client.get("/")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    @pytest.mark.asyncio
    async def test_request_body_limit(self, client):
        from app.core.config import settings

        response = await client.post(
            "/api/bonuses/",
            content=b"x" * (settings.MAX_REQUEST_BODY_BYTES + 1),
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 413


class TestRootEndpoint:

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert "Web3 Payroll" in response.json()["message"]
