"""
Tests for app/core/rate_limiter.py - Rate limiting functionality.
"""
import pytest
from unittest.mock import MagicMock, patch

from conftest import EMPLOYEE_WALLET


class TestGetRealClientIP:
    """Test real client IP extraction."""

    def test_extracts_from_x_forwarded_for(self):
        """Should extract first IP from X-Forwarded-For header."""
        from app.core.rate_limiter import get_real_client_ip

        mock_request = MagicMock()
        mock_request.headers = {"X-Forwarded-For": "203.0.113.1, 198.51.100.1, 192.0.2.1"}

        assert get_real_client_ip(mock_request) == "203.0.113.1"

    def test_extracts_from_x_real_ip(self):
        from app.core.rate_limiter import get_real_client_ip

        mock_request = MagicMock()
        mock_request.headers = {"X-Real-IP": "203.0.113.2"}

        assert get_real_client_ip(mock_request) == "203.0.113.2"

    def test_falls_back_to_direct_ip(self):
        from app.core.rate_limiter import get_real_client_ip

        mock_request = MagicMock()
        mock_request.headers = {}

        with patch("app.core.rate_limiter.get_remote_address", return_value="192.168.1.100"):
            assert get_real_client_ip(mock_request) == "192.168.1.100"


class TestClientIdentifier:

    def test_wallet_header_wins(self):
        from app.core.rate_limiter import get_client_identifier

        mock_request = MagicMock()
        mock_request.headers = {"x-wallet-address": "0x" + "AB" * 20}

        assert get_client_identifier(mock_request) == "wallet:0x" + "ab" * 20

    def test_invalid_wallet_falls_back_to_ip(self):
        from app.core.rate_limiter import get_client_identifier

        mock_request = MagicMock()
        mock_request.headers = {"x-wallet-address": "0x12", "X-Real-IP": "203.0.113.9"}

        assert get_client_identifier(mock_request) == "ip:203.0.113.9"


class TestRateLimitExceededHandler:

    def test_returns_429_with_retry_after(self, mock_request):
        from app.core.rate_limiter import rate_limit_exceeded_handler

        exc = MagicMock()
        exc.retry_after = 30

        response = rate_limit_exceeded_handler(mock_request, exc)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"


class TestLoginLimit:

    @pytest.mark.asyncio
    async def test_eleventh_login_attempt_is_throttled(self, client):
        body = {
            "wallet_address": EMPLOYEE_WALLET,
            "message": "not a sign-in message",
            "signature": "0x00",
        }

        statuses = [
            (await client.post("/api/auth/wallet-login", json=body)).status_code
            for _ in range(11)
        ]

        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429
