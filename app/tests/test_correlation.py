# app/tests/test_correlation.py
"""
Tests for correlation ID middleware and request-scoped logging.

These tests verify:
1. Client-provided X-Request-Id is echoed in response
2. Missing or unsafe X-Request-Id generates a new one
3. Bet responses include request_id
4. Log records carry the active request ID
"""
import logging
import uuid
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.correlation import (
    RequestIdLogFilter,
    _current_request_id,
    current_request_id,
    validate_request_id,
)
from app.main import app
from app.security import create_access_token
from wallet.ledger import create_account, update_wallet_balance


@pytest.fixture
def client():
    return TestClient(app)


class TestValidateRequestId:
    """Tests for request ID validation."""

    def test_valid_uuid(self):
        request_id = "550e8400-e29b-41d4-a716-446655440000"
        assert validate_request_id(request_id) == request_id

    def test_valid_alphanumeric(self):
        request_id = "abc123-DEF_456"
        assert validate_request_id(request_id) == request_id

    def test_empty_and_none_rejected(self):
        assert validate_request_id("") is None
        assert validate_request_id(None) is None

    def test_too_long_rejected(self):
        assert validate_request_id("a" * 65) is None
        assert validate_request_id("a" * 64) == "a" * 64

    def test_special_chars_rejected(self):
        """Special characters are rejected."""
        assert validate_request_id("abc@123") is None
        assert validate_request_id("abc 123") is None
        assert validate_request_id("abc/123") is None
        assert validate_request_id("abc\n123") is None


class TestCorrelationMiddleware:
    """Tests for the X-Request-Id round trip."""

    def test_client_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-Id": "trace-123"})
        assert response.headers["X-Request-Id"] == "trace-123"

    def test_missing_id_generated(self, client):
        response = client.get("/health")
        generated = response.headers["X-Request-Id"]
        assert str(uuid.UUID(generated)) == generated

    def test_unsafe_id_replaced(self, client):
        response = client.get("/health", headers={"X-Request-Id": "bad id;drop"})
        assert response.headers["X-Request-Id"] != "bad id;drop"

    def test_bet_response_includes_request_id(self, client):
        create_account("trace-user")
        update_wallet_balance("trace-user", 100, "credit", reference_id="trace-seed")
        token = create_access_token("trace-user")

        with patch("betting.service.is_market_open", return_value=True):
            response = client.post(
                "/api/bets",
                json={"index_name": "Sensex", "bet_type": "andar", "bet_number": 1, "amount": 10},
                headers={"Authorization": f"Bearer {token}", "X-Request-Id": "bet-trace-1"},
            )

        assert response.status_code == 201
        assert response.json()["request_id"] == "bet-trace-1"

    def test_context_cleared_after_request(self, client):
        client.get("/health", headers={"X-Request-Id": "trace-456"})
        assert current_request_id() is None


class TestRequestIdLogFilter:
    """Tests for stamping log records."""

    def _record(self):
        return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)

    def test_default_placeholder(self):
        record = self._record()
        assert RequestIdLogFilter().filter(record) is True
        assert record.request_id == "-"

    def test_uses_active_request_id(self):
        token = _current_request_id.set("req-789")
        try:
            record = self._record()
            RequestIdLogFilter().filter(record)
        finally:
            _current_request_id.reset(token)

        assert record.request_id == "req-789"
