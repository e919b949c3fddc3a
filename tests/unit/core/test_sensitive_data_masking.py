"""Unit tests for the structlog processor that masks secrets in log events."""

import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit


def _mask(**event):
    return mask_sensitive_data(None, "info", dict(event))


class TestMaskSensitiveData:
    def test_password_key_is_masked(self):
        assert _mask(password="hunter2")["password"] == "***MASKED***"

    def test_token_key_is_masked(self):
        assert _mask(token="deadbeef")["token"] == "***MASKED***"

    def test_signature_key_is_masked(self):
        assert _mask(signature="data:image/png;base64,AAAA")["signature"] == "***MASKED***"

    def test_inline_secret_in_message(self):
        masked = _mask(event="reset failed token=abc123 for user")["event"]
        assert "abc123" not in masked
        assert "token=***MASKED***" in masked

    def test_email_local_part_is_masked(self):
        assert _mask(email="customer@example.com")["email"] == "cu***@example.com"

    def test_non_sensitive_values_untouched(self):
        event = _mask(event="order.created", order_number="RN1700000000123", total=19000)
        assert event == {
            "event": "order.created",
            "order_number": "RN1700000000123",
            "total": 19000,
        }
