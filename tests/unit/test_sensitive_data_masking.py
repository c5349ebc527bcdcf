import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_card_number_masked(self):
        event_dict = {"event": "test", "card": "4111 1111 1111 1111"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "4111 1111 1111 1111" not in result["card"]
        assert "***MASKED***" in result["card"]

    def test_password_masked(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]

    def test_authorization_masked(self):
        event_dict = {"event": "test", "header": "authorization: Bearer.eyJhbGciOi"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "eyJhbGciOi" not in result["header"]

    def test_order_number_untouched(self):
        event_dict = {"event": "order.created", "order_number": "0412345"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "0412345"

    def test_non_string_values_untouched(self):
        event_dict = {"event": "test", "quantity": 3, "total": None}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["quantity"] == 3
        assert result["total"] is None
