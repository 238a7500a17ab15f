import pytest

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_phone_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "customer_phone": "+966 50 123 4567"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "123 4567" not in result["customer_phone"]
        assert "***MASKED***" in result["customer_phone"]

    def test_phone_inside_text_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "notes": "call +966-55-234-5678 at the gate"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "234-5678" not in result["notes"]
        assert result["notes"].endswith("at the gate")

    def test_password_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_authorization_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "Authorization: eyJhbGciOi"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "eyJhbGciOi" not in result["header"]

    def test_non_sensitive_data_unchanged(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order.updated", "order_id": 42, "total": "150.00"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_id"] == 42
        assert result["total"] == "150.00"
        assert result["event"] == "order.updated"
