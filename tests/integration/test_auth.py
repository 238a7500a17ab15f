"""Integration tests for JWT authentication.

Validates:
  - /health is public (plain Django view, no DRF).
  - Protected DRF endpoints return 401 without or with a bad token.
  - A token obtained from /api/v1/auth/token/ identifies the driver.
"""

import pytest

pytestmark = pytest.mark.integration


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestProtectedEndpoints:
    @pytest.mark.parametrize(
        "path", ["/api/v1/me", "/api/v1/orders/", "/api/v1/payments/"]
    )
    def test_no_token_returns_401(self, api_client, path):
        response = api_client.get(path)
        assert response.status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert "Bearer" in response.get("WWW-Authenticate", "")


class TestDriverIdentity:
    def test_token_obtain_and_me(self, api_client, driver_user):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "ali", "password": "testpass123"},
            format="json",
        )
        assert response.status_code == 200
        access = response.data["access"]

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        response = api_client.get("/api/v1/me")

        assert response.status_code == 200
        assert response.data == {"username": "ali", "driver": "Ali", "roles": []}

    def test_wrong_password_rejected(self, api_client, driver_user):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "ali", "password": "nope"},
            format="json",
        )
        assert response.status_code == 401

    def test_driver_falls_back_to_username(self, api_client, django_user_model):
        user = django_user_model.objects.create_user(username="omar", password="x")
        api_client.force_authenticate(user=user)

        response = api_client.get("/api/v1/me")

        assert response.data["driver"] == "omar"
