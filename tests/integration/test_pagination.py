"""Integration tests for standardized pagination."""

from __future__ import annotations

import pytest

from modules.customers.models import Customer

pytestmark = pytest.mark.integration


@pytest.fixture()
def customer_batch():
    Customer.objects.bulk_create(
        Customer(name=f"Customer {idx:03d}", phone=f"+966 50 000 {idx:04d}")
        for idx in range(1, 61)
    )


class TestPagination:
    def test_default_page_size(self, auth_client, customer_batch):
        response = auth_client.get("/api/v1/customers/")
        assert response.status_code == 200
        assert response.data["count"] == 60
        assert len(response.data["results"]) == 50
        assert response.data["next"] is not None
        assert response.data["previous"] is None

    def test_custom_page_size(self, auth_client, customer_batch):
        response = auth_client.get("/api/v1/customers/?page_size=25&page=3")
        assert response.status_code == 200
        assert len(response.data["results"]) == 10
        assert response.data["next"] is None

    def test_max_page_size(self, auth_client, customer_batch):
        response = auth_client.get("/api/v1/customers/?page_size=1000")
        assert response.status_code == 200
        assert len(response.data["results"]) == 60
        assert response.data["next"] is None
