"""Unit tests for customer and product reference resolution."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.delivery.dtos import CustomerRecord, DeliveryOrder, OrderLine
from modules.delivery.exceptions import GatewayError
from modules.delivery.resolvers import ReferenceResolver, extract_reference_id

pytestmark = pytest.mark.unit


@pytest.fixture()
def resolver():
    return ReferenceResolver.from_payloads(
        customers=[
            {"id": 7, "name": "Sara Al-Qahtani", "phone": "+966 55 234 5678"},
            {"id": "8", "name": "Khalid Al-Otaibi", "address": "Tahlia St, Jeddah"},
        ],
        products=[
            {"id": 3, "arabic_name": "كبسة دجاج", "english_name": "Chicken Kabsa", "price": "35.00"},
            {"id": "4", "english_name": "Falafel Plate", "price": "12.00"},
        ],
    )


class TestExtractReferenceId:
    @pytest.mark.parametrize(
        "reference, expected",
        [
            ("Customer #7", "7"),
            ("Product #12", "12"),
            ("Customer # 7", "7"),
            ("7", "7"),
            (7, 7),
            (None, None),
            ("walk-in", "walk-in"),
        ],
    )
    def test_extract(self, reference, expected):
        assert extract_reference_id(reference) == expected


class TestCustomerResolution:
    @pytest.mark.parametrize("reference", ["Customer #7", "7", 7, "07"])
    def test_numeric_table_id_matches_any_form(self, resolver, reference):
        assert resolver.resolve_customer_name(reference) == "Sara Al-Qahtani"

    @pytest.mark.parametrize("reference", ["Customer #8", "8", 8])
    def test_string_table_id_matches_any_form(self, resolver, reference):
        assert resolver.resolve_customer_name(reference) == "Khalid Al-Otaibi"

    def test_unknown_reference_round_trips(self, resolver):
        assert resolver.resolve_customer_name("Customer #99") == "Customer #99"

    def test_empty_table_round_trips(self):
        assert ReferenceResolver().resolve_customer_name("Customer #7") == "Customer #7"

    def test_order_name_used_when_table_has_no_match(self, resolver):
        order = DeliveryOrder(id=1, customer=99, customer_name="Walk-in Guest")
        assert resolver.customer_name(order) == "Walk-in Guest"

    def test_table_wins_over_fallback_name_on_order(self, resolver):
        order = DeliveryOrder(id=1, customer=7, customer_name="Customer #7")
        assert resolver.customer_name(order) == "Sara Al-Qahtani"

    def test_order_without_customer(self, resolver):
        assert resolver.customer_name(DeliveryOrder(id=1)) == ""

    def test_address_and_phone(self, resolver):
        order = DeliveryOrder(id=1, customer="Customer #8")
        assert resolver.customer_address(order) == "Tahlia St, Jeddah"
        assert resolver.customer_phone(DeliveryOrder(id=2, customer=7)) == "+966 55 234 5678"

    def test_order_address_wins(self, resolver):
        order = DeliveryOrder(id=1, customer=8, delivery_address="Gate 3")
        assert resolver.customer_address(order) == "Gate 3"


class TestProductResolution:
    def test_name_prefers_arabic_then_english(self, resolver):
        assert resolver.product_name(OrderLine(product="Product #3")) == "كبسة دجاج"
        assert resolver.product_name(OrderLine(product=4)) == "Falafel Plate"

    def test_unknown_product_falls_back(self, resolver):
        assert resolver.product_name(OrderLine(product=50)) == "Product #50"
        assert resolver.product_name(OrderLine(product=50, product_name="Tea")) == "Tea"

    def test_price_from_line_then_table(self, resolver):
        assert resolver.product_price(OrderLine(product=3)) == Decimal("35.00")
        line = OrderLine(product=3, unit_price=Decimal("30.00"))
        assert resolver.product_price(line) == Decimal("30.00")
        assert resolver.product_price(OrderLine(product=50)) == Decimal("0")


class TestRefresh:
    def test_refresh_loads_tables(self, make_gateway):
        gateway = make_gateway()
        gateway.customers = [{"id": 1, "name": "Noura"}]
        resolver = ReferenceResolver()

        assert resolver.refresh(gateway)
        assert resolver.resolve_customer_name("Customer #1") == "Noura"

    def test_failed_refresh_keeps_previous_tables(self, make_gateway):
        gateway = make_gateway()

        def offline():
            raise GatewayError("offline")

        gateway.list_customers = offline
        resolver = ReferenceResolver([CustomerRecord(id=1, name="Noura")])

        assert resolver.refresh(gateway) is False
        assert resolver.error == "offline"
        assert resolver.resolve_customer_name(1) == "Noura"

    def test_malformed_records_are_skipped(self):
        resolver = ReferenceResolver.from_payloads(
            customers=[{"name": "No id"}, {"id": 2, "name": "Maha"}], products=[]
        )
        assert resolver.resolve_customer_name(2) == "Maha"
