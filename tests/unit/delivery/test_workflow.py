"""Unit tests for order classification and the driver-facing workflow."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from modules.delivery.constants import Action, Bucket, MyOrdersView
from modules.delivery.dtos import DeliveryOrder
from modules.delivery.exceptions import ActionNotAllowed, GatewayError, OrderUpdateFailed
from modules.delivery.store import OrderStore
from modules.delivery.workflow import (
    DeliveryWorkflow,
    available_actions,
    classify,
    commission,
    delivery_status_label,
    elapsed_delivery_minutes,
    status_label,
)

pytestmark = pytest.mark.unit

DRIVER = "Ali"


def _order(**fields) -> DeliveryOrder:
    data = {"id": 1, "delivery_option": "delivery", "total": "100.00"}
    data.update(fields)
    return DeliveryOrder.model_validate(data)


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassify:
    @pytest.mark.parametrize("option", ["pickup", "", "dine-in"])
    def test_non_delivery_orders_are_excluded(self, option):
        assert classify(_order(delivery_option=option), DRIVER) is None

    def test_delivery_option_is_case_insensitive(self):
        assert classify(_order(delivery_option="Delivery"), DRIVER) is Bucket.UNCLAIMED

    def test_no_driver_is_unclaimed(self):
        assert classify(_order(), DRIVER) is Bucket.UNCLAIMED

    def test_blank_driver_is_unclaimed(self):
        assert classify(_order(assigned_driver=""), DRIVER) is Bucket.UNCLAIMED

    def test_unclaimed_wins_over_completed_flags(self):
        order = _order(is_delivered=True, delivery_status="delivered")
        assert classify(order, DRIVER) is Bucket.UNCLAIMED

    @pytest.mark.parametrize(
        "fields",
        [{"delivery_status": "delivering"}, {"status": "delivering"}],
    )
    def test_mine_and_delivering_is_in_progress(self, fields):
        order = _order(assigned_driver=DRIVER, **fields)
        assert classify(order, DRIVER) is Bucket.IN_PROGRESS

    def test_in_progress_wins_over_delivered_flag_when_unpaid(self):
        order = _order(
            assigned_driver=DRIVER, delivery_status="delivering", is_delivered=True
        )
        assert classify(order, DRIVER) is Bucket.IN_PROGRESS

    def test_mine_delivering_but_paid_is_completed(self):
        order = _order(
            assigned_driver=DRIVER,
            delivery_status="delivering",
            is_paid=True,
            is_delivered=True,
        )
        assert classify(order, DRIVER) is Bucket.COMPLETED

    @pytest.mark.parametrize(
        "fields",
        [
            {"delivery_status": "delivered"},
            {"is_delivered": True},
            {"status": "completed"},
        ],
    )
    def test_completed_signals(self, fields):
        order = _order(assigned_driver="Omar", **fields)
        assert classify(order, DRIVER) is Bucket.COMPLETED

    def test_other_drivers_active_order(self):
        order = _order(assigned_driver="Omar", delivery_status="delivering")
        assert classify(order, DRIVER) is Bucket.READY_UNCLAIMED_BY_OTHER

    def test_driver_match_is_exact(self):
        order = _order(assigned_driver="ali", delivery_status="delivering")
        assert classify(order, DRIVER) is Bucket.READY_UNCLAIMED_BY_OTHER

    def test_classification_is_deterministic(self):
        order = _order(assigned_driver=DRIVER, delivery_status="delivering")
        results = {classify(order, DRIVER) for _ in range(20)}
        assert results == {Bucket.IN_PROGRESS}

    def test_actions_per_bucket(self):
        assert available_actions(Bucket.UNCLAIMED) == (Action.START_DELIVERY,)
        assert available_actions(Bucket.IN_PROGRESS) == (Action.COMPLETE_DELIVERY,)
        assert available_actions(Bucket.COMPLETED) == ()
        assert available_actions(Bucket.READY_UNCLAIMED_BY_OTHER) == ()
        assert available_actions(None) == ()


# ---------------------------------------------------------------------------
# Display values
# ---------------------------------------------------------------------------


class TestDisplayValues:
    def test_elapsed_minutes_is_floored(self, clock):
        now = clock()
        order = _order(delivery_start_time=now - timedelta(minutes=12, seconds=59))
        assert elapsed_delivery_minutes(order, now) == 12

    def test_elapsed_uses_end_time_when_present(self, clock):
        now = clock()
        start = now - timedelta(hours=2)
        order = _order(
            delivery_start_time=start, delivery_end_time=start + timedelta(minutes=38)
        )
        assert elapsed_delivery_minutes(order, now) == 38

    def test_elapsed_without_start_is_none(self, clock):
        assert elapsed_delivery_minutes(_order(), clock()) is None

    def test_commission_is_ten_percent(self):
        assert commission(Decimal("150.00")) == Decimal("15.00")
        assert commission("99.95") == Decimal("10.00")
        assert commission(0) == Decimal("0.00")

    @pytest.mark.parametrize(
        "status, label",
        [
            ("pending", "Pending"),
            ("delivering", "Delivering"),
            ("delivered", "Delivered"),
            ("completed", "Delivered"),
            ("cancelled", "Cancelled"),
            ("PENDING", "Pending"),
            ("on-hold", "Ready for delivery"),
            (None, "Ready for delivery"),
        ],
    )
    def test_status_label(self, status, label):
        assert status_label(status) == label

    def test_delivery_status_label(self):
        assert delivery_status_label(_order(is_delivered=True)) == "Delivered"
        assert (
            delivery_status_label(_order(delivery_status="delivering")) == "Delivering"
        )
        assert delivery_status_label(_order()) == "Ready for delivery"


# ---------------------------------------------------------------------------
# DeliveryWorkflow
# ---------------------------------------------------------------------------


@pytest.fixture()
def board_store(make_gateway, make_payload, clock):
    gateway = make_gateway(
        [
            make_payload(42, createdAt="2024-05-14T09:00:00Z"),
            make_payload(43, deliveryOption="pickup"),
            make_payload(
                44,
                assignedDriver=DRIVER,
                deliveryStatus="delivering",
                createdAt="2024-05-14T10:00:00Z",
                total="80.00",
            ),
            make_payload(
                45,
                assignedDriver=DRIVER,
                deliveryStatus="delivered",
                isDelivered=True,
                isPaid=True,
                createdAt="2024-05-13T10:00:00Z",
            ),
            make_payload(46, assignedDriver="Omar", deliveryStatus="delivering"),
            make_payload(
                47,
                customer="Customer #9",
                deliveryAddress="Olaya St, Riyadh",
                createdAt="2024-05-14T11:00:00Z",
                total="20.00",
            ),
        ]
    )
    store = OrderStore(gateway, clock=clock)
    assert store.fetch_orders()
    return store


@pytest.fixture()
def workflow(board_store, clock):
    return DeliveryWorkflow(board_store, DRIVER, clock=clock)


class TestBoard:
    def test_only_delivery_orders_appear(self, workflow):
        ids = {card.order_id for card in workflow.board()}
        assert ids == {"42", "44", "45", "46", "47"}

    def test_classify_orders_groups_every_eligible_order_once(self, workflow):
        buckets = workflow.classify_orders()
        assert [o.key for o in buckets[Bucket.UNCLAIMED]] == ["42", "47"]
        assert [o.key for o in buckets[Bucket.IN_PROGRESS]] == ["44"]
        assert [o.key for o in buckets[Bucket.COMPLETED]] == ["45"]
        assert [o.key for o in buckets[Bucket.READY_UNCLAIMED_BY_OTHER]] == ["46"]

    def test_card_carries_display_values(self, workflow):
        card = next(c for c in workflow.board() if c.order_id == "44")
        assert card.bucket is Bucket.IN_PROGRESS
        assert card.actions == (Action.COMPLETE_DELIVERY,)
        assert card.commission == Decimal("8.00")
        assert card.customer_name == "Customer #7"
        assert card.delivery_status_label == "Delivering"

    def test_requires_driver_identity(self, board_store):
        with pytest.raises(ValueError):
            DeliveryWorkflow(board_store, "  ")


class TestMyOrders:
    def test_all_tab_is_my_unpaid_or_unclaimed(self, workflow):
        ids = [c.order_id for c in workflow.my_orders(MyOrdersView.ALL)]
        assert ids == ["47", "44", "42"]

    def test_pending_tab_excludes_delivered(self, workflow):
        ids = [c.order_id for c in workflow.my_orders("pending")]
        assert "45" not in ids
        assert set(ids) == {"42", "44", "47"}

    def test_delivering_tab(self, workflow):
        assert [c.order_id for c in workflow.my_orders("delivering")] == ["44"]

    def test_delivered_tab_requires_paid(self, workflow):
        assert [c.order_id for c in workflow.my_orders("delivered")] == ["45"]

    def test_limit_for_home_screen(self, workflow):
        assert len(workflow.my_orders(limit=2)) == 2


class TestAllOrders:
    def test_search_by_id_customer_or_address(self, workflow):
        assert [c.order_id for c in workflow.all_orders(search="olaya")] == ["47"]
        assert [c.order_id for c in workflow.all_orders(search="42")] == ["42"]
        assert {c.order_id for c in workflow.all_orders(search="customer #9")} == {
            "47"
        }

    def test_sort_by_total_ascending(self, workflow):
        cards = workflow.all_orders(sort_key="total", descending=False)
        totals = [c.order.total for c in cards]
        assert totals == sorted(totals)

    def test_unknown_sort_key_rejected(self, workflow):
        with pytest.raises(ValueError):
            workflow.all_orders(sort_key="customer")


class TestStartDelivery:
    def test_claims_unclaimed_order(self, workflow, board_store, clock):
        updated = workflow.start_delivery(42)

        assert updated.assigned_driver == DRIVER
        assert updated.delivery_status == "delivering"
        assert updated.status == "pending"
        assert updated.delivery_start_time == clock()
        assert board_store.get_order("42").assigned_driver == DRIVER

        payload = board_store.gateway.calls[-1][2]
        assert payload == {
            "assigned_driver": DRIVER,
            "delivery_status": "delivering",
            "status": "pending",
            "delivery_start_time": clock(),
        }

    def test_claimed_order_moves_to_in_progress(self, workflow):
        workflow.start_delivery("42")
        buckets = workflow.classify_orders()
        assert "42" in [o.key for o in buckets[Bucket.IN_PROGRESS]]

    @pytest.mark.parametrize("order_id", ["44", "45", "46", "43", "999"])
    def test_only_unclaimed_orders_can_start(self, workflow, board_store, order_id):
        calls_before = len(board_store.gateway.calls)
        with pytest.raises(ActionNotAllowed):
            workflow.start_delivery(order_id)
        assert len(board_store.gateway.calls) == calls_before

    def test_second_start_while_in_flight_is_rejected(self, workflow, board_store):
        gateway = board_store.gateway
        original_update = gateway.update_order
        reentrant = []

        def update_and_retry(order_id, payload):
            assert workflow.is_starting(order_id)
            with pytest.raises(ActionNotAllowed):
                workflow.start_delivery(order_id)
            reentrant.append(str(order_id))
            return original_update(order_id, payload)

        gateway.update_order = update_and_retry
        workflow.start_delivery(42)

        assert reentrant == ["42"]
        assert not workflow.is_starting(42)

    def test_failed_start_leaves_order_unclaimed(self, workflow, board_store):
        board_store.gateway.fail_update_order = GatewayError("offline")
        with pytest.raises(OrderUpdateFailed):
            workflow.start_delivery(42)

        assert board_store.get_order(42).assigned_driver is None
        assert not workflow.is_starting(42)

    def test_completed_order_offers_no_mutation(self, workflow, board_store):
        with pytest.raises(ActionNotAllowed):
            workflow.start_delivery(45)
        with pytest.raises(ActionNotAllowed):
            workflow.open_collection(45)
        assert board_store.get_order(45).is_paid


class TestOpenCollection:
    def test_opens_for_in_progress_order(self, workflow):
        session = workflow.open_collection(44)
        assert session.order.key == "44"
        assert session.amount == "80.00"

    def test_refuses_unclaimed_order(self, workflow):
        with pytest.raises(ActionNotAllowed):
            workflow.open_collection(42)

    def test_close_clears_in_flight_markers(self, workflow):
        workflow._starting.add("42")
        workflow.close()
        assert not workflow.is_starting(42)
