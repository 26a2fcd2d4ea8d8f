"""Tests for Order aggregate creation and structure."""

import json

import pytest
from ordering.order.events import OrderPlaced
from ordering.order.order import (
    FeedbackStatus,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    generate_human_id,
)
from protean.exceptions import ValidationError


def _make_order(**overrides):
    defaults = {
        "buyer_id": "buyer-001",
        "items_data": [
            {"product_id": "prod-tea", "name": "Masala Chai", "quantity": 2, "unit_price": 50.0},
            {
                "product_id": "prod-honey",
                "variant_key": "500g",
                "name": "Wild Honey",
                "quantity": 1,
                "unit_price": 100.0,
            },
        ],
        "payment_method": PaymentMethod.CASH_ON_DELIVERY.value,
        "delivery_address": {
            "street": "12 MG Road",
            "city": "Pune",
            "state": "MH",
            "zip": "411001",
            "phone": "+919800000009",
        },
        "total": 200.0,
    }
    defaults.update(overrides)
    return Order.create(**defaults)


class TestOrderCreation:
    def test_create_sets_buyer_and_total(self):
        order = _make_order()
        assert str(order.buyer_id) == "buyer-001"
        assert order.total == 200.0

    def test_create_sets_initial_statuses(self):
        order = _make_order()
        assert order.order_status == OrderStatus.ORDERED.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.feedback_status == FeedbackStatus.PENDING.value
        assert order.closed is False

    def test_create_records_single_completed_step(self):
        order = _make_order()
        assert len(order.tracking_steps) == 1
        step = order.tracking_steps[0]
        assert step.status == OrderStatus.ORDERED.value
        assert step.completed is True
        assert step.sequence == 1

    def test_create_populates_items_in_line_order(self):
        order = _make_order()
        lines = order.ordered_items
        assert [item.product_id for item in lines] == ["prod-tea", "prod-honey"]
        assert lines[0].variant_key is None
        assert lines[1].variant_key == "500g"
        assert lines[0].line_total == 100.0

    def test_create_sets_delivery_address(self):
        order = _make_order()
        assert order.delivery_address.city == "Pune"
        assert order.delivery_address.phone == "+919800000009"

    def test_create_generates_human_id(self):
        order = _make_order()
        assert order.human_id.startswith("#ORD-")

    def test_create_uses_given_ids(self):
        order = _make_order(order_id="f6a1b2c3-0000-4000-8000-000000000001", human_id="#ORD-1-1")
        assert str(order.id) == "f6a1b2c3-0000-4000-8000-000000000001"
        assert order.human_id == "#ORD-1-1"

    def test_total_computed_when_omitted(self):
        order = _make_order(total=None)
        assert order.total == 200.0

    def test_total_within_tolerance_accepted(self):
        order = _make_order(total=200.005)
        assert order.total == 200.005

    def test_total_mismatch_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _make_order(total=150.0)
        assert "total" in exc_info.value.messages

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _make_order(items_data=[], total=None)
        assert "items" in exc_info.value.messages

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            _make_order(
                items_data=[{"product_id": "p", "name": "x", "quantity": 0, "unit_price": 10.0}],
                total=None,
            )

    def test_address_requires_street_and_city(self):
        with pytest.raises(ValidationError):
            _make_order(delivery_address={"street": "12 MG Road"})

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            _make_order(payment_method="Barter")

    def test_create_raises_order_placed(self):
        order = _make_order()
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.human_id == order.human_id
        assert event.total == 200.0
        assert len(json.loads(event.items)) == 2


class TestSnapshot:
    def test_snapshot_is_plain_data(self):
        order = _make_order()
        snapshot = order.snapshot()
        assert snapshot["order_id"] == str(order.id)
        assert snapshot["items"][1] == {
            "product_id": "prod-honey",
            "variant_key": "500g",
            "name": "Wild Honey",
            "quantity": 1,
            "unit_price": 100.0,
        }
        assert snapshot["delivery_address"]["city"] == "Pune"
        assert snapshot["order_status"] == "Ordered"


class TestHumanId:
    def test_format(self):
        prefix, millis, suffix = generate_human_id().split("-")
        assert prefix == "#ORD"
        assert millis.isdigit()
        assert 0 <= int(suffix) <= 999
