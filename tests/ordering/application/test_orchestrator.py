"""Tests for the fulfillment orchestrator use cases."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.order.order import Order
from payments.verifier import sign
from protean import current_domain
from protean.exceptions import ValidationError
from shared.errors import (
    Forbidden,
    IllegalTransition,
    InsufficientStock,
    NotFound,
    PaymentGatewayError,
    PaymentVerificationFailed,
)

ADDRESS = {"street": "12 MG Road", "city": "Pune", "zip": "411001"}


def _tea(quantity=2):
    return {"product_id": "prod-tea", "name": "Masala Chai", "quantity": quantity, "unit_price": 50.0}


def _honey(quantity=1, variant_key="500g"):
    return {
        "product_id": "prod-honey",
        "variant_key": variant_key,
        "name": "Wild Honey",
        "quantity": quantity,
        "unit_price": 100.0,
    }


def _place(orchestrator, buyer, items=None, payment_method="Cash on Delivery", total=None, address=None):
    return orchestrator.place_order(
        buyer=buyer,
        items=items or [_tea(), _honey()],
        payment_method=payment_method,
        address=address or ADDRESS,
        total=total,
    )


def _order_count():
    return current_domain.repository_for(Order)._dao.query.all().total


class TestPlaceOrder:
    def test_cod_order_reserves_stock_and_notifies(self, orchestrator, buyer, ledger, dispatcher, fake_channels):
        placement = _place(orchestrator, buyer, total=200.0)

        order = placement.order
        assert placement.intent is None
        assert order.order_status == "Ordered"
        assert order.total == 200.0
        assert [step.status for step in order.timeline] == ["Ordered"]
        assert ledger.available("prod-tea") == 8
        assert ledger.available("prod-honey", "500g") == 4

        dispatcher.flush(timeout=5)
        email = fake_channels["email"].sent_messages
        assert len(email) == 1
        assert email[0]["to"] == "asha@example.com"
        assert email[0]["subject"] == f"Order & Payment Confirmation - {order.human_id}"
        assert fake_channels["sms"].sent_messages[0]["to"] == "+919800000001"

    def test_address_phone_used_for_notifications(self, orchestrator, buyer, dispatcher, fake_channels):
        _place(orchestrator, buyer, address={**ADDRESS, "phone": "+919811111111"})
        dispatcher.flush(timeout=5)
        assert fake_channels["sms"].sent_messages[0]["to"] == "+919811111111"
        assert fake_channels["whatsapp"].sent_messages[0]["to"] == "+919811111111"

    def test_online_order_opens_intent_and_waits_for_payment(
        self, orchestrator, buyer, gateway, dispatcher, fake_channels
    ):
        placement = _place(orchestrator, buyer, payment_method="Online Payment")

        assert placement.intent is not None
        assert placement.intent.amount == 200.0
        assert placement.order.payment_intent_id == placement.intent.intent_id
        assert placement.order.payment_status == "Pending"
        assert gateway.calls[-1]["receipt"] == str(placement.order.id)

        dispatcher.flush(timeout=5)
        assert fake_channels["email"].sent_messages == []

    def test_insufficient_stock_releases_earlier_lines(self, orchestrator, buyer, ledger):
        with pytest.raises(InsufficientStock) as exc_info:
            _place(orchestrator, buyer, items=[_tea(3), _honey(2, variant_key="1kg")])

        assert exc_info.value.details["product_id"] == "prod-honey"
        assert exc_info.value.details["requested"] == 2
        assert ledger.available("prod-tea") == 10
        assert ledger.available("prod-honey", "1kg") == 1
        assert _order_count() == 0

    def test_unknown_product_is_insufficient_stock(self, orchestrator, buyer):
        item = {"product_id": "prod-ghost", "name": "Ghost", "quantity": 1, "unit_price": 1.0}
        with pytest.raises(InsufficientStock):
            _place(orchestrator, buyer, items=[item])

    def test_gateway_failure_releases_stock(self, orchestrator, buyer, ledger, gateway):
        gateway.configure(should_succeed=False)
        with pytest.raises(PaymentGatewayError):
            _place(orchestrator, buyer, payment_method="Online Payment")
        assert ledger.available("prod-tea") == 10
        assert ledger.available("prod-honey", "500g") == 5
        assert _order_count() == 0

    def test_total_mismatch_rejected_before_reserving(self, orchestrator, buyer, ledger):
        with pytest.raises(ValidationError):
            _place(orchestrator, buyer, total=150.0)
        assert ledger.available("prod-tea") == 10

    def test_free_online_order_rejected_before_reserving(self, orchestrator, buyer, ledger, gateway):
        free_tea = {**_tea(1), "unit_price": 0.0}
        with pytest.raises(ValidationError) as exc_info:
            _place(orchestrator, buyer, items=[free_tea], payment_method="Online Payment")
        assert "total" in exc_info.value.messages
        assert ledger.available("prod-tea") == 10
        assert gateway.calls == []
        assert _order_count() == 0

    def test_free_cod_order_is_accepted(self, orchestrator, buyer, ledger):
        placement = _place(orchestrator, buyer, items=[{**_tea(1), "unit_price": 0.0}])
        assert placement.order.total == 0.0
        assert placement.intent is None
        assert ledger.available("prod-tea") == 9

    def test_empty_items_rejected(self, orchestrator, buyer):
        with pytest.raises(ValidationError):
            orchestrator.place_order(buyer=buyer, items=[], payment_method="Cash on Delivery", address=ADDRESS)

    def test_invalid_quantity_rejected(self, orchestrator, buyer):
        with pytest.raises(ValidationError):
            _place(orchestrator, buyer, items=[_tea(0)])

    def test_unknown_payment_method_rejected(self, orchestrator, buyer):
        with pytest.raises(ValidationError):
            _place(orchestrator, buyer, payment_method="Barter")

    def test_address_requires_city(self, orchestrator, buyer, ledger):
        with pytest.raises(ValidationError):
            _place(orchestrator, buyer, address={"street": "12 MG Road"})
        assert ledger.available("prod-tea") == 10

    def test_notification_failure_does_not_fail_checkout(self, orchestrator, buyer, fake_channels, dispatcher):
        for channel in fake_channels.values():
            channel.configure(raise_error=True)
        placement = _place(orchestrator, buyer)
        dispatcher.flush(timeout=5)
        assert placement.order.order_status == "Ordered"


class TestReleaseRetries:
    def test_release_is_retried(self, orchestrator, ledger):
        calls = []
        original = ledger.release

        def flaky(product_id, variant_key, quantity):
            calls.append(product_id)
            if len(calls) < 3:
                raise ConnectionError("ledger unavailable")
            return original(product_id, variant_key, quantity)

        ledger.release = flaky
        line = {"product_id": "prod-tea", "variant_key": None, "quantity": 1}
        assert orchestrator._release(line) is True
        assert len(calls) == 3
        assert ledger.available("prod-tea") == 11

    def test_release_gives_up_after_three_attempts(self, orchestrator, ledger):
        calls = []

        def broken(product_id, variant_key, quantity):
            calls.append(product_id)
            raise ConnectionError("ledger unavailable")

        ledger.release = broken
        line = {"product_id": "prod-tea", "variant_key": None, "quantity": 1}
        assert orchestrator._release(line) is False
        assert len(calls) == 3


class TestConfirmPayment:
    def test_valid_proof_marks_paid_and_notifies(self, orchestrator, buyer, verifier, dispatcher, fake_channels):
        placement = _place(orchestrator, buyer, payment_method="Online Payment")
        signature = sign(verifier.secret, placement.intent.intent_id, "pay_001")

        order = orchestrator.confirm_payment(str(placement.order.id), "pay_001", signature)

        assert order.payment_status == "Paid"
        assert order.payment_id == "pay_001"
        dispatcher.flush(timeout=5)
        assert "Paid" in fake_channels["email"].sent_messages[0]["body"]

    def test_invalid_proof_leaves_order_pending(self, orchestrator, buyer, dispatcher, fake_channels):
        placement = _place(orchestrator, buyer, payment_method="Online Payment")
        with pytest.raises(PaymentVerificationFailed):
            orchestrator.confirm_payment(str(placement.order.id), "pay_001", "0" * 64)

        order = orchestrator.get_order(str(placement.order.id))
        assert order.payment_status == "Pending"
        dispatcher.flush(timeout=5)
        assert fake_channels["email"].sent_messages == []

    def test_proof_for_another_intent_rejected(self, orchestrator, buyer, verifier):
        first = _place(orchestrator, buyer, items=[_tea(1)], payment_method="Online Payment")
        second = _place(orchestrator, buyer, items=[_tea(1)], payment_method="Online Payment")
        signature = sign(verifier.secret, first.intent.intent_id, "pay_001")
        with pytest.raises(PaymentVerificationFailed):
            orchestrator.confirm_payment(str(second.order.id), "pay_001", signature)

    def test_paying_twice_rejected(self, orchestrator, buyer, verifier):
        placement = _place(orchestrator, buyer, payment_method="Online Payment")
        order_id = str(placement.order.id)
        signature = sign(verifier.secret, placement.intent.intent_id, "pay_001")
        orchestrator.confirm_payment(order_id, "pay_001", signature)
        with pytest.raises(IllegalTransition):
            orchestrator.confirm_payment(order_id, "pay_001", signature)

    def test_cod_order_has_no_payment_to_confirm(self, orchestrator, buyer):
        placement = _place(orchestrator, buyer)
        with pytest.raises(IllegalTransition):
            orchestrator.confirm_payment(str(placement.order.id), "pay_001", "sig")

    def test_cancelled_order_cannot_be_paid(self, orchestrator, buyer, verifier):
        placement = _place(orchestrator, buyer, payment_method="Online Payment")
        order_id = str(placement.order.id)
        orchestrator.cancel(order_id, cancelled_by="Buyer")
        signature = sign(verifier.secret, placement.intent.intent_id, "pay_001")
        with pytest.raises(IllegalTransition):
            orchestrator.confirm_payment(order_id, "pay_001", signature)


class TestLifecycle:
    def test_transition_notifies_status_change(self, orchestrator, buyer, dispatcher, fake_channels):
        order_id = str(_place(orchestrator, buyer).order.id)
        dispatcher.flush(timeout=5)
        fake_channels["email"].reset()

        order = orchestrator.transition(order_id, "Shipped")

        assert order.order_status == "Shipped"
        dispatcher.flush(timeout=5)
        subjects = [message["subject"] for message in fake_channels["email"].sent_messages]
        assert subjects == [f"Order {order.human_id} Update: Shipped"]

    def test_same_status_sends_nothing(self, orchestrator, buyer, dispatcher, fake_channels):
        order_id = str(_place(orchestrator, buyer).order.id)
        dispatcher.flush(timeout=5)
        fake_channels["email"].reset()

        orchestrator.transition(order_id, "Ordered")

        dispatcher.flush(timeout=5)
        assert fake_channels["email"].sent_messages == []

    def test_delivery_requests_feedback(self, orchestrator, buyer, dispatcher, fake_channels):
        order_id = str(_place(orchestrator, buyer).order.id)
        dispatcher.flush(timeout=5)
        fake_channels["email"].reset()

        order = orchestrator.transition(order_id, "Delivered")

        dispatcher.flush(timeout=5)
        subjects = sorted(message["subject"] for message in fake_channels["email"].sent_messages)
        assert subjects == sorted(
            [f"Order {order.human_id} Update: Delivered", f"Did you receive order {order.human_id}?"]
        )

    def test_illegal_transition(self, orchestrator, buyer):
        order_id = str(_place(orchestrator, buyer).order.id)
        orchestrator.transition(order_id, "Delivered")
        with pytest.raises(IllegalTransition):
            orchestrator.transition(order_id, "Processing")

    def test_confirm_sets_estimate_and_notifies(self, orchestrator, buyer, dispatcher, fake_channels):
        order_id = str(_place(orchestrator, buyer).order.id)
        dispatcher.flush(timeout=5)
        fake_channels["email"].reset()

        order = orchestrator.confirm(order_id, "2026-06-20")

        assert order.order_status == "Processing"
        assert order.estimated_delivery == "2026-06-20"
        dispatcher.flush(timeout=5)
        assert fake_channels["email"].sent_messages[0]["subject"] == f"Order {order.human_id} Confirmed"

    def test_feedback_closes_order(self, orchestrator, buyer):
        order_id = str(_place(orchestrator, buyer).order.id)
        orchestrator.transition(order_id, "Delivered")
        order = orchestrator.record_feedback(order_id, "Received")
        assert order.closed is True
        assert order.order_status == "Delivered"


class TestCancel:
    def test_cancel_releases_all_lines(self, orchestrator, buyer, ledger):
        order_id = str(_place(orchestrator, buyer).order.id)
        assert ledger.available("prod-tea") == 8

        order = orchestrator.cancel(order_id, reason="Changed my mind", cancelled_by="Buyer")

        assert order.order_status == "Cancelled"
        assert order.cancelled_by == "Buyer"
        assert ledger.available("prod-tea") == 10
        assert ledger.available("prod-honey", "500g") == 5

    def test_cancel_via_status_update(self, orchestrator, buyer, ledger):
        order_id = str(_place(orchestrator, buyer).order.id)
        order = orchestrator.transition(order_id, "Cancelled")
        assert order.order_status == "Cancelled"
        assert order.cancelled_by == "Admin"
        assert ledger.available("prod-tea") == 10

    def test_cancel_twice_does_not_release_twice(self, orchestrator, buyer, ledger):
        order_id = str(_place(orchestrator, buyer).order.id)
        orchestrator.cancel(order_id)
        with pytest.raises(IllegalTransition):
            orchestrator.cancel(order_id)
        assert ledger.available("prod-tea") == 10

    def test_buyer_cannot_cancel_confirmed_order(self, orchestrator, buyer, ledger):
        order_id = str(_place(orchestrator, buyer).order.id)
        orchestrator.confirm(order_id, "2026-06-20")
        with pytest.raises(IllegalTransition):
            orchestrator.cancel(order_id, cancelled_by="Buyer")
        assert orchestrator.get_order(order_id).order_status == "Processing"
        assert ledger.available("prod-tea") == 8

    def test_cannot_cancel_delivered_order(self, orchestrator, buyer, ledger):
        order_id = str(_place(orchestrator, buyer).order.id)
        orchestrator.transition(order_id, "Delivered")
        with pytest.raises(IllegalTransition):
            orchestrator.cancel(order_id)
        assert ledger.available("prod-tea") == 8


class TestMessagesAndPurge:
    def test_send_message(self, orchestrator, buyer, dispatcher, fake_channels):
        order_id = str(_place(orchestrator, buyer).order.id)
        dispatcher.flush(timeout=5)
        fake_channels["sms"].reset()

        orchestrator.send_message(order_id, "  Your parcel left the warehouse.  ")

        dispatcher.flush(timeout=5)
        assert "Your parcel left the warehouse." in fake_channels["sms"].sent_messages[0]["body"]

    def test_empty_message_rejected(self, orchestrator, buyer):
        order_id = str(_place(orchestrator, buyer).order.id)
        with pytest.raises(ValidationError):
            orchestrator.send_message(order_id, "   ")

    def test_purge_deletes_order_without_releasing_stock(self, orchestrator, buyer, ledger):
        order_id = str(_place(orchestrator, buyer).order.id)
        orchestrator.purge(order_id, purged_by="admin-001")
        with pytest.raises(NotFound):
            orchestrator.get_order(order_id)
        assert ledger.available("prod-tea") == 8

    def test_unknown_order(self, orchestrator):
        with pytest.raises(NotFound):
            orchestrator.transition("00000000-0000-4000-8000-000000000000", "Shipped")


class TestQueries:
    def test_list_own_orders_newest_first(self, orchestrator, buyer, directory):
        first = _place(orchestrator, buyer, items=[_tea(1)]).order
        second = _place(orchestrator, buyer, items=[_tea(1)]).order
        _place(orchestrator, directory.get("buyer-002"), items=[_tea(1)])

        orders = orchestrator.list_orders(buyer)

        assert [str(order.id) for order in orders] == [str(second.id), str(first.id)]

    def test_admin_lists_all(self, orchestrator, buyer, admin, directory):
        _place(orchestrator, buyer, items=[_tea(1)])
        _place(orchestrator, directory.get("buyer-002"), items=[_tea(1)])
        assert len(orchestrator.list_orders(admin, scope="all")) == 2

    def test_buyer_cannot_list_all(self, orchestrator, buyer):
        with pytest.raises(Forbidden):
            orchestrator.list_orders(buyer, scope="all")

    def test_invalid_scope(self, orchestrator, admin):
        with pytest.raises(ValidationError):
            orchestrator.list_orders(admin, scope="everyone")

    def test_stats(self, orchestrator, buyer):
        first = _place(orchestrator, buyer, items=[_tea(1)]).order
        _place(orchestrator, buyer, items=[_tea(1)])
        orchestrator.transition(str(first.id), "Shipped")

        repo = current_domain.repository_for(Order)
        old = _place(orchestrator, buyer, items=[_tea(1)]).order
        old.created_at = datetime.now(UTC) - timedelta(days=2)
        repo.add(old)

        assert orchestrator.stats() == {"total_orders": 3, "pending_orders": 2, "today_orders": 2}
