"""Fulfillment orchestrator: the checkout and admin use cases.

Sequences the inventory ledger, payment verifier, order state machine and
notification dispatcher:

    place_order:     validate → reserve every line → (online) open intent
                     → create order → (COD) notify
    confirm_payment: verify signature → mark paid → notify
    transition:      state machine check → persist → notify
    cancel:          cancel → release stock → notify

There is no cross-resource transaction. Consistency comes from ordering
(reserve before commit, verify before marking paid) and from compensating
stock releases when a later step fails. Notifications are scheduled on the
dispatcher and never affect the outcome of a use case.
"""

import json
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from inventory.ledger import InventoryLedger, get_ledger
from notifications.context import build_context
from notifications.dispatcher import NotificationDispatcher, get_dispatcher
from notifications.event import NotificationEvent, NotificationKind
from notifications.recipients import resolve_recipient
from ordering.buyer import Buyer, BuyerDirectory, get_directory
from ordering.order.cancellation import CancelOrder, PurgeOrder
from ordering.order.confirmation import ConfirmOrder
from ordering.order.creation import CreateOrder
from ordering.order.feedback import RecordFeedback
from ordering.order.order import (
    TOTAL_TOLERANCE,
    CancelledBy,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    parse_status,
)
from ordering.order.payment import MarkOrderPaid
from ordering.order.status import TransitionOrderStatus
from payments.gateway import PaymentIntent
from payments.verifier import PaymentVerifier, get_verifier
from shared.config import Settings, get_settings
from shared.errors import (
    Forbidden,
    IllegalTransition,
    InsufficientStock,
    NotFound,
    PaymentVerificationFailed,
)

logger = structlog.get_logger(__name__)

RELEASE_ATTEMPTS = 3

SCOPE_SELF = "self"
SCOPE_ALL = "all"


@dataclass(frozen=True)
class Placement:
    """Result of a checkout: the order, plus the intent to pay for online orders."""

    order: Order
    intent: PaymentIntent | None = None


def _validate_lines(items: list[dict]) -> list[dict]:
    if not items:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    lines = []
    errors = []
    for number, item in enumerate(items, start=1):
        quantity = item.get("quantity")
        unit_price = item.get("unit_price")
        if not item.get("product_id"):
            errors.append(f"Line {number}: product_id is required")
        if not item.get("name"):
            errors.append(f"Line {number}: name is required")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            errors.append(f"Line {number}: quantity must be a positive integer")
        if not isinstance(unit_price, (int, float)) or isinstance(unit_price, bool) or unit_price < 0:
            errors.append(f"Line {number}: unit_price must be a non-negative number")
        lines.append(
            {
                "product_id": str(item.get("product_id")),
                "variant_key": item.get("variant_key") or None,
                "name": item.get("name"),
                "quantity": quantity,
                "unit_price": unit_price,
            }
        )
    if errors:
        raise ValidationError({"items": errors})
    return lines


class FulfillmentOrchestrator:
    def __init__(
        self,
        ledger: InventoryLedger | None = None,
        verifier: PaymentVerifier | None = None,
        dispatcher: NotificationDispatcher | None = None,
        directory: BuyerDirectory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.ledger = ledger or get_ledger()
        self.verifier = verifier or get_verifier()
        self.dispatcher = dispatcher or get_dispatcher()
        self.directory = directory or get_directory()
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def place_order(
        self,
        buyer: Buyer,
        items: list[dict],
        payment_method: str,
        address: dict,
        total: float | None = None,
    ) -> Placement:
        lines = _validate_lines(items)
        if payment_method not in {method.value for method in PaymentMethod}:
            raise ValidationError({"payment_method": [f"Unsupported payment method '{payment_method}'"]})
        address = address or {}
        missing = [field for field in ("street", "city") if not address.get(field)]
        if missing:
            raise ValidationError({"delivery_address": [f"{field} is required" for field in missing]})

        computed = sum(line["quantity"] * line["unit_price"] for line in lines)
        if total is not None and not math.isclose(total, computed, abs_tol=TOTAL_TOLERANCE):
            raise ValidationError({"total": [f"Total {total} does not match sum of items {computed:.2f}"]})
        total = round(computed, 2) if total is None else total
        if payment_method == PaymentMethod.ONLINE.value and total <= 0:
            raise ValidationError({"total": ["Online payment requires a positive total"]})

        reserved = self._reserve_all(lines)

        order_id = str(uuid4())
        intent = None
        try:
            if payment_method == PaymentMethod.ONLINE.value:
                intent = self.verifier.create_intent(total, receipt=order_id)
            current_domain.process(
                CreateOrder(
                    order_id=order_id,
                    buyer_id=buyer.id,
                    items=json.dumps(lines),
                    delivery_address=json.dumps(address),
                    payment_method=payment_method,
                    total=total,
                    payment_intent_id=intent.intent_id if intent else None,
                ),
                asynchronous=False,
            )
        except Exception:
            logger.warning("Order creation failed; releasing reserved stock", buyer_id=buyer.id)
            self._release_all(reserved)
            raise

        order = self.get_order(order_id)
        logger.info(
            "Order placed",
            order_id=order_id,
            human_id=order.human_id,
            buyer_id=buyer.id,
            total=total,
            payment_method=payment_method,
        )

        # Online orders are announced once their payment is verified.
        if payment_method == PaymentMethod.CASH_ON_DELIVERY.value:
            self._notify(order, NotificationKind.ORDER_PLACED)
        return Placement(order=order, intent=intent)

    def _reserve_all(self, lines: list[dict]) -> list[dict]:
        reserved: list[dict] = []
        for line in lines:
            try:
                ok = self.ledger.reserve(line["product_id"], line["variant_key"], line["quantity"])
            except Exception:
                self._release_all(reserved)
                raise
            if not ok:
                self._release_all(reserved)
                logger.info(
                    "Insufficient stock",
                    product_id=line["product_id"],
                    variant_key=line["variant_key"],
                    requested=line["quantity"],
                )
                raise InsufficientStock(
                    f"Insufficient stock for {line['name']}",
                    product_id=line["product_id"],
                    variant_key=line["variant_key"],
                    requested=line["quantity"],
                )
            reserved.append(line)
        return reserved

    def _release_all(self, lines: list[dict], order_id: str | None = None) -> None:
        for line in reversed(lines):
            self._release(line, order_id=order_id)

    def _release(self, line: dict, order_id: str | None = None) -> bool:
        """Compensating increment, retried before flagging for reconciliation."""
        error = None
        for attempt in range(1, RELEASE_ATTEMPTS + 1):
            try:
                if self.ledger.release(line["product_id"], line["variant_key"], line["quantity"]):
                    return True
                error = "inventory record not found"
                break
            except Exception as exc:
                error = str(exc)
                logger.warning(
                    "Stock release attempt failed",
                    product_id=line["product_id"],
                    attempt=attempt,
                    error=error,
                )
        logger.error(
            "Stock release failed",
            order_id=order_id,
            product_id=line["product_id"],
            variant_key=line["variant_key"],
            quantity=line["quantity"],
            error=error,
            needs_reconciliation=True,
        )
        return False

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def confirm_payment(self, order_id: str, payment_id: str, signature: str) -> Order:
        order = self.get_order(order_id)
        if order.payment_method != PaymentMethod.ONLINE.value or not order.payment_intent_id:
            raise IllegalTransition("Order has no online payment to confirm", order_id=order_id)
        if order.payment_status != PaymentStatus.PENDING.value:
            raise IllegalTransition(f"Payment already {order.payment_status}", order_id=order_id)
        if order.order_status == OrderStatus.CANCELLED.value:
            raise IllegalTransition("Cancelled orders cannot be paid", order_id=order_id)

        if not self.verifier.verify(order.payment_intent_id, payment_id, signature):
            logger.warning("Payment verification failed", order_id=order_id, payment_id=payment_id)
            raise PaymentVerificationFailed(
                "Payment could not be verified. Please retry or contact support.",
                order_id=order_id,
            )

        current_domain.process(MarkOrderPaid(order_id=order_id, payment_id=payment_id), asynchronous=False)
        order = self.get_order(order_id)
        logger.info("Payment confirmed", order_id=order_id, payment_id=payment_id)
        self._notify(order, NotificationKind.ORDER_PLACED)
        return order

    # -------------------------------------------------------------------
    # Admin lifecycle
    # -------------------------------------------------------------------
    def transition(self, order_id: str, status: str) -> Order:
        target = parse_status(status)
        if target == OrderStatus.CANCELLED:
            return self.cancel(order_id, reason=None, cancelled_by=CancelledBy.ADMIN.value)

        self.get_order(order_id)
        changed = current_domain.process(
            TransitionOrderStatus(order_id=order_id, status=target.value),
            asynchronous=False,
        )
        order = self.get_order(order_id)
        if changed:
            logger.info("Order status changed", order_id=order_id, status=target.value)
            self._notify(order, NotificationKind.STATUS_CHANGED)
            if target == OrderStatus.DELIVERED:
                self._notify(order, NotificationKind.FEEDBACK_REQUESTED)
        return order

    def confirm(self, order_id: str, estimated_delivery: str) -> Order:
        self.get_order(order_id)
        current_domain.process(
            ConfirmOrder(order_id=order_id, estimated_delivery=str(estimated_delivery)),
            asynchronous=False,
        )
        order = self.get_order(order_id)
        logger.info("Order confirmed", order_id=order_id, estimated_delivery=order.estimated_delivery)
        self._notify(order, NotificationKind.ORDER_CONFIRMED)
        return order

    def record_feedback(self, order_id: str, feedback_status: str) -> Order:
        self.get_order(order_id)
        current_domain.process(
            RecordFeedback(order_id=order_id, feedback_status=feedback_status),
            asynchronous=False,
        )
        order = self.get_order(order_id)
        logger.info("Feedback recorded", order_id=order_id, feedback_status=feedback_status, closed=order.closed)
        return order

    def cancel(
        self,
        order_id: str,
        reason: str | None = None,
        cancelled_by: str = CancelledBy.ADMIN.value,
    ) -> Order:
        """Cancel and return the order's stock. Buyers may only cancel while Ordered."""
        order = self.get_order(order_id)
        lines = order.line_snapshots()
        current_domain.process(
            CancelOrder(order_id=order_id, reason=reason, cancelled_by=cancelled_by),
            asynchronous=False,
        )
        self._release_all(lines, order_id=order_id)

        order = self.get_order(order_id)
        logger.info("Order cancelled", order_id=order_id, cancelled_by=cancelled_by, reason=reason)
        self._notify(order, NotificationKind.STATUS_CHANGED)
        return order

    def purge(self, order_id: str, purged_by: str) -> None:
        self.get_order(order_id)
        current_domain.process(PurgeOrder(order_id=order_id, purged_by=purged_by), asynchronous=False)

    def send_message(self, order_id: str, message: str) -> None:
        if not message or not message.strip():
            raise ValidationError({"message": ["Message cannot be empty"]})
        order = self.get_order(order_id)
        self._notify(order, NotificationKind.CUSTOM_MESSAGE, message=message.strip())

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id: str) -> Order:
        try:
            return current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError:
            raise NotFound(f"Order {order_id} not found", order_id=str(order_id)) from None

    def list_orders(self, buyer: Buyer, scope: str = SCOPE_SELF, limit: int = 100) -> list[Order]:
        """Newest first. ``scope="all"`` is reserved for administrators."""
        query = current_domain.repository_for(Order)._dao.query
        if scope == SCOPE_ALL:
            if not buyer.is_admin:
                raise Forbidden("Listing all orders requires the admin role")
        elif scope == SCOPE_SELF:
            query = query.filter(buyer_id=buyer.id)
        else:
            raise ValidationError({"scope": [f"Scope must be '{SCOPE_SELF}' or '{SCOPE_ALL}'"]})
        return list(query.order_by("-created_at").limit(limit).all().items)

    def stats(self) -> dict:
        """Dashboard counters: all orders, orders awaiting confirmation, orders placed today."""
        query = current_domain.repository_for(Order)._dao.query
        start_of_day = datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
        return {
            "total_orders": query.all().total,
            "pending_orders": query.filter(order_status=OrderStatus.ORDERED.value).all().total,
            "today_orders": query.filter(created_at__gte=start_of_day).all().total,
        }

    # -------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------
    def _notify(self, order: Order, kind: NotificationKind, **extra) -> None:
        try:
            buyer = self.directory.get(str(order.buyer_id))
            snapshot = order.snapshot()
            context = build_context(
                snapshot,
                self.settings,
                buyer_name=buyer.name if buyer else None,
                **extra,
            )
            event = NotificationEvent(
                kind=kind.value,
                context=context,
                recipient=resolve_recipient(buyer, snapshot["delivery_address"]),
            )
            self.dispatcher.submit(event)
        except Exception as exc:
            # Notification problems never fail the use case.
            logger.error(
                "Failed to schedule notification",
                order_id=str(order.id),
                kind=kind.value,
                error=str(exc),
            )
