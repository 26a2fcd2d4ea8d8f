"""Order aggregate (CQRS): the canonical order record and its state machine.

The Order is the only authority allowed to change the order status, the
tracking timeline and the feedback state. Legality of every status change
is decided by ``can_transition`` over a single table.

State Machine:
    ORDERED → PROCESSING → SHIPPED → OUT_FOR_DELIVERY → DELIVERED
    Skipping forward is allowed; moving backward never is.
    {ORDERED, PROCESSING, SHIPPED, OUT_FOR_DELIVERY} → CANCELLED
    DELIVERED and CANCELLED are terminal.

``closed`` is an audit flag set once the buyer confirms receipt of a
delivered order. It is not a status.
"""

import json
import math
import random
import time
from datetime import UTC, date, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    FeedbackRecorded,
    OrderCancelled,
    OrderClosed,
    OrderConfirmed,
    OrderPlaced,
    OrderPurged,
    OrderStatusChanged,
    PaymentConfirmed,
)
from shared.errors import IllegalTransition

TOTAL_TOLERANCE = 0.01


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    ORDERED = "Ordered"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "Cash on Delivery"
    ONLINE = "Online Payment"


class PaymentStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"


class FeedbackStatus(Enum):
    PENDING = "Pending"
    RECEIVED = "Received"
    NOT_RECEIVED = "NotReceived"


class CancelledBy(Enum):
    BUYER = "Buyer"
    ADMIN = "Admin"


# Canonical forward sequence; Cancelled sits outside it.
FULFILLMENT_SEQUENCE = [
    OrderStatus.ORDERED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]

# State machine transition map. A status may "transition" to itself
# (a no-op) unless it is terminal.
_VALID_TRANSITIONS = {
    OrderStatus.ORDERED: {
        OrderStatus.ORDERED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.SHIPPED: {
        OrderStatus.SHIPPED,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.OUT_FOR_DELIVERY: {
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def can_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    """Single authority on whether ``current`` may move to ``target``."""
    return OrderStatus(target) in _VALID_TRANSITIONS[OrderStatus(current)]


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError({"status": [f"Unknown status '{value}'. Expected one of: {allowed}"]}) from None


def generate_human_id() -> str:
    """Display code shown to buyers, e.g. ``#ORD-1718000000000-42``."""
    return f"#ORD-{int(time.time() * 1000)}-{random.randint(0, 999)}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class DeliveryAddress:
    """Where the order goes, copied from the buyer at checkout.

    The per-order phone and messaging numbers take precedence over the
    buyer's profile when notifications are sent.
    """

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip = String(max_length=20)
    phone = String(max_length=30)
    whatsapp = String(max_length=30)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line of the order with name and price frozen at checkout."""

    product_id = String(required=True, max_length=64)
    variant_key = String(max_length=100)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_number = Integer(required=True, min_value=1)

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


@ordering.entity(part_of="Order")
class TrackingStep:
    """One entry of the append-only status timeline."""

    status = String(required=True, choices=OrderStatus)
    timestamp = DateTime(required=True)
    completed = Boolean(default=False)
    sequence = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    human_id = String(required=True, max_length=40, unique=True)
    buyer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total = Float(required=True, min_value=0.0)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_intent_id = String(max_length=255)
    payment_id = String(max_length=255)
    order_status = String(choices=OrderStatus, default=OrderStatus.ORDERED.value)
    tracking_steps = HasMany(TrackingStep)
    delivery_address = ValueObject(DeliveryAddress)
    feedback_status = String(choices=FeedbackStatus, default=FeedbackStatus.PENDING.value)
    closed = Boolean(default=False)
    estimated_delivery = String(max_length=10)  # ISO date string
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        buyer_id,
        items_data: list[dict],
        payment_method: str,
        delivery_address: dict,
        total: float | None = None,
        order_id: str | None = None,
        human_id: str | None = None,
        payment_intent_id: str | None = None,
    ):
        """Create a new order from checkout data.

        Args:
            buyer_id: The buyer placing the order.
            items_data: List of dicts with product_id, variant_key, name,
                        quantity, unit_price.
            payment_method: "Cash on Delivery" or "Online Payment".
            delivery_address: Dict with street, city, state, zip, phone, whatsapp.
            total: Client-stated total. Must match the sum of the lines
                   within 0.01; computed when omitted.
        """
        if not items_data:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        computed = sum(item["quantity"] * item["unit_price"] for item in items_data)
        if total is None:
            total = round(computed, 2)
        elif not math.isclose(total, computed, abs_tol=TOTAL_TOLERANCE):
            raise ValidationError({"total": [f"Total {total} does not match sum of items {computed:.2f}"]})

        address_fields = ("street", "city", "state", "zip", "phone", "whatsapp")
        address = {key: delivery_address.get(key) for key in address_fields if delivery_address.get(key)}

        now = datetime.now(UTC)
        kwargs = {"id": order_id} if order_id else {}
        order = cls(
            **kwargs,
            human_id=human_id or generate_human_id(),
            buyer_id=str(buyer_id),
            total=total,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            payment_intent_id=payment_intent_id,
            order_status=OrderStatus.ORDERED.value,
            delivery_address=DeliveryAddress(**address),
            feedback_status=FeedbackStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for line_number, item in enumerate(items_data, start=1):
            order.add_items(
                OrderItem(
                    product_id=str(item["product_id"]),
                    variant_key=item.get("variant_key") or None,
                    name=item["name"],
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    line_number=line_number,
                )
            )
        order._append_step(OrderStatus.ORDERED, now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                human_id=order.human_id,
                buyer_id=str(buyer_id),
                items=json.dumps(order.line_snapshots()),
                total=total,
                payment_method=payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def status(self) -> OrderStatus:
        return OrderStatus(self.order_status)

    @property
    def ordered_items(self) -> list:
        return sorted(self.items or [], key=lambda item: item.line_number)

    @property
    def timeline(self) -> list:
        return sorted(self.tracking_steps or [], key=lambda step: step.sequence)

    def line_snapshots(self) -> list[dict]:
        return [
            {
                "product_id": item.product_id,
                "variant_key": item.variant_key,
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for item in self.ordered_items
        ]

    def snapshot(self) -> dict:
        """Plain-data copy of the order, safe to hand to other threads."""
        address = self.delivery_address
        return {
            "order_id": str(self.id),
            "human_id": self.human_id,
            "buyer_id": str(self.buyer_id),
            "items": self.line_snapshots(),
            "total": self.total,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "order_status": self.order_status,
            "feedback_status": self.feedback_status,
            "closed": bool(self.closed),
            "estimated_delivery": self.estimated_delivery,
            "created_at": self.created_at,
            "delivery_address": {
                "street": address.street,
                "city": address.city,
                "state": address.state,
                "zip": address.zip,
                "phone": address.phone,
                "whatsapp": address.whatsapp,
            }
            if address
            else {},
        }

    # -------------------------------------------------------------------
    # Timeline helpers
    # -------------------------------------------------------------------
    def _append_step(self, status: OrderStatus, at: datetime) -> None:
        self.add_tracking_steps(
            TrackingStep(
                status=status.value,
                timestamp=at,
                completed=True,
                sequence=len(self.tracking_steps or []) + 1,
            )
        )

    def _complete_pending_steps(self) -> None:
        for step in self.tracking_steps or []:
            if not step.completed:
                step.completed = True
                self.add_tracking_steps(step)

    def _assert_can_transition(self, target: OrderStatus) -> None:
        if not can_transition(self.status, target):
            raise IllegalTransition(
                f"Cannot transition from {self.order_status} to {target.value}",
                current_status=self.order_status,
                target_status=target.value,
            )

    def _advance_to(self, target: OrderStatus, at: datetime) -> None:
        """Record every status up to ``target`` that the timeline lacks."""
        self._complete_pending_steps()
        recorded = {step.status for step in self.tracking_steps or []}
        start = FULFILLMENT_SEQUENCE.index(self.status) + 1
        end = FULFILLMENT_SEQUENCE.index(target) + 1
        for status in FULFILLMENT_SEQUENCE[start:end]:
            if status.value not in recorded:
                self._append_step(status, at)
        self.order_status = target.value
        self.updated_at = at

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def transition(self, target_status: str) -> bool:
        """Move the order to ``target_status``.

        Returns False when the order already has that status (nothing is
        recorded). Cancellation should go through ``cancel``.
        """
        target = parse_status(target_status)
        self._assert_can_transition(target)
        if target == self.status:
            return False
        if target == OrderStatus.CANCELLED:
            self.cancel(reason=None, cancelled_by=CancelledBy.ADMIN.value)
            return True

        previous = self.order_status
        now = datetime.now(UTC)
        self._advance_to(target, now)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )
        return True

    def confirm(self, estimated_delivery: str | date | None) -> None:
        """Accept the order: Ordered → Processing with a delivery estimate."""
        if self.status != OrderStatus.ORDERED:
            raise IllegalTransition(
                f"Only Ordered orders can be confirmed (current: {self.order_status})",
                current_status=self.order_status,
                target_status=OrderStatus.PROCESSING.value,
            )
        if isinstance(estimated_delivery, str):
            try:
                estimated_delivery = date.fromisoformat(estimated_delivery)
            except ValueError:
                raise ValidationError(
                    {"estimated_delivery": ["Estimated delivery must be an ISO date (YYYY-MM-DD)"]}
                ) from None
        if isinstance(estimated_delivery, datetime):
            estimated_delivery = estimated_delivery.date()
        if estimated_delivery is None:
            raise ValidationError({"estimated_delivery": ["Estimated delivery is required"]})

        now = datetime.now(UTC)
        self.estimated_delivery = estimated_delivery.isoformat()
        self._advance_to(OrderStatus.PROCESSING, now)
        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                estimated_delivery=self.estimated_delivery,
                confirmed_at=now,
            )
        )

    def cancel(self, reason: str | None, cancelled_by: str) -> None:
        """Cancel from any non-terminal status. Stock release is the caller's job.

        Buyers may only cancel before the store starts processing the order.
        """
        self._assert_can_transition(OrderStatus.CANCELLED)
        if cancelled_by == CancelledBy.BUYER.value and self.status != OrderStatus.ORDERED:
            raise IllegalTransition(
                f"Orders can only be cancelled by the buyer while {OrderStatus.ORDERED.value}",
                current_status=self.order_status,
            )
        previous = self.order_status
        now = datetime.now(UTC)
        self._complete_pending_steps()
        self._append_step(OrderStatus.CANCELLED, now)
        self.order_status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.updated_at = now
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous,
                reason=reason,
                cancelled_by=cancelled_by,
                items=json.dumps(self.line_snapshots()),
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def mark_paid(self, payment_id: str) -> None:
        """Record a verified payment. Only a pending, live order can be paid."""
        if self.payment_status != PaymentStatus.PENDING.value:
            raise IllegalTransition(
                f"Payment already {self.payment_status}",
                payment_status=self.payment_status,
            )
        if self.status == OrderStatus.CANCELLED:
            raise IllegalTransition("Cancelled orders cannot be paid", current_status=self.order_status)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_id = payment_id
        self.updated_at = now
        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                payment_id=payment_id,
                amount=self.total,
                paid_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Feedback
    # -------------------------------------------------------------------
    def record_feedback(self, feedback_status: str) -> None:
        """Record whether the buyer received a delivered order.

        ``Received`` closes the order; closing is permanent.
        """
        allowed = (FeedbackStatus.RECEIVED.value, FeedbackStatus.NOT_RECEIVED.value)
        if feedback_status not in allowed:
            raise ValidationError({"feedback_status": [f"Feedback must be one of: {', '.join(allowed)}"]})
        if self.status != OrderStatus.DELIVERED:
            raise IllegalTransition(
                f"Feedback can only be recorded for delivered orders (current: {self.order_status})",
                current_status=self.order_status,
            )

        now = datetime.now(UTC)
        self.feedback_status = feedback_status
        self.updated_at = now
        self.raise_(
            FeedbackRecorded(
                order_id=str(self.id),
                feedback_status=feedback_status,
                recorded_at=now,
            )
        )
        if feedback_status == FeedbackStatus.RECEIVED.value and not self.closed:
            self.closed = True
            self.raise_(OrderClosed(order_id=str(self.id), closed_at=now))

    # -------------------------------------------------------------------
    # Purge
    # -------------------------------------------------------------------
    def purge(self, purged_by: str) -> None:
        """Drop all child records ahead of an irreversible delete."""
        if self.items:
            self.remove_items(list(self.items))
        if self.tracking_steps:
            self.remove_tracking_steps(list(self.tracking_steps))
        self.raise_(
            OrderPurged(
                order_id=str(self.id),
                human_id=self.human_id,
                purged_by=purged_by,
                purged_at=datetime.now(UTC),
            )
        )
