"""Domain events for the Order aggregate.

Events are immutable facts recorded in the event store as the order's
audit trail.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A buyer's checkout produced a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    human_id = String(required=True)
    buyer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    total = Float(required=True)
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderConfirmed:
    """The store accepted the order and committed to a delivery date."""

    __version__ = 1

    order_id = Identifier(required=True)
    estimated_delivery = String(required=True)
    confirmed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentConfirmed:
    """A verified online payment was recorded against the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = String(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class FeedbackRecorded:
    __version__ = 1

    order_id = Identifier(required=True)
    feedback_status = String(required=True)
    recorded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderClosed:
    """The buyer confirmed receipt of a delivered order."""

    __version__ = 1

    order_id = Identifier(required=True)
    closed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_by = String(required=True)
    items = Text(required=True)  # JSON: lines whose stock is released
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPurged:
    """An administrator permanently deleted the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    human_id = String(required=True)
    purged_by = String(required=True)
    purged_at = DateTime(required=True)
