"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class DeliveryAddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    zip: str | None = None
    phone: str | None = None
    whatsapp: str | None = None


class OrderItemSchema(BaseModel):
    product_id: str
    variant_key: str | None = None
    name: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)


class TrackingStepSchema(BaseModel):
    status: str
    timestamp: datetime
    completed: bool


class PaymentIntentSchema(BaseModel):
    intent_id: str
    amount: float
    currency: str


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    items: list[OrderItemSchema] = Field(min_length=1)
    payment_method: str
    delivery_address: DeliveryAddressSchema
    total: float | None = Field(default=None, ge=0)


class ConfirmOrderRequest(BaseModel):
    estimated_delivery: date


class UpdateStatusRequest(BaseModel):
    status: str


class RecordFeedbackRequest(BaseModel):
    status: str


class ConfirmPaymentRequest(BaseModel):
    payment_id: str
    signature: str


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class SendMessageRequest(BaseModel):
    message: str = Field(min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    id: str
    human_id: str
    buyer_id: str
    items: list[OrderItemSchema]
    total: float
    payment_method: str
    payment_status: str
    payment_intent_id: str | None = None
    payment_id: str | None = None
    order_status: str
    tracking_steps: list[TrackingStepSchema]
    delivery_address: DeliveryAddressSchema | None = None
    feedback_status: str
    closed: bool
    estimated_delivery: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        address = order.delivery_address
        return cls(
            id=str(order.id),
            human_id=order.human_id,
            buyer_id=str(order.buyer_id),
            items=[OrderItemSchema(**line) for line in order.line_snapshots()],
            total=order.total,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            payment_intent_id=order.payment_intent_id,
            payment_id=order.payment_id,
            order_status=order.order_status,
            tracking_steps=[
                TrackingStepSchema(status=step.status, timestamp=step.timestamp, completed=bool(step.completed))
                for step in order.timeline
            ],
            delivery_address=DeliveryAddressSchema(
                street=address.street,
                city=address.city,
                state=address.state,
                zip=address.zip,
                phone=address.phone,
                whatsapp=address.whatsapp,
            )
            if address
            else None,
            feedback_status=order.feedback_status,
            closed=bool(order.closed),
            estimated_delivery=order.estimated_delivery,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PlaceOrderResponse(OrderResponse):
    payment_intent: PaymentIntentSchema | None = None


class OrderStatsResponse(BaseModel):
    total_orders: int
    pending_orders: int
    today_orders: int


class StatusResponse(BaseModel):
    status: str = "ok"
