"""FastAPI routes for the Ordering domain: checkout and order lifecycle."""

from fastapi import APIRouter, Depends

from ordering.api.dependencies import current_buyer, get_orchestrator, require_admin
from ordering.api.schemas import (
    CancelOrderRequest,
    ConfirmOrderRequest,
    ConfirmPaymentRequest,
    OrderResponse,
    OrderStatsResponse,
    PaymentIntentSchema,
    PlaceOrderRequest,
    PlaceOrderResponse,
    RecordFeedbackRequest,
    SendMessageRequest,
    StatusResponse,
    UpdateStatusRequest,
)
from ordering.buyer import Buyer
from ordering.checkout.orchestrator import FulfillmentOrchestrator
from ordering.order.order import CancelledBy
from shared.errors import Forbidden

order_router = APIRouter(prefix="/orders", tags=["orders"])


def _owned_order(orchestrator: FulfillmentOrchestrator, order_id: str, buyer: Buyer):
    order = orchestrator.get_order(order_id)
    if str(order.buyer_id) != str(buyer.id) and not buyer.is_admin:
        raise Forbidden("Order belongs to another buyer")
    return order


# ---------------------------------------------------------------------------
# Buyer routes
# ---------------------------------------------------------------------------
@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
def place_order(
    body: PlaceOrderRequest,
    buyer: Buyer = Depends(current_buyer),
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> PlaceOrderResponse:
    """Check out: reserve stock and create the order."""
    placement = orchestrator.place_order(
        buyer=buyer,
        items=[item.model_dump() for item in body.items],
        payment_method=body.payment_method,
        address=body.delivery_address.model_dump(),
        total=body.total,
    )
    response = OrderResponse.from_order(placement.order).model_dump()
    if placement.intent:
        response["payment_intent"] = PaymentIntentSchema(**placement.intent.to_dict())
    return PlaceOrderResponse(**response)


@order_router.get("", response_model=list[OrderResponse])
def list_orders(
    scope: str = "self",
    limit: int = 100,
    buyer: Buyer = Depends(current_buyer),
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> list[OrderResponse]:
    orders = orchestrator.list_orders(buyer, scope=scope, limit=limit)
    return [OrderResponse.from_order(order) for order in orders]


@order_router.get("/stats", response_model=OrderStatsResponse)
def order_stats(
    admin: Buyer = Depends(require_admin),  # noqa: ARG001
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> OrderStatsResponse:
    return OrderStatsResponse(**orchestrator.stats())


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    buyer: Buyer = Depends(current_buyer),
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    return OrderResponse.from_order(_owned_order(orchestrator, order_id, buyer))


@order_router.post("/{order_id}/payment/confirm", response_model=OrderResponse)
def confirm_payment(
    order_id: str,
    body: ConfirmPaymentRequest,
    buyer: Buyer = Depends(current_buyer),
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    """Submit the gateway's payment proof for an online order."""
    _owned_order(orchestrator, order_id, buyer)
    order = orchestrator.confirm_payment(order_id, body.payment_id, body.signature)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    buyer: Buyer = Depends(current_buyer),
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    """Buyers may cancel until the store confirms; admins until delivery."""
    _owned_order(orchestrator, order_id, buyer)
    cancelled_by = CancelledBy.ADMIN if buyer.is_admin else CancelledBy.BUYER
    order = orchestrator.cancel(order_id, reason=body.reason, cancelled_by=cancelled_by.value)
    return OrderResponse.from_order(order)


# ---------------------------------------------------------------------------
# Admin routes
# ---------------------------------------------------------------------------
@order_router.put("/{order_id}/confirm", response_model=OrderResponse)
def confirm_order(
    order_id: str,
    body: ConfirmOrderRequest,
    admin: Buyer = Depends(require_admin),  # noqa: ARG001
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    order = orchestrator.confirm(order_id, body.estimated_delivery.isoformat())
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
def update_status(
    order_id: str,
    body: UpdateStatusRequest,
    admin: Buyer = Depends(require_admin),  # noqa: ARG001
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    order = orchestrator.transition(order_id, body.status)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/feedback", response_model=OrderResponse)
def record_feedback(
    order_id: str,
    body: RecordFeedbackRequest,
    admin: Buyer = Depends(require_admin),  # noqa: ARG001
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    order = orchestrator.record_feedback(order_id, body.status)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/notify/message", status_code=202, response_model=StatusResponse)
def send_message(
    order_id: str,
    body: SendMessageRequest,
    admin: Buyer = Depends(require_admin),  # noqa: ARG001
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> StatusResponse:
    orchestrator.send_message(order_id, body.message)
    return StatusResponse(status="scheduled")


@order_router.delete("/{order_id}", response_model=StatusResponse)
def purge_order(
    order_id: str,
    admin: Buyer = Depends(require_admin),
    orchestrator: FulfillmentOrchestrator = Depends(get_orchestrator),
) -> StatusResponse:
    """Permanently delete an order. Irreversible."""
    orchestrator.purge(order_id, purged_by=admin.id)
    return StatusResponse(status="purged")
