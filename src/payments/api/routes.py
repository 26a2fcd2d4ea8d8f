"""FastAPI routes for payment intents and proof verification."""

from fastapi import APIRouter

from payments.api.schemas import (
    CreateIntentRequest,
    IntentResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from payments.verifier import get_verifier

payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/intent", status_code=201, response_model=IntentResponse)
def create_intent(body: CreateIntentRequest) -> IntentResponse:
    """Open a payable intent on the gateway."""
    intent = get_verifier().create_intent(body.amount, receipt=body.receipt)
    return IntentResponse(**intent.to_dict())


@payment_router.post("/verify", response_model=VerifyPaymentResponse)
def verify_payment(body: VerifyPaymentRequest) -> VerifyPaymentResponse:
    """Check a client-submitted payment signature."""
    ok = get_verifier().verify(body.intent_id, body.payment_id, body.signature)
    return VerifyPaymentResponse(ok=ok)
