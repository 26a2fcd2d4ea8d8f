"""Pydantic request/response schemas for the Payments API.

These are external contracts (anti-corruption layer), separate from the
verifier's own types.
"""

from pydantic import BaseModel, Field


class CreateIntentRequest(BaseModel):
    amount: float = Field(gt=0)
    receipt: str | None = None


class IntentResponse(BaseModel):
    intent_id: str
    amount: float
    currency: str


class VerifyPaymentRequest(BaseModel):
    intent_id: str
    payment_id: str
    signature: str


class VerifyPaymentResponse(BaseModel):
    ok: bool
