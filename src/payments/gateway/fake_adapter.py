"""Configurable fake payment gateway for development and testing.

This adapter simulates a real payment gateway without any external calls.
It can be configured at runtime to succeed or fail, making it useful for
automated tests with predictable outcomes and for development without real
gateway credentials.
"""

from uuid import uuid4

from payments.gateway.port import PaymentGateway, PaymentIntent
from shared.errors import PaymentGatewayError


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_intent(self, amount: float, currency: str, receipt: str | None = None) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
            }
        )
        if not self.should_succeed:
            raise PaymentGatewayError(self.failure_reason)
        return PaymentIntent(
            intent_id=f"order_fake_{uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
            gateway_status="created",
        )

    def reset(self) -> None:
        """Clear recorded calls and restore default behavior."""
        self.should_succeed = True
        self.failure_reason = "Gateway unavailable"
        self.calls.clear()
