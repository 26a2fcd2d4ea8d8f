"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and RazorpayGateway
(production) without changing the verifier or the checkout flow.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentIntent:
    """A payable session opened on the gateway before the client pays."""

    intent_id: str
    amount: float
    currency: str
    gateway_status: str | None = None

    def to_dict(self) -> dict:
        return {"intent_id": self.intent_id, "amount": self.amount, "currency": self.currency}


def to_minor_units(amount: float) -> int:
    """Gateways take amounts in the currency's smallest unit (paise, cents)."""
    return int(round(amount * 100))


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(self, amount: float, currency: str, receipt: str | None = None) -> PaymentIntent:
        """Open a payable intent for ``amount`` on the gateway.

        Raises ``PaymentGatewayError`` when the gateway cannot be reached or
        refuses the request.
        """
        ...
