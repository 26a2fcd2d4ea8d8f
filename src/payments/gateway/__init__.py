"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- RazorpayGateway for production (PAYMENT_GATEWAY=razorpay)
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway, PaymentIntent
from shared.config import get_settings

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        settings = get_settings()
        if settings.payment_gateway == "razorpay":
            from payments.gateway.razorpay_adapter import RazorpayGateway

            _current_gateway = RazorpayGateway(
                key_id=settings.payment_key_id or "",
                key_secret=settings.payment_key_secret or "",
                api_url=settings.payment_api_url,
                timeout=settings.payment_timeout_seconds,
            )
        else:
            _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None


__all__ = ["PaymentGateway", "PaymentIntent", "get_gateway", "set_gateway", "reset_gateway"]
