"""Payment proof verification.

The client reports "I paid" with the gateway's payment id and a signature.
The signature is the hex HMAC-SHA256 of ``"<intent_id>|<payment_id>"`` keyed
by the gateway secret that only the server and the gateway hold. An order is
never marked Paid unless ``verify`` accepts that signature.
"""

import hashlib
import hmac

import structlog
from protean.exceptions import ValidationError

from payments.gateway import PaymentGateway, PaymentIntent, get_gateway
from shared.config import get_settings

logger = structlog.get_logger(__name__)


def sign(secret: str, intent_id: str, payment_id: str) -> str:
    """Compute the signature the gateway attaches to a successful payment."""
    message = f"{intent_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class PaymentVerifier:
    def __init__(self, secret: str | None, gateway: PaymentGateway, currency: str = "INR") -> None:
        self.secret = secret or ""
        self.gateway = gateway
        self.currency = currency

    def create_intent(self, amount: float, receipt: str | None = None) -> PaymentIntent:
        if amount <= 0:
            raise ValidationError({"amount": ["Payment amount must be positive"]})
        return self.gateway.create_intent(amount, self.currency, receipt=receipt)

    def verify(self, intent_id: str, payment_id: str, signature: str) -> bool:
        """Return True iff ``signature`` matches; never raises."""
        if not self.secret:
            logger.warning("Payment secret not configured; rejecting signature", intent_id=intent_id)
            return False
        if not intent_id or not payment_id or not signature:
            return False
        try:
            expected = sign(self.secret, intent_id, payment_id)
            valid = hmac.compare_digest(expected, signature)
        except (TypeError, ValueError, UnicodeEncodeError):
            valid = False

        if not valid:
            logger.warning("Payment signature mismatch", intent_id=intent_id, payment_id=payment_id)
        return valid


_current_verifier: PaymentVerifier | None = None


def get_verifier() -> PaymentVerifier:
    global _current_verifier
    if _current_verifier is None:
        settings = get_settings()
        _current_verifier = PaymentVerifier(
            secret=settings.payment_key_secret,
            gateway=get_gateway(),
            currency=settings.currency,
        )
    return _current_verifier


def set_verifier(verifier: PaymentVerifier) -> None:
    global _current_verifier
    _current_verifier = verifier


def reset_verifier() -> None:
    global _current_verifier
    _current_verifier = None
