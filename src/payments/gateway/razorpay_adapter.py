"""Razorpay-style payment gateway adapter.

Opens an order (the gateway's name for a payable intent) through the REST
API using HTTP basic auth with the key id/secret pair. Amounts travel in
minor units.
"""

import httpx
import structlog

from payments.gateway.port import PaymentGateway, PaymentIntent, to_minor_units
from shared.errors import PaymentGatewayError

logger = structlog.get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    """Production gateway adapter backed by httpx."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        api_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.client = httpx.Client(
            base_url=api_url.rstrip("/"),
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    def create_intent(self, amount: float, currency: str, receipt: str | None = None) -> PaymentIntent:
        payload = {"amount": to_minor_units(amount), "currency": currency}
        if receipt:
            payload["receipt"] = receipt

        try:
            response = self.client.post("/orders", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Gateway rejected intent",
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
            )
            raise PaymentGatewayError(
                "Payment gateway rejected the request",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Gateway unreachable", error=str(exc))
            raise PaymentGatewayError("Payment gateway unreachable") from exc

        data = response.json()
        logger.info("Payment intent created", intent_id=data.get("id"), amount=amount, currency=currency)
        return PaymentIntent(
            intent_id=data["id"],
            amount=data.get("amount", to_minor_units(amount)) / 100,
            currency=data.get("currency", currency),
            gateway_status=data.get("status"),
        )

    def close(self) -> None:
        self.client.close()
