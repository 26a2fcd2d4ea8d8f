"""Error taxonomy surfaced to callers of the fulfillment use cases.

Every error carries a stable machine-readable ``kind`` and the HTTP status
the API layer answers with. Bad input detected by the domain model is raised
as Protean's ``ValidationError`` and reported under the ``validation_error``
kind; lookups of unknown orders raise Protean's ``ObjectNotFoundError``.
"""


class FulfillmentError(Exception):
    kind = "fulfillment_error"
    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InsufficientStock(FulfillmentError):
    kind = "insufficient_stock"
    status_code = 400


class IllegalTransition(FulfillmentError):
    kind = "illegal_transition"
    status_code = 409


class PaymentVerificationFailed(FulfillmentError):
    kind = "payment_verification_failed"
    status_code = 402


class PaymentGatewayError(FulfillmentError):
    kind = "payment_gateway_error"
    status_code = 502


class NotFound(FulfillmentError):
    kind = "not_found"
    status_code = 404


class Unauthorized(FulfillmentError):
    kind = "unauthorized"
    status_code = 401


class Forbidden(FulfillmentError):
    kind = "forbidden"
    status_code = 403
