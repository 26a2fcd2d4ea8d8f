"""Request dependencies: caller identity and role checks.

The external auth layer forwards the authenticated user id in the
``X-User-Id`` header; profiles are resolved through the buyer directory.
"""

from fastapi import Depends, Header

from ordering.buyer import Buyer, get_directory
from ordering.checkout.orchestrator import FulfillmentOrchestrator
from shared.errors import Forbidden, Unauthorized


def current_buyer(x_user_id: str | None = Header(default=None)) -> Buyer:
    if not x_user_id:
        raise Unauthorized("Authentication required")
    buyer = get_directory().get(x_user_id)
    if buyer is None:
        raise Unauthorized("Unknown user")
    return buyer


def require_admin(buyer: Buyer = Depends(current_buyer)) -> Buyer:
    if not buyer.is_admin:
        raise Forbidden("Admin role required")
    return buyer


def get_orchestrator() -> FulfillmentOrchestrator:
    return FulfillmentOrchestrator()
