"""Ordering bounded context: order lifecycle and checkout orchestration.

Owns the Order aggregate (status state machine, tracking timeline, payment
and feedback state) and the use cases that sequence inventory reservation,
payment verification and customer notification around it.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
