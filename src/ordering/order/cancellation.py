"""Order cancellation and purge: commands and handlers."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(required=True, max_length=50)


@ordering.command(part_of="Order")
class PurgeOrder:
    order_id = Identifier(required=True)
    purged_by = String(required=True, max_length=50)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(
            reason=command.reason,
            cancelled_by=command.cancelled_by,
        )
        repo.add(order)

    @handle(PurgeOrder)
    def purge_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        human_id = order.human_id
        order.purge(purged_by=command.purged_by)
        # Persist child removals and the audit event, then drop the row.
        repo.add(order)
        repo._dao.delete(order)
        logger.warning(
            "Order purged",
            order_id=str(command.order_id),
            human_id=human_id,
            purged_by=command.purged_by,
        )
