"""Admin status transitions: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class TransitionOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@ordering.command_handler(part_of=Order)
class TransitionOrderStatusHandler:
    @handle(TransitionOrderStatus)
    def transition_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        changed = order.transition(command.status)
        if changed:
            repo.add(order)
        return changed
