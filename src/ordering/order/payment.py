"""Verified payment recording: command and handler.

Signature verification happens before this command is issued; the handler
only records the outcome on the order.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)
    payment_id = String(required=True, max_length=255)


@ordering.command_handler(part_of=Order)
class MarkOrderPaidHandler:
    @handle(MarkOrderPaid)
    def mark_order_paid(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_paid(command.payment_id)
        repo.add(order)
