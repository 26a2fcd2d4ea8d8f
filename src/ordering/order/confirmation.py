"""Order confirmation: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)
    estimated_delivery = String(required=True, max_length=10)  # ISO date


@ordering.command_handler(part_of=Order)
class ConfirmOrderHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm(command.estimated_delivery)
        repo.add(order)
