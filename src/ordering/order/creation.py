"""Order creation: command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class CreateOrder:
    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    delivery_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=50)
    total = Float()
    payment_intent_id = String(max_length=255)


@ordering.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        delivery_address = (
            json.loads(command.delivery_address)
            if isinstance(command.delivery_address, str)
            else command.delivery_address
        )

        order = Order.create(
            buyer_id=command.buyer_id,
            items_data=items_data,
            payment_method=command.payment_method,
            delivery_address=delivery_address,
            total=command.total,
            order_id=command.order_id,
            payment_intent_id=command.payment_intent_id,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
