"""Delivery feedback: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordFeedback:
    order_id = Identifier(required=True)
    feedback_status = String(required=True, max_length=20)


@ordering.command_handler(part_of=Order)
class RecordFeedbackHandler:
    @handle(RecordFeedback)
    def record_feedback(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_feedback(command.feedback_status)
        repo.add(order)
