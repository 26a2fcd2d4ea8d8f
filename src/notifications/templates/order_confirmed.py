"""Order confirmed template: sent when the store accepts the order."""

from notifications.event import NotificationKind
from notifications.templates.base import OrderTemplate, greeting


class OrderConfirmedTemplate(OrderTemplate):
    kind = NotificationKind.ORDER_CONFIRMED.value

    def email(self, context: dict) -> dict:
        human_id = context["human_id"]
        lines = [
            f"Your order {human_id} has been confirmed and is being processed.",
            f"Estimated delivery: {context['estimated_delivery']}",
        ]
        return {
            "subject": f"Order {human_id} Confirmed",
            "body": "\n".join([greeting(context), "", *lines, "", f"Track your order: {context['tracking_url']}"]),
            "html_body": self.html_page(context, "Order Confirmed", lines),
        }

    def sms(self, context: dict) -> str:
        return (
            f"{context['store_name']}: order {context['human_id']} confirmed. "
            f"Est. delivery {context['estimated_delivery']}. Track: {context['tracking_url']}"
        )

    def messaging(self, context: dict) -> str:
        return "\n".join(
            [
                "*Order Confirmed*",
                f"Order: *{context['human_id']}*",
                f"Estimated delivery: *{context['estimated_delivery']}*",
                f"Track: {context['tracking_url']}",
            ]
        )
