"""Status changed template: sent on every admin status transition."""

from notifications.event import NotificationKind
from notifications.templates.base import OrderTemplate, greeting


class StatusChangedTemplate(OrderTemplate):
    kind = NotificationKind.STATUS_CHANGED.value

    def email(self, context: dict) -> dict:
        human_id = context["human_id"]
        status = context["order_status"]
        lines = [f"Your order {human_id} is now: {status}."]
        if status not in ("Delivered", "Cancelled"):
            lines.append(f"Estimated delivery: {context['estimated_delivery']}")
        return {
            "subject": f"Order {human_id} Update: {status}",
            "body": "\n".join([greeting(context), "", *lines, "", f"Track your order: {context['tracking_url']}"]),
            "html_body": self.html_page(context, f"Order {status}", lines),
        }

    def sms(self, context: dict) -> str:
        return (
            f"{context['store_name']}: order {context['human_id']} is now {context['order_status']}. "
            f"Track: {context['tracking_url']}"
        )

    def messaging(self, context: dict) -> str:
        return "\n".join(
            [
                "*Order Update*",
                f"Order: *{context['human_id']}*",
                f"Status: *{context['order_status']}*",
                f"Track: {context['tracking_url']}",
            ]
        )
