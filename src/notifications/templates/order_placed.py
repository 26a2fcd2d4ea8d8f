"""Order placed template: the invoice sent once an order is committed."""

from notifications.event import NotificationKind
from notifications.templates.base import OrderTemplate, greeting, item_lines, money


class OrderPlacedTemplate(OrderTemplate):
    kind = NotificationKind.ORDER_PLACED.value

    def email(self, context: dict) -> dict:
        human_id = context["human_id"]
        total = money(context["total"], context["currency"])
        summary = [
            f"Thank you for your order {human_id}.",
            f"Payment method: {context['payment_method']}",
            f"Payment status: {context['payment_label']}",
            f"Estimated delivery: {context['estimated_delivery']}",
        ]
        text = "\n".join(
            [
                greeting(context),
                "",
                *summary,
                "",
                "Items:",
                *item_lines(context),
                f"Total: {total}",
                "",
                f"Track your order: {context['tracking_url']}",
                "",
                f"Thank you for shopping with {context['store_name']}!",
            ]
        )
        return {
            "subject": f"Order & Payment Confirmation - {human_id}",
            "body": text,
            "html_body": self.html_page(context, "Order & Payment Confirmation", summary, with_invoice=True),
        }

    def sms(self, context: dict) -> str:
        return (
            f"{context['store_name']}: order {context['human_id']} placed. "
            f"Total {money(context['total'], context['currency'])}, payment {context['payment_label']}. "
            f"Est. delivery {context['estimated_delivery']}. Track: {context['tracking_url']}"
        )

    def messaging(self, context: dict) -> str:
        return "\n".join(
            [
                "*Order Placed*",
                f"Order: *{context['human_id']}*",
                "Items:",
                *item_lines(context, bullet="  - "),
                f"Total: *{money(context['total'], context['currency'])}*",
                f"Payment: {context['payment_label']}",
                f"Estimated delivery: {context['estimated_delivery']}",
                f"Track: {context['tracking_url']}",
            ]
        )
