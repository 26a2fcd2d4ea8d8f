"""Feedback requested template: asks the buyer to confirm receipt."""

from notifications.event import NotificationKind
from notifications.templates.base import OrderTemplate, greeting


class FeedbackRequestedTemplate(OrderTemplate):
    kind = NotificationKind.FEEDBACK_REQUESTED.value

    def email(self, context: dict) -> dict:
        human_id = context["human_id"]
        lines = [
            f"Our records show your order {human_id} was delivered.",
            "Did you receive it? Let us know so we can close the order, "
            "or contact support if anything is missing.",
        ]
        return {
            "subject": f"Did you receive order {human_id}?",
            "body": "\n".join([greeting(context), "", *lines]),
            "html_body": self.html_page(context, "How was your delivery?", lines),
        }

    def sms(self, context: dict) -> str:
        return (
            f"{context['store_name']}: order {context['human_id']} was delivered. "
            "Did you receive it? Reply to let us know."
        )

    def messaging(self, context: dict) -> str:
        return "\n".join(
            [
                "*Delivered*",
                f"Order *{context['human_id']}* was delivered.",
                "Did you receive it? Reply *YES* or *NO*.",
            ]
        )
