"""Ad-hoc message from the store about one order."""

from notifications.event import NotificationKind
from notifications.templates.base import OrderTemplate, greeting


class CustomMessageTemplate(OrderTemplate):
    kind = NotificationKind.CUSTOM_MESSAGE.value

    def email(self, context: dict) -> dict:
        human_id = context["human_id"]
        message = context["message"]
        return {
            "subject": f"A message about your order {human_id}",
            "body": "\n".join([greeting(context), "", message, "", f"Track your order: {context['tracking_url']}"]),
            "html_body": self.html_page(context, f"About order {human_id}", [message]),
        }

    def sms(self, context: dict) -> str:
        return f"{context['store_name']} ({context['human_id']}): {context['message']}"

    def messaging(self, context: dict) -> str:
        return f"*{context['store_name']}* about order *{context['human_id']}*:\n{context['message']}"
