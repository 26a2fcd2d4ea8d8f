"""Template registry: maps notification kinds to template classes."""

from notifications.templates.base import OrderTemplate
from notifications.templates.custom_message import CustomMessageTemplate
from notifications.templates.feedback_requested import FeedbackRequestedTemplate
from notifications.templates.order_confirmed import OrderConfirmedTemplate
from notifications.templates.order_placed import OrderPlacedTemplate
from notifications.templates.status_changed import StatusChangedTemplate

TEMPLATE_REGISTRY: dict[str, type[OrderTemplate]] = {
    template.kind: template
    for template in (
        OrderPlacedTemplate,
        OrderConfirmedTemplate,
        StatusChangedTemplate,
        FeedbackRequestedTemplate,
        CustomMessageTemplate,
    )
}


def get_template(kind: str) -> OrderTemplate:
    """Return a template instance for a notification kind."""
    template_cls = TEMPLATE_REGISTRY.get(kind)
    if template_cls is None:
        raise ValueError(f"No template registered for notification kind: {kind}")
    return template_cls()
