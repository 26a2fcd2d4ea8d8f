"""Shared rendering helpers for order notification templates.

Every template renders the same content three ways: an email (subject,
plain text and an HTML invoice), a single SMS line, and a multi-line
messaging-app message using ``*bold*`` markers.
"""

from html import escape

from notifications.channel.port import ChannelName


def money(amount: float, currency: str) -> str:
    return f"{currency} {amount:,.2f}"


def item_lines(context: dict, bullet: str = "- ") -> list[str]:
    currency = context["currency"]
    return [
        f"{bullet}{item['name']} x {item['quantity']} = {money(item['line_total'], currency)}"
        for item in context.get("items", [])
    ]


def invoice_html(context: dict) -> str:
    """HTML invoice table listing every line and the order total."""
    currency = context["currency"]
    rows = "".join(
        "<tr>"
        f"<td>{escape(str(item['name']))}</td>"
        f"<td style=\"text-align:center\">{item['quantity']}</td>"
        f"<td style=\"text-align:right\">{escape(money(item['unit_price'], currency))}</td>"
        f"<td style=\"text-align:right\">{escape(money(item['line_total'], currency))}</td>"
        "</tr>"
        for item in context.get("items", [])
    )
    return (
        "<table style=\"border-collapse:collapse;width:100%\" border=\"1\" cellpadding=\"6\">"
        "<thead><tr><th>Item</th><th>Qty</th><th>Price</th><th>Subtotal</th></tr></thead>"
        f"<tbody>{rows}</tbody>"
        "<tfoot><tr><td colspan=\"3\" style=\"text-align:right\"><strong>Total</strong></td>"
        f"<td style=\"text-align:right\"><strong>{escape(money(context['total'], currency))}</strong></td>"
        "</tr></tfoot></table>"
    )


def greeting(context: dict) -> str:
    name = context.get("buyer_name")
    return f"Hi {name}," if name else "Hello,"


class OrderTemplate:
    """Base template; subclasses implement the three channel renderings."""

    kind: str

    def render(self, context: dict, channel: str) -> dict:
        if channel == ChannelName.EMAIL.value:
            return self.email(context)
        if channel == ChannelName.SMS.value:
            return {"body": self.sms(context)}
        if channel == ChannelName.MESSAGING_APP.value:
            return {"body": self.messaging(context)}
        raise ValueError(f"Unknown channel type: {channel}")

    def email(self, context: dict) -> dict:
        raise NotImplementedError

    def sms(self, context: dict) -> str:
        raise NotImplementedError

    def messaging(self, context: dict) -> str:
        raise NotImplementedError

    @staticmethod
    def html_page(context: dict, heading: str, paragraphs: list[str], with_invoice: bool = False) -> str:
        body = "".join(f"<p>{escape(p)}</p>" for p in paragraphs)
        invoice = invoice_html(context) if with_invoice else ""
        link = escape(context["tracking_url"], quote=True)
        return (
            "<html><body style=\"font-family:Arial,sans-serif\">"
            f"<h2>{escape(heading)}</h2>"
            f"<p>{escape(greeting(context))}</p>"
            f"{body}{invoice}"
            f"<p><a href=\"{link}\">Track your order</a></p>"
            f"<p>{escape(context['store_name'])}</p>"
            "</body></html>"
        )
