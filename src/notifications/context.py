"""Rendering context built from an order snapshot."""

from datetime import date, datetime, timedelta
from urllib.parse import quote

from shared.config import Settings, get_settings

PAYMENT_COD = "Cash on Delivery"


def tracking_url(frontend_url: str, human_id: str) -> str:
    return f"{frontend_url.rstrip('/')}/order-tracking/{quote(human_id, safe='')}"


def payment_label(payment_method: str | None, payment_status: str | None) -> str:
    if payment_status == "Paid":
        return "Paid"
    if payment_status == "Pending" and payment_method == PAYMENT_COD:
        return "Pending (COD)"
    return payment_status or "Pending"


def default_delivery_estimate(created_at, days: int) -> str:
    if isinstance(created_at, str):
        created_at = datetime.fromisoformat(created_at)
    if isinstance(created_at, datetime):
        created_at = created_at.date()
    if not isinstance(created_at, date):
        created_at = date.today()
    return (created_at + timedelta(days=days)).isoformat()


def build_context(snapshot: dict, settings: Settings | None = None, **extra) -> dict:
    """Enrich an order snapshot with display values shared by all templates."""
    settings = settings or get_settings()
    context = dict(snapshot)
    context.setdefault("currency", settings.currency)
    context.setdefault("store_name", settings.store_name)
    context["items"] = [
        {**item, "line_total": item["quantity"] * item["unit_price"]} for item in snapshot.get("items", [])
    ]
    context["tracking_url"] = tracking_url(settings.frontend_url, snapshot["human_id"])
    context["payment_label"] = payment_label(snapshot.get("payment_method"), snapshot.get("payment_status"))
    if not context.get("estimated_delivery"):
        context["estimated_delivery"] = default_delivery_estimate(
            snapshot.get("created_at"), settings.default_delivery_days
        )
    context.update(extra)
    return context
