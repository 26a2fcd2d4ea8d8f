"""Recipient resolution.

The contact captured on the order wins over the buyer's profile: a phone
or messaging number typed into the delivery address is where the buyer
expects updates for that order. Profile values fill the gaps, and the
messaging handle finally falls back to whichever phone number was chosen.
"""

from notifications.event import Recipient


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def resolve_recipient(profile, address: dict | None = None) -> Recipient:
    """Build a Recipient from a buyer profile and an order's delivery address.

    ``profile`` is any object exposing ``name``, ``email``, ``phone`` and
    ``whatsapp`` attributes (missing ones count as absent).
    """
    address = address or {}

    phone = _clean(address.get("phone")) or _clean(getattr(profile, "phone", None))
    whatsapp = (
        _clean(address.get("whatsapp"))
        or _clean(getattr(profile, "whatsapp", None))
        or phone
    )
    return Recipient(
        name=_clean(getattr(profile, "name", None)),
        email=_clean(getattr(profile, "email", None)),
        phone=phone,
        whatsapp=whatsapp,
    )
