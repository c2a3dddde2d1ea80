from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from django.conf import settings


def build_callback_url(reference_id: str) -> str:
    """Deep link the payment page sends the user back to: ``<scheme>://orders/<reference_id>``."""
    scheme = getattr(settings, "APP_DEEP_LINK_SCHEME", "foodie")
    return f"{scheme}://orders/{reference_id}"


def parse_callback_url(url: str) -> Optional[str]:
    """Return the order reference from a returning deep link, or None if it isn't one of ours."""
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.scheme != getattr(settings, "APP_DEEP_LINK_SCHEME", "foodie"):
        return None
    # "foodie://orders/<id>" parses with netloc="orders"; "foodie:///orders/<id>" keeps it in the path
    parts = [p for p in ([parsed.netloc] + parsed.path.split("/")) if p]
    if len(parts) != 2 or parts[0] != "orders":
        return None
    return parts[1]
